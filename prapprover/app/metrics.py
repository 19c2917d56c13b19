from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from contextlib import contextmanager
import time

OUTCOMES = Counter("pr_approver_outcomes_total", "Per-PR approval outcomes", ["status", "error_kind"])
BATCHES = Counter("pr_approver_batches_total", "Batch calls by result", ["result"])
GITHUB_LATENCY = Histogram("pr_approver_github_latency_seconds", "GitHub API call latency", ["operation"])
AUDIT_FAILURES = Counter("pr_approver_audit_write_failures_total", "Audit records that could not be written")


def render_latest():
    return generate_latest(), CONTENT_TYPE_LATEST


@contextmanager
def time_github_call(operation: str):
    t0 = time.perf_counter()
    try:
        yield
    finally:
        GITHUB_LATENCY.labels(operation).observe(time.perf_counter() - t0)


def record_outcome(status: str, error_kind: str | None = None) -> None:
    try:
        OUTCOMES.labels(status=status, error_kind=error_kind or "none").inc()
    except Exception:
        # best-effort; avoid breaking main flow if metrics fail
        pass


def record_batch(result: str) -> None:
    try:
        BATCHES.labels(result=result).inc()
    except Exception:
        pass


def record_audit_failure() -> None:
    try:
        AUDIT_FAILURES.inc()
    except Exception:
        pass
