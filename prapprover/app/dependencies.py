"""Process-wide service objects, built lazily from settings and shared read-only."""
from typing import Optional

from .config import get_credentials, get_settings
from .providers.github_provider import GitHubClient
from .services.approval_engine import ApprovalEngine
from .services.audit import AuditLogger
from .services.batch_runner import BatchRunner

_runner: Optional[BatchRunner] = None


def build_batch_runner() -> BatchRunner:
    settings = get_settings()
    client = GitHubClient(
        api_base=settings.github_api_base,
        user_agent=settings.github_user_agent,
        timeout=settings.github_timeout,
    )
    return BatchRunner(
        credentials=get_credentials(),
        engine=ApprovalEngine(client, approval_message=settings.approval_message),
        audit_logger=AuditLogger(settings.audit_dir),
    )


def get_batch_runner() -> BatchRunner:
    global _runner
    if _runner is None:
        _runner = build_batch_runner()
    return _runner


def reset_batch_runner() -> None:
    global _runner
    _runner = None
