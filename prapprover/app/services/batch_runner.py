"""
Drives a list of PR URLs through the approval engine, one at a time and in
input order, and builds the operator-facing log plus the audit trail.
"""
import uuid
from typing import List, Sequence

import structlog

from ..config import CredentialStore
from ..metrics import record_batch, record_outcome
from ..models.contracts import (
    ApprovalErrorKind,
    ApprovalOutcome,
    ApprovalResult,
    ApprovalStatus,
    AuditAction,
    BatchResult,
)
from .approval_engine import ApprovalEngine
from .audit import AuditLogger
from .pr_url import split_pr_urls

logger = structlog.get_logger(__name__)

SUMMARY_SEPARATOR = "=" * 50


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class BatchRunner:
    def __init__(self, credentials: CredentialStore, engine: ApprovalEngine, audit_logger: AuditLogger):
        self.credentials = credentials
        self.engine = engine
        self.audit = audit_logger

    async def approve_batch(self, pr_urls_blob: str, selected_display_name: str, actor: str) -> BatchResult:
        """Entry point for the web layer: newline-delimited URLs in, BatchResult out."""
        return await self.run(new_request_id(), selected_display_name, split_pr_urls(pr_urls_blob), actor)

    async def _process(self, url: str, credential) -> ApprovalResult:
        try:
            return await self.engine.run(url, credential)
        except Exception as exc:
            logger.exception("pr_processing_crashed", url=url)
            kind = ApprovalErrorKind.UNEXPECTED_ERROR
            record_outcome(ApprovalStatus.FAILED.value, kind.value)
            return ApprovalResult(
                url=url,
                outcome=ApprovalOutcome.failed(kind, f"Unexpected error: {str(exc) or type(exc).__name__}"),
                log_lines=[f"❌ Unexpected error: {exc}"],
            )

    async def run(self, request_id: str, selected_display_name: str, urls: Sequence[str], actor: str) -> BatchResult:
        log: List[str] = []
        credential = self.credentials.get(selected_display_name)
        if credential is None:
            logger.warning(
                "no_credential_selected",
                request_id=request_id,
                selected_display_name=selected_display_name,
                actor=actor,
            )
            record_batch("no_credential")
            log.append("❌ No valid GitHub access token selected!")
            return BatchResult(
                request_id=request_id,
                credential_selected=False,
                log="\n".join(log) + "\n",
            )

        name = credential.display_name
        total = len(urls)
        succeeded = 0
        failed: List[str] = []
        outcomes: List[ApprovalResult] = []

        await self.audit.record(self.audit.new_event(request_id, AuditAction.BATCH_START, actor, name, total))
        logger.info("batch_started", request_id=request_id, actor=actor, credential=name, total=total)
        log.append(f"🚀 Starting batch processing of {total} PR(s) using token: {name}... [RequestID: {request_id}]")

        for i, url in enumerate(urls, start=1):
            log.append(f"\n📋 [{i}/{total}] Processing: {url}")
            result = await self._process(url, credential)
            outcomes.append(result)
            log.extend(f"   {line}" for line in result.log_lines)

            outcome = result.outcome
            if outcome.is_approved:
                succeeded += 1
                log.append(f"✅ [{i}/{total}] Approval completed by {name}")
                event = self.audit.new_event(request_id, AuditAction.SUCCESS, actor, name, 1, pr_url=url)
            else:
                failed.append(url)
                label = "Rejected" if outcome.status == ApprovalStatus.REJECTED else "Failed"
                log.append(f"❌ [{i}/{total}] {label}: {outcome.reason}")
                event = self.audit.new_event(
                    request_id, AuditAction.FAILED, actor, name, 0, pr_url=url, error=outcome.reason
                )
            await self.audit.record(event)

        await self.audit.record(self.audit.new_event(
            request_id,
            AuditAction.BATCH_END,
            actor,
            name,
            succeeded,
            error=f"Total: {total}, Success: {succeeded}, Failed: {len(failed)}",
        ))
        logger.info(
            "batch_finished",
            request_id=request_id,
            total=total,
            succeeded=succeeded,
            failed=len(failed),
        )
        record_batch("completed" if not failed else "partial")

        log.append(f"\n{SUMMARY_SEPARATOR}\n📊 Batch Processing Summary:")
        log.append(f"   Request ID: {request_id}")
        log.append(f"   Token Used: {name}")
        log.append(f"   Total PRs: {total}")
        log.append(f"   Successful: {succeeded}")
        log.append(f"   Failed: {len(failed)}")
        if failed:
            log.append("\n❌ Failed URLs:")
            log.extend(f"   - {url}" for url in failed)

        return BatchResult(
            request_id=request_id,
            credential_display_name=name,
            total=total,
            succeeded=succeeded,
            failed=failed,
            log="\n".join(log) + "\n",
            outcomes=outcomes,
        )
