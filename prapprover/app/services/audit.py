"""Append-only audit trail, one plain-text file per calendar day."""
import asyncio
import os
from datetime import date, datetime
from typing import Callable, List, Optional

import structlog

from prapprover.utils.errors import AuditLogWriteError
from ..metrics import record_audit_failure
from ..models.contracts import AuditAction, AuditEvent

logger = structlog.get_logger(__name__)

AUDIT_FILE_PREFIX = "pr-approvals-"


class AuditLogger:
    def __init__(self, directory: str, clock: Optional[Callable[[], datetime]] = None):
        self.directory = directory
        self.clock = clock or datetime.now

    def path_for(self, day: date) -> str:
        return os.path.join(self.directory, f"{AUDIT_FILE_PREFIX}{day:%Y-%m-%d}.log")

    def new_event(
        self,
        request_id: str,
        action: AuditAction,
        actor: str,
        credential_display_name: str,
        count: int,
        pr_url: Optional[str] = None,
        error: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            timestamp=self.clock(),
            request_id=request_id,
            action=action,
            actor=actor,
            credential_display_name=credential_display_name,
            count=count,
            pr_url=pr_url,
            error=error,
        )

    def _append(self, path: str, line: str) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            raise AuditLogWriteError(path, str(exc)) from exc

    async def record(self, event: AuditEvent) -> None:
        """Write one event. Failures are logged and swallowed."""
        path = self.path_for(event.timestamp.date())
        try:
            await asyncio.to_thread(self._append, path, event.to_line())
        except AuditLogWriteError as exc:
            record_audit_failure()
            logger.error(
                "audit_log_write_failed",
                request_id=event.request_id,
                action=event.action.value,
                path=exc.details.get("path"),
                reason=exc.details.get("reason"),
            )
            return

        logger.info(
            "audit_event",
            request_id=event.request_id,
            action=event.action.value,
            actor=event.actor,
            credential=event.credential_display_name,
            count=event.count,
        )

    def read_day(self, day: date) -> List[str]:
        path = self.path_for(day)
        if not os.path.exists(path):
            return []
        with open(path, "r", encoding="utf-8") as fh:
            return [line.rstrip("\n") for line in fh if line.strip()]
