from pydantic import BaseModel, Field, SecretStr
from typing import List, Optional, Union
from datetime import datetime
from enum import Enum


# ============================================================================
# DOMAIN TYPES
# ============================================================================

class PullRequestReference(BaseModel):
    """owner/repo/number triple parsed from a PR URL."""
    owner: str
    repo: str
    number: int = Field(..., gt=0)

    model_config = {"frozen": True}

    @property
    def api_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}/pulls/{self.number}"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


class Credential(BaseModel):
    """A named GitHub access token. The token is only readable via get_secret_value()."""
    display_name: str = Field(..., min_length=1)
    access_token: SecretStr

    model_config = {"frozen": True}


class PrState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PrState":
        for member in (cls.OPEN, cls.CLOSED):
            if value == member.value:
                return member
        return cls.UNKNOWN


class PrSnapshot(BaseModel):
    state: PrState
    raw_state: str
    title: str = ""
    author_login: Optional[str] = None

    model_config = {"frozen": True}


class PrNotFound(BaseModel):
    status_code: int = 404

    model_config = {"frozen": True}


class PrAccessDenied(BaseModel):
    status_code: int

    model_config = {"frozen": True}


class ReviewSubmitted(BaseModel):
    status_code: int = 200

    model_config = {"frozen": True}


class ReviewRejected(BaseModel):
    status_code: int
    body: str = ""

    model_config = {"frozen": True}


class RequestFailed(BaseModel):
    """Transport-level failure (timeout, connection error, unreadable body)."""
    error: str

    model_config = {"frozen": True}


FetchResult = Union[PrSnapshot, PrNotFound, PrAccessDenied, RequestFailed]
SubmitResult = Union[ReviewSubmitted, ReviewRejected, RequestFailed]


class ApprovalStatus(str, Enum):
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"
    FAILED = "failed"


class ApprovalErrorKind(str, Enum):
    INVALID_URL_FORMAT = "invalid_url_format"
    INVALID_TOKEN_FORMAT = "invalid_token_format"
    PR_NOT_FOUND = "pr_not_found"
    WRONG_STATE = "wrong_state"
    APPROVAL_REJECTED = "approval_rejected"
    NETWORK_ERROR = "network_error"
    UNEXPECTED_ERROR = "unexpected_error"


class ApprovalOutcome(BaseModel):
    status: ApprovalStatus
    error_kind: Optional[ApprovalErrorKind] = None
    reason: Optional[str] = None
    status_code: Optional[int] = None
    response_body: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def succeeded(cls) -> "ApprovalOutcome":
        return cls(status=ApprovalStatus.SUCCEEDED)

    @classmethod
    def rejected(cls, kind: ApprovalErrorKind, reason: str) -> "ApprovalOutcome":
        return cls(status=ApprovalStatus.REJECTED, error_kind=kind, reason=reason)

    @classmethod
    def failed(
        cls,
        kind: ApprovalErrorKind,
        reason: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> "ApprovalOutcome":
        return cls(
            status=ApprovalStatus.FAILED,
            error_kind=kind,
            reason=reason,
            status_code=status_code,
            response_body=response_body,
        )

    @property
    def is_approved(self) -> bool:
        return self.status == ApprovalStatus.SUCCEEDED


class ApprovalResult(BaseModel):
    """Outcome of one PR plus the narrative the engine produced for it."""
    url: str
    reference: Optional[PullRequestReference] = None
    outcome: ApprovalOutcome
    log_lines: List[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    request_id: str
    credential_display_name: Optional[str] = None
    credential_selected: bool = True
    total: int = 0
    succeeded: int = 0
    failed: List[str] = Field(default_factory=list)
    log: str = ""
    outcomes: List[ApprovalResult] = Field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class AuditAction(str, Enum):
    BATCH_START = "PR_APPROVAL_BATCH_START"
    SUCCESS = "PR_APPROVAL_SUCCESS"
    FAILED = "PR_APPROVAL_FAILED"
    BATCH_END = "PR_APPROVAL_BATCH_END"


def _flatten(value: str) -> str:
    return " ".join(value.splitlines()).strip()


class AuditEvent(BaseModel):
    timestamp: datetime
    request_id: str
    action: AuditAction
    actor: str
    credential_display_name: str
    count: int
    pr_url: Optional[str] = None
    error: Optional[str] = None

    model_config = {"frozen": True}

    def to_line(self) -> str:
        line = (
            f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] "
            f"REQUEST_ID: {self.request_id} | "
            f"ACTION: {self.action.value} | "
            f"USER: {_flatten(self.actor)} | "
            f"TOKEN: {_flatten(self.credential_display_name)} | "
            f"COUNT: {self.count}"
        )
        if self.pr_url:
            line += f" | PR_URL: {_flatten(self.pr_url)}"
        if self.error:
            line += f" | ERROR: {_flatten(self.error)}"
        return line


# ============================================================================
# HTTP CONTRACTS
# ============================================================================

class ApproveBatchRequest(BaseModel):
    pr_urls: str = Field(..., description="Newline-delimited list of PR URLs")
    selected_display_name: str = Field(..., description="Display name of the credential to approve with")

    model_config = {
        "json_schema_extra": {
            "example": {
                "pr_urls": "https://github.com/acme/widgets/pull/42\nhttps://github.com/acme/widgets/pull/43/files",
                "selected_display_name": "release-bot",
            }
        }
    }


class BatchItemResponse(BaseModel):
    url: str
    status: ApprovalStatus
    error_kind: Optional[ApprovalErrorKind] = None
    reason: Optional[str] = None


class BatchResultResponse(BaseModel):
    request_id: str
    credential_display_name: Optional[str] = None
    credential_selected: bool
    total: int
    succeeded: int
    failed_count: int
    failed: List[str]
    log: str
    items: List[BatchItemResponse] = []

    @classmethod
    def from_result(cls, result: BatchResult) -> "BatchResultResponse":
        return cls(
            request_id=result.request_id,
            credential_display_name=result.credential_display_name,
            credential_selected=result.credential_selected,
            total=result.total,
            succeeded=result.succeeded,
            failed_count=result.failed_count,
            failed=list(result.failed),
            log=result.log,
            items=[
                BatchItemResponse(
                    url=item.url,
                    status=item.outcome.status,
                    error_kind=item.outcome.error_kind,
                    reason=item.outcome.reason,
                )
                for item in result.outcomes
            ],
        )


class CredentialListResponse(BaseModel):
    display_names: List[str]


class OperatorResponse(BaseModel):
    operator: str
