"""
Approval flow for a single pull request.

parse URL -> check token syntax -> fetch PR -> check state -> submit review.
Every stop is terminal; nothing here retries. The narrative lines collected
along the way are what operators see in the batch log.
"""
from typing import List, Optional

import structlog

from prapprover.utils.errors import InvalidPrUrlError
from ..config import DEFAULT_APPROVAL_MESSAGE
from ..metrics import record_outcome
from ..models.contracts import (
    ApprovalErrorKind,
    ApprovalOutcome,
    ApprovalResult,
    Credential,
    PrAccessDenied,
    PrNotFound,
    PrState,
    PullRequestReference,
    RequestFailed,
    ReviewRejected,
)
from ..providers.github_provider import GitHubClient
from .pr_url import parse_pr_url
from .tokens import mask_token, validate_token

logger = structlog.get_logger(__name__)

REJECTION_HINTS = {
    401: "💡 Tip: Your GitHub token might be invalid or expired",
    403: "💡 Tip: Check if your GitHub token has 'repo' or 'public_repo' permissions",
    422: "💡 Tip: You might be trying to approve your own PR, which is not allowed",
}


class ApprovalEngine:
    def __init__(self, client: GitHubClient, approval_message: str = DEFAULT_APPROVAL_MESSAGE):
        self.client = client
        self.approval_message = approval_message

    async def run(self, url: str, credential: Credential) -> ApprovalResult:
        lines: List[str] = []
        reference: Optional[PullRequestReference] = None

        def finish(outcome: ApprovalOutcome) -> ApprovalResult:
            record_outcome(outcome.status.value, outcome.error_kind.value if outcome.error_kind else None)
            logger.info(
                "pr_outcome",
                url=url,
                status=outcome.status.value,
                error_kind=outcome.error_kind.value if outcome.error_kind else None,
                credential=credential.display_name,
            )
            return ApprovalResult(url=url, reference=reference, outcome=outcome, log_lines=lines)

        try:
            reference = parse_pr_url(url)
        except InvalidPrUrlError:
            lines.append("❌ Invalid PR URL format")
            return finish(ApprovalOutcome.failed(ApprovalErrorKind.INVALID_URL_FORMAT, "Invalid PR URL format"))
        lines.append(f"📋 Parsed PR: {reference.slug}")

        token = credential.access_token.get_secret_value()
        if not validate_token(token):
            logger.warning("invalid_token_format", credential=credential.display_name, token=mask_token(token))
            lines.append("❌ Invalid GitHub token format")
            return finish(ApprovalOutcome.failed(ApprovalErrorKind.INVALID_TOKEN_FORMAT, "Invalid GitHub token format"))

        fetched = await self.client.fetch_pull_request(reference, token)
        if isinstance(fetched, (PrNotFound, PrAccessDenied)):
            lines.append("❌ PR not found or access denied.")
            return finish(ApprovalOutcome.failed(
                ApprovalErrorKind.PR_NOT_FOUND,
                "PR not found or access denied",
                status_code=fetched.status_code,
            ))
        if isinstance(fetched, RequestFailed):
            lines.append(f"❌ Request to GitHub failed: {fetched.error}")
            return finish(ApprovalOutcome.failed(ApprovalErrorKind.NETWORK_ERROR, fetched.error))

        lines.append(f"✅ PR found: '{fetched.title}'")
        lines.append(f"📊 PR state: {fetched.raw_state}")
        if fetched.state != PrState.OPEN:
            lines.append(f"❌ Cannot approve a {fetched.raw_state} PR")
            return finish(ApprovalOutcome.rejected(
                ApprovalErrorKind.WRONG_STATE,
                f"Cannot approve a {fetched.raw_state} PR",
            ))
        if fetched.author_login:
            lines.append(f"👤 PR author: {fetched.author_login}")

        lines.append("🚀 Attempting to approve PR...")
        submitted = await self.client.submit_approval(reference, token, self.approval_message)
        if isinstance(submitted, RequestFailed):
            lines.append(f"❌ Request to GitHub failed: {submitted.error}")
            return finish(ApprovalOutcome.failed(ApprovalErrorKind.NETWORK_ERROR, submitted.error))
        if isinstance(submitted, ReviewRejected):
            lines.append(f"❌ Failed to approve PR: {submitted.status_code}")
            lines.append(f"📄 Response: {submitted.body}")
            hint = REJECTION_HINTS.get(submitted.status_code)
            if hint:
                lines.append(hint)
            return finish(ApprovalOutcome.failed(
                ApprovalErrorKind.APPROVAL_REJECTED,
                f"GitHub rejected the approval with status {submitted.status_code}",
                status_code=submitted.status_code,
                response_body=submitted.body,
            ))

        lines.append("✅ PR approved successfully!")
        return finish(ApprovalOutcome.succeeded())
