from typing import Any, Dict, Optional

import httpx
import structlog

from ..metrics import time_github_call
from ..models.contracts import (
    FetchResult,
    PrAccessDenied,
    PrNotFound,
    PrSnapshot,
    PrState,
    PullRequestReference,
    RequestFailed,
    ReviewRejected,
    ReviewSubmitted,
    SubmitResult,
)

logger = structlog.get_logger(__name__)


class GitHubClient:
    """The two GitHub REST calls the approval flow needs.

    Every call is a single request with its own timeout. Nothing is retried;
    HTTP and transport failures come back as typed results instead of raising.
    """

    API_VERSION = "2022-11-28"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        api_base: str = "https://api.github.com",
        user_agent: str = "PR-Approver",
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    def _headers(self, token: str) -> Dict[str, str]:
        if not token:
            raise RuntimeError("GitHub token is required")
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.API_VERSION,
            "User-Agent": self.user_agent,
        }

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        json_payload: Dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = f"{self.api_base}{path}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.request(
                method,
                url,
                headers=self._headers(token),
                json=json_payload,
            )

    async def fetch_pull_request(self, ref: PullRequestReference, token: str) -> FetchResult:
        with time_github_call("fetch_pull_request"):
            try:
                response = await self._request("GET", ref.api_path, token)
            except httpx.HTTPError as exc:
                logger.warning("github_fetch_failed", pr=ref.slug, error=repr(exc))
                return RequestFailed(error=_describe(exc))

        if response.status_code == 404:
            logger.info("github_pr_not_found", pr=ref.slug)
            return PrNotFound()
        if not response.is_success:
            logger.info("github_pr_access_denied", pr=ref.slug, status_code=response.status_code)
            return PrAccessDenied(status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            return RequestFailed(error=f"Unreadable PR response: {exc}")
        if not isinstance(data, dict):
            return RequestFailed(error="Unexpected response from GitHub PR metadata")

        raw_state = _text(data.get("state"))
        user = data.get("user")
        login = _text(user.get("login")) if isinstance(user, dict) else ""
        return PrSnapshot(
            state=PrState.parse(raw_state),
            raw_state=raw_state,
            title=_text(data.get("title")),
            author_login=login or None,
        )

    async def submit_approval(self, ref: PullRequestReference, token: str, message: str) -> SubmitResult:
        with time_github_call("submit_approval"):
            try:
                response = await self._request(
                    "POST",
                    f"{ref.api_path}/reviews",
                    token,
                    json_payload={"event": "APPROVE", "body": message},
                )
            except httpx.HTTPError as exc:
                logger.warning("github_review_failed", pr=ref.slug, error=repr(exc))
                return RequestFailed(error=_describe(exc))

        if response.is_success:
            logger.info("github_review_submitted", pr=ref.slug, status_code=response.status_code)
            return ReviewSubmitted(status_code=response.status_code)

        logger.info("github_review_rejected", pr=ref.slug, status_code=response.status_code)
        return ReviewRejected(status_code=response.status_code, body=response.text)


def _describe(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return f"Timed out talking to GitHub ({type(exc).__name__})"
    return str(exc) or type(exc).__name__


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""
