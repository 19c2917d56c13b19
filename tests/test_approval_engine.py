"""Tests for the single-PR approval flow."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from prapprover.app.models.contracts import (
    ApprovalErrorKind,
    ApprovalStatus,
    Credential,
    PrAccessDenied,
    PrNotFound,
    PrSnapshot,
    PrState,
    RequestFailed,
    ReviewRejected,
    ReviewSubmitted,
)
from prapprover.app.services.approval_engine import ApprovalEngine

URL = "https://github.com/acme/widgets/pull/42"


def make_client(fetch=None, submit=None):
    client = MagicMock()
    client.fetch_pull_request = AsyncMock(return_value=fetch)
    client.submit_approval = AsyncMock(return_value=submit)
    return client


def open_pr(author="octocat"):
    return PrSnapshot(state=PrState.OPEN, raw_state="open", title="Add sprockets", author_login=author)


@pytest.mark.asyncio
async def test_happy_path(credential):
    client = make_client(open_pr(), ReviewSubmitted())
    engine = ApprovalEngine(client, approval_message="LGTM")

    result = await engine.run(URL, credential)

    assert result.outcome.status == ApprovalStatus.SUCCEEDED
    assert result.outcome.is_approved
    assert result.reference.number == 42
    assert result.log_lines == [
        "📋 Parsed PR: acme/widgets#42",
        "✅ PR found: 'Add sprockets'",
        "📊 PR state: open",
        "👤 PR author: octocat",
        "🚀 Attempting to approve PR...",
        "✅ PR approved successfully!",
    ]
    ref = client.submit_approval.await_args.args[0]
    assert client.submit_approval.await_args.args[1:] == (credential.access_token.get_secret_value(), "LGTM")
    assert ref.slug == "acme/widgets#42"


@pytest.mark.asyncio
async def test_author_line_omitted_when_absent(credential):
    engine = ApprovalEngine(make_client(open_pr(author=None), ReviewSubmitted()))

    result = await engine.run(URL, credential)

    assert not any(line.startswith("👤") for line in result.log_lines)


@pytest.mark.asyncio
async def test_invalid_url_stops_before_network(credential):
    client = make_client()
    result = await ApprovalEngine(client).run("https://github.com/acme/widgets/pull/abc", credential)

    assert result.outcome.status == ApprovalStatus.FAILED
    assert result.outcome.error_kind == ApprovalErrorKind.INVALID_URL_FORMAT
    assert result.log_lines == ["❌ Invalid PR URL format"]
    client.fetch_pull_request.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_token_stops_before_network():
    client = make_client()
    bad = Credential(display_name="bad", access_token="not-a-token")

    result = await ApprovalEngine(client).run(URL, bad)

    assert result.outcome.error_kind == ApprovalErrorKind.INVALID_TOKEN_FORMAT
    assert result.log_lines[-1] == "❌ Invalid GitHub token format"
    client.fetch_pull_request.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("fetched", [PrNotFound(), PrAccessDenied(status_code=403)])
async def test_missing_or_forbidden_pr(credential, fetched):
    client = make_client(fetched)

    result = await ApprovalEngine(client).run(URL, credential)

    assert result.outcome.status == ApprovalStatus.FAILED
    assert result.outcome.error_kind == ApprovalErrorKind.PR_NOT_FOUND
    assert result.log_lines[-1] == "❌ PR not found or access denied."
    client.submit_approval.assert_not_called()


@pytest.mark.asyncio
async def test_closed_pr_is_rejected(credential):
    closed = PrSnapshot(state=PrState.CLOSED, raw_state="closed", title="Old")
    client = make_client(closed)

    result = await ApprovalEngine(client).run(URL, credential)

    assert result.outcome.status == ApprovalStatus.REJECTED
    assert result.outcome.error_kind == ApprovalErrorKind.WRONG_STATE
    assert "closed" in result.outcome.reason
    assert result.log_lines[-1] == "❌ Cannot approve a closed PR"
    client.submit_approval.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_state_is_rejected_with_literal(credential):
    odd = PrSnapshot(state=PrState.UNKNOWN, raw_state="merged", title="t")

    result = await ApprovalEngine(make_client(odd)).run(URL, credential)

    assert result.outcome.status == ApprovalStatus.REJECTED
    assert result.log_lines[-1] == "❌ Cannot approve a merged PR"


@pytest.mark.asyncio
@pytest.mark.parametrize("status,hint", [
    (401, "invalid or expired"),
    (403, "'repo' or 'public_repo'"),
    (422, "approve your own PR"),
])
async def test_rejected_review_adds_hint(credential, status, hint):
    client = make_client(open_pr(), ReviewRejected(status_code=status, body='{"message":"x"}'))

    result = await ApprovalEngine(client).run(URL, credential)

    outcome = result.outcome
    assert outcome.status == ApprovalStatus.FAILED
    assert outcome.error_kind == ApprovalErrorKind.APPROVAL_REJECTED
    assert outcome.status_code == status
    assert outcome.response_body == '{"message":"x"}'
    assert f"❌ Failed to approve PR: {status}" in result.log_lines
    assert '📄 Response: {"message":"x"}' in result.log_lines
    assert hint in result.log_lines[-1]


@pytest.mark.asyncio
async def test_rejected_review_without_known_hint(credential):
    client = make_client(open_pr(), ReviewRejected(status_code=500, body="boom"))

    result = await ApprovalEngine(client).run(URL, credential)

    assert result.log_lines[-1] == "📄 Response: boom"


@pytest.mark.asyncio
async def test_network_failure_on_fetch(credential):
    client = make_client(RequestFailed(error="connection refused"))

    result = await ApprovalEngine(client).run(URL, credential)

    assert result.outcome.error_kind == ApprovalErrorKind.NETWORK_ERROR
    assert result.log_lines[-1] == "❌ Request to GitHub failed: connection refused"


@pytest.mark.asyncio
async def test_network_failure_on_submit(credential):
    client = make_client(open_pr(), RequestFailed(error="reset"))

    result = await ApprovalEngine(client).run(URL, credential)

    assert result.outcome.status == ApprovalStatus.FAILED
    assert result.outcome.error_kind == ApprovalErrorKind.NETWORK_ERROR
