"""Parsing and pre-filtering of GitHub pull request URLs."""
import re
from typing import List

from prapprover.utils.errors import InvalidPrUrlError
from ..models.contracts import PullRequestReference

PR_URL_PATTERN = re.compile(
    r"https://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/pull/(?P<number>\d+)(?:/files)?"
)


def parse_pr_url(url: str) -> PullRequestReference:
    """
    Parse a GitHub PR URL into its components.

    Args:
        url: e.g. https://github.com/owner/repo/pull/123 or .../pull/123/files

    Returns:
        PullRequestReference with owner, repo and PR number

    Raises:
        InvalidPrUrlError: if the URL does not match the PR pattern
    """
    if not isinstance(url, str):
        raise InvalidPrUrlError(str(url))
    match = PR_URL_PATTERN.fullmatch(url.strip())
    if not match:
        raise InvalidPrUrlError(url)
    number = int(match.group("number"))
    if number <= 0:
        raise InvalidPrUrlError(url)
    return PullRequestReference(
        owner=match.group("owner"),
        repo=match.group("repo"),
        number=number,
    )


def looks_like_pr_url(line: str) -> bool:
    # Substring check only; strict parsing happens per item in the engine.
    return "github.com" in line and "/pull/" in line


def split_pr_urls(blob: str) -> List[str]:
    """Split a newline-delimited blob, dropping blank and non-PR lines."""
    if not blob:
        return []
    return [
        line for line in blob.splitlines()
        if line and looks_like_pr_url(line)
    ]
