"""Syntactic checks for GitHub access tokens.

Passing validate_token() does not mean the token is live; only a successful
API call proves that.
"""
from typing import Optional

TOKEN_PREFIXES = ("github_pat_", "ghp_", "gho_", "ghu_", "ghs_", "ghr_")
MIN_TOKEN_LENGTH = 10


def validate_token(token: Optional[str]) -> bool:
    if not token or not token.strip() or len(token) < MIN_TOKEN_LENGTH:
        return False
    return token.startswith(TOKEN_PREFIXES)


def mask_token(token: Optional[str]) -> str:
    """Render a token safely for logs, e.g. ``ghp_…wxyz``."""
    if not token:
        return "<empty>"
    prefix = next((p for p in TOKEN_PREFIXES if token.startswith(p)), "")
    if len(token) <= len(prefix) + 4:
        return f"{prefix}…"
    return f"{prefix}…{token[-4:]}"
