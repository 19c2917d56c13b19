"""
Process-wide settings and the read-only credential set.

Everything here is loaded once at startup from the environment (and an optional
`.env` file) and never mutated afterwards.
"""
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from dotenv import load_dotenv
from pydantic import ValidationError

from prapprover import __version__ as PRA_VERSION
from prapprover.utils.errors import ConfigurationError
from .models.contracts import Credential

logger = structlog.get_logger(__name__)

DEFAULT_APPROVAL_MESSAGE = "Approved via PR Approver."
DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_AUDIT_DIR = os.path.join("Logs", "Audit")


@dataclass(frozen=True)
class Settings:
    tokens_file: Optional[str]
    tokens_json: Optional[str]
    audit_dir: str
    approval_message: str
    github_api_base: str
    github_user_agent: str
    github_timeout: float
    login_timezone: str
    login_tolerance_minutes: int
    log_level: str
    log_format: str
    allowed_origins: Tuple[str, ...]

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("PRA_ALLOWED_ORIGINS", "*")
        return cls(
            tokens_file=os.getenv("PRA_TOKENS_FILE") or None,
            tokens_json=os.getenv("PRA_GITHUB_TOKENS") or None,
            audit_dir=os.getenv("PRA_AUDIT_DIR", DEFAULT_AUDIT_DIR),
            approval_message=os.getenv("PRA_APPROVAL_MESSAGE", DEFAULT_APPROVAL_MESSAGE),
            github_api_base=os.getenv("PRA_GITHUB_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            github_user_agent=os.getenv("PRA_GITHUB_USER_AGENT", f"PR-Approver/{PRA_VERSION}"),
            github_timeout=float(os.getenv("PRA_GITHUB_TIMEOUT", "30")),
            login_timezone=os.getenv("PRA_LOGIN_TIMEZONE", "Asia/Shanghai"),
            login_tolerance_minutes=int(os.getenv("PRA_LOGIN_TOLERANCE_MINUTES", "2")),
            log_level=os.getenv("PRA_LOG_LEVEL", "INFO"),
            log_format=os.getenv("PRA_LOG_FORMAT", "json").lower(),
            allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        )


class CredentialStore:
    """Immutable, ordered set of configured credentials keyed by display name."""

    def __init__(self, credentials: Iterable[Credential] = ()):
        items = tuple(credentials)
        seen = set()
        for cred in items:
            if cred.display_name in seen:
                raise ConfigurationError(
                    f"Duplicate credential display name: {cred.display_name}",
                    details={"display_name": cred.display_name},
                )
            seen.add(cred.display_name)
        self._credentials = items

    def __len__(self) -> int:
        return len(self._credentials)

    def __iter__(self):
        return iter(self._credentials)

    @property
    def display_names(self) -> List[str]:
        return [c.display_name for c in self._credentials]

    def get(self, display_name: Optional[str]) -> Optional[Credential]:
        """Exact match, used when a batch selects its credential."""
        for cred in self._credentials:
            if cred.display_name == display_name:
                return cred
        return None

    def find_operator(self, name: Optional[str]) -> Optional[Credential]:
        """Case-insensitive match, used to resolve the logged-in operator."""
        if not name:
            return None
        wanted = name.casefold()
        for cred in self._credentials:
            if cred.display_name.casefold() == wanted:
                return cred
        return None


def _pick(entry: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def parse_credentials(document: Any) -> CredentialStore:
    """Build a CredentialStore from a decoded JSON document.

    Accepts a bare list of entries, ``{"tokens": [...]}`` or the
    ``{"GitHub": {"Tokens": [...]}}`` layout. Entry keys may be snake_case
    (``display_name``/``access_token``) or PascalCase (``DisplayName``/``AccessToken``).
    """
    entries = document
    if isinstance(document, dict):
        if "GitHub" in document and isinstance(document["GitHub"], dict):
            entries = _pick(document["GitHub"], "Tokens", "tokens")
        else:
            entries = _pick(document, "tokens", "Tokens")
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise ConfigurationError("Credential document must contain a list of tokens")

    credentials = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigurationError("Credential entry must be an object", details={"index": index})
        try:
            credentials.append(
                Credential(
                    display_name=_pick(entry, "display_name", "DisplayName", "displayName") or "",
                    access_token=_pick(entry, "access_token", "AccessToken", "accessToken") or "",
                )
            )
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid credential entry",
                details={"index": index, "errors": [e["msg"] for e in exc.errors()]},
            ) from exc
    return CredentialStore(credentials)


def load_credentials(settings: Settings) -> CredentialStore:
    if settings.tokens_file:
        try:
            with open(settings.tokens_file, "r", encoding="utf-8") as fh:
                document = json.load(fh)
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read credentials file: {exc}",
                details={"path": settings.tokens_file},
            ) from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Credentials file is not valid JSON: {exc}",
                details={"path": settings.tokens_file},
            ) from exc
    elif settings.tokens_json:
        try:
            document = json.loads(settings.tokens_json)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"PRA_GITHUB_TOKENS is not valid JSON: {exc}") from exc
    else:
        logger.warning("no_credentials_configured")
        document = []

    store = parse_credentials(document)
    logger.info("credentials_loaded", count=len(store), display_names=store.display_names)
    return store


_settings: Optional[Settings] = None
_credentials: Optional[CredentialStore] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        load_dotenv()
        _settings = Settings.from_env()
    return _settings


def get_credentials() -> CredentialStore:
    global _credentials
    if _credentials is None:
        _credentials = load_credentials(get_settings())
    return _credentials


def reset_settings() -> None:
    """Drop cached settings and credentials (tests only)."""
    global _settings, _credentials
    _settings = None
    _credentials = None
