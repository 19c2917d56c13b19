"""
Error types and FastAPI exception handlers for PR Approver.
"""

from typing import Any, Dict
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import structlog
import traceback
import uuid
from datetime import datetime, timezone

logger = structlog.get_logger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PRApproverError(Exception):
    """Base exception for PR Approver."""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.status_code = status_code
        self.timestamp = _utcnow_iso()
        super().__init__(self.message)


class AuthenticationError(PRApproverError):
    """Operator could not be authenticated."""

    def __init__(self, message: str = "Authentication failed", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_ERROR",
            details=details,
            status_code=401
        )


class ConfigurationError(PRApproverError):
    """Credential or settings document is unusable."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=details,
            status_code=500
        )


class InvalidPrUrlError(PRApproverError, ValueError):
    """URL is not a GitHub pull request URL."""

    def __init__(self, url: str):
        super().__init__(
            message=f"Invalid PR URL format: {url}",
            error_code="INVALID_URL_FORMAT",
            details={"url": url},
            status_code=400
        )
        self.url = url


class AuditLogWriteError(PRApproverError):
    """An audit record could not be appended. Never fatal to a batch."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Failed to write audit log {path}: {reason}",
            error_code="AUDIT_LOG_WRITE_FAILED",
            details={"path": path, "reason": reason},
            status_code=500
        )


def create_error_response(error: PRApproverError) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": {
                "code": error.error_code,
                "message": error.message,
                "details": error.details,
                "timestamp": error.timestamp
            }
        }
    )


async def prapprover_exception_handler(request: Request, exc: PRApproverError) -> JSONResponse:
    """Global exception handler for PR Approver exceptions."""
    logger.error(
        "request_failed",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
        method=request.method
    )
    return create_error_response(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI validation errors."""
    logger.warning(
        "validation_error",
        errors=jsonable_errors(exc),
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Input validation failed",
                "details": {"validation_errors": jsonable_errors(exc)},
                "timestamp": _utcnow_iso()
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry exception instances that JSONResponse cannot encode
    cleaned = []
    for err in exc.errors():
        item = {k: v for k, v in err.items() if k != "ctx"}
        cleaned.append(item)
    return cleaned


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unexpected errors."""
    error_id = uuid.uuid4().hex[:12]

    logger.error(
        "unexpected_error",
        error_id=error_id,
        error_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
        path=request.url.path,
        method=request.method
    )

    # Don't expose internal error details
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "details": {"error_id": error_id},
                "timestamp": _utcnow_iso()
            }
        }
    )
