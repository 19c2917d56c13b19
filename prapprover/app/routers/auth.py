"""Operator authentication via display name + clock-derived access code."""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header

from prapprover.utils.errors import AuthenticationError
from ..config import get_credentials, get_settings
from ..models.contracts import OperatorResponse
from ..services.access_code import verify_access_code

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def verify_operator(
    x_operator: Optional[str] = Header(None, alias="X-Operator"),
    x_access_code: Optional[str] = Header(None, alias="X-Access-Code"),
) -> str:
    """Resolve the calling operator or raise 401.

    Returns the display name as configured, so audit records use one spelling
    regardless of how the operator typed it.
    """
    if not x_operator or not x_operator.strip():
        raise AuthenticationError("Username cannot be empty.")

    credential = get_credentials().find_operator(x_operator.strip())
    if credential is None:
        logger.warning("login_unknown_operator", operator=x_operator)
        raise AuthenticationError("Invalid username.")

    settings = get_settings()
    if not verify_access_code(x_access_code, settings.login_timezone, settings.login_tolerance_minutes):
        logger.warning("login_bad_access_code", operator=credential.display_name)
        raise AuthenticationError("Invalid password.")

    return credential.display_name


@router.get("/whoami", response_model=OperatorResponse)
async def whoami(operator: str = Depends(verify_operator)) -> OperatorResponse:
    return OperatorResponse(operator=operator)
