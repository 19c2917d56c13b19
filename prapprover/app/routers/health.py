"""
Health check endpoints for PR Approver.
Provides liveness and readiness probes for container deployments.
"""
import os
import time
from typing import Dict, Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from prapprover import __version__ as PRA_VERSION
from prapprover.utils.errors import ConfigurationError
from ..config import get_credentials, get_settings

router = APIRouter(tags=["Health"])

_startup_time = time.time()


@router.get("/healthz", summary="Liveness probe")
async def liveness_probe() -> Dict[str, Any]:
    """Returns 200 while the process is running."""
    return {
        "status": "ok",
        "timestamp": time.time(),
        "uptime_seconds": int(time.time() - _startup_time),
        "service": "pr-approver",
        "version": PRA_VERSION,
    }


def _audit_dir_status(path: str) -> Dict[str, Any]:
    if os.path.isdir(path):
        if os.access(path, os.W_OK):
            return {"status": "ok", "path": path}
        return {"status": "error", "path": path, "error": "audit directory is not writable"}
    # Created on first write; the parent has to allow that.
    parent = os.path.dirname(os.path.abspath(path)) or "."
    while not os.path.exists(parent):
        parent = os.path.dirname(parent)
    if os.path.isdir(parent) and os.access(parent, os.W_OK):
        return {"status": "ok", "path": path, "mode": "create-on-demand"}
    return {"status": "error", "path": path, "error": "audit directory cannot be created"}


@router.get("/readyz", summary="Readiness probe")
async def readiness_probe() -> Dict[str, Any]:
    """
    Returns 200 when credentials are loaded and the audit log can be written,
    503 otherwise.
    """
    checks = {}
    overall_status = "ok"

    try:
        count = len(get_credentials())
        if count:
            checks["credentials"] = {"status": "ok", "count": count}
        else:
            checks["credentials"] = {"status": "error", "error": "no credentials configured"}
            overall_status = "error"
    except ConfigurationError as e:
        checks["credentials"] = {"status": "error", "error": e.message}
        overall_status = "error"

    audit = _audit_dir_status(get_settings().audit_dir)
    checks["audit_log"] = audit
    if audit["status"] != "ok":
        overall_status = "error"

    response_data = {
        "status": overall_status,
        "timestamp": time.time(),
        "checks": checks,
        "service": "pr-approver",
        "version": PRA_VERSION,
    }

    if overall_status == "error":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response_data
        )

    return response_data
