from contextlib import asynccontextmanager
import os
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import structlog
from .routers.approvals import router as approvals_router
from .routers.auth import router as auth_router
from .routers.health import router as health_router
from .routers.metrics import router as metrics_router
from prapprover import __version__ as PRA_VERSION
from prapprover.utils.errors import (
    ConfigurationError,
    PRApproverError,
    prapprover_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from prapprover.utils.log import configure_logging
from .config import get_credentials, get_settings
from .dependencies import get_batch_runner

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # on startup
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    try:
        os.makedirs(settings.audit_dir, exist_ok=True)
    except OSError as e:
        # /readyz reports it; writes retry the directory on demand
        logger.warning("audit_dir_unavailable", path=settings.audit_dir, error=str(e))
    try:
        credentials = len(get_credentials())
        get_batch_runner()
    except ConfigurationError as e:
        logger.error("credentials_unavailable", error=e.message)
        credentials = 0
    logger.info(
        "pr_approver_started",
        version=PRA_VERSION,
        credentials=credentials,
        audit_dir=settings.audit_dir,
    )
    yield
    logger.info("pr_approver_stopped")


app = FastAPI(title="PR Approver", version=PRA_VERSION, lifespan=lifespan)

origins = list(get_settings().allowed_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_exception_handler(PRApproverError, prapprover_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def root():
    return {
        "name": "PR Approver",
        "version": PRA_VERSION,
        "description": "Batch-approve GitHub pull requests with an audit trail",
        "endpoints": {
            "health": "/readyz",
            "whoami": "GET /api/auth/whoami",
            "credentials": "GET /api/credentials",
            "approve": "POST /api/approvals/batch",
        },
    }


app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(auth_router)
app.include_router(approvals_router)
