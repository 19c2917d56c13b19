from fastapi import APIRouter, Depends

from ..config import CredentialStore, get_credentials
from ..dependencies import get_batch_runner
from ..models.contracts import (
    ApproveBatchRequest,
    BatchResultResponse,
    CredentialListResponse,
)
from ..services.batch_runner import BatchRunner
from .auth import verify_operator

router = APIRouter(tags=["Approvals"], prefix="/api")


@router.post("/approvals/batch", response_model=BatchResultResponse)
async def approve_batch(
    body: ApproveBatchRequest,
    operator: str = Depends(verify_operator),
    runner: BatchRunner = Depends(get_batch_runner),
) -> BatchResultResponse:
    """
    Approve every PR URL in the newline-delimited blob with the selected credential.

    Per-PR failures are part of the result, not HTTP errors. An unknown
    credential yields a result with credential_selected=false and nothing processed.
    """
    result = await runner.approve_batch(body.pr_urls, body.selected_display_name, actor=operator)
    return BatchResultResponse.from_result(result)


@router.get("/credentials", response_model=CredentialListResponse)
async def list_credentials(
    operator: str = Depends(verify_operator),
    credentials: CredentialStore = Depends(get_credentials),
) -> CredentialListResponse:
    # Display names only; tokens never leave the process.
    return CredentialListResponse(display_names=credentials.display_names)
