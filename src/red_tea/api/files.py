"""File upload API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from red_tea.schemas.external import UploadUrlResponse
from red_tea.services.moderation import require_active_user
from red_tea.services.storage import StorageClient, get_storage_client
from red_tea.utils.security import CurrentPrincipal

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/upload-url", response_model=UploadUrlResponse)
async def create_upload_url(
    principal: CurrentPrincipal,
    storage: StorageClient | None = Depends(get_storage_client),
) -> UploadUrlResponse:
    """Get a one-time URL to upload a post or verification image to.

    The storage id returned by the upload is then passed as ``file_id`` when
    creating a post, or as a verification image during onboarding.

    Raises:
        HTTPException 503: If file storage is not configured
    """
    if principal.user_id is not None:
        require_active_user(principal)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="File storage is not configured",
        )
    upload_url = await storage.generate_upload_url()
    return UploadUrlResponse(upload_url=upload_url)
