"""Identity provider webhook endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from svix.webhooks import WebhookVerificationError

from red_tea.config import get_settings
from red_tea.database import get_db
from red_tea.schemas.webhook import IdentityEvent
from red_tea.services import directory
from red_tea.services.storage import StorageClient, get_storage_client
from red_tea.utils.security import webhook_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/identity")
async def identity_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> dict[str, str]:
    """Mirror identity provider user lifecycle events into the directory.

    Handles ``user.created``, ``user.updated`` and ``user.deleted``; other
    event types are acknowledged and ignored.

    Raises:
        HTTPException 400: If the signature or payload is invalid
    """
    payload = await request.body()
    settings = get_settings()

    try:
        verified = webhook_verifier(settings.identity_webhook_secret).verify(
            payload, dict(request.headers)
        )
        event = IdentityEvent.model_validate(verified)
    except WebhookVerificationError as exc:
        logger.warning("Rejected identity webhook: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook signature",
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload",
        ) from exc

    subject_id = event.data.id
    if not subject_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing user id",
        )

    if event.type in ("user.created", "user.updated"):
        await directory.upsert_from_identity_event(
            db,
            subject_id,
            email=event.data.primary_email,
            name=event.data.full_name,
        )
    elif event.type == "user.deleted":
        await directory.remove_from_identity_event(db, storage, subject_id)
    else:
        logger.debug("Ignoring identity event %s", event.type)

    return {"status": "received"}
