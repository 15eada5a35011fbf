"""Push token registration endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from notification_engine.core.auth import get_current_user_id
from notification_engine.core.database import get_db
from notification_engine.models.push_token import PushPlatform
from notification_engine.repositories.push_token_repository import PushTokenRepository
from notification_engine.schemas.push_token import (
    PushTokenDeregisterResponse,
    PushTokenRegister,
    PushTokenResponse,
)

router = APIRouter()


@router.post(
    "/",
    response_model=PushTokenResponse,
    status_code=201,
    summary="Register push token",
    responses={422: {"description": "Validation error"}},
)
async def register_push_token(
    data: PushTokenRegister,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> PushTokenResponse:
    """Register a device token, reactivating the device's existing record."""
    repo = PushTokenRepository(db)
    token = repo.register(user_id, data.device_id, str(data.platform), data.token)
    return PushTokenResponse.model_validate(token)


@router.get(
    "/",
    response_model=list[PushTokenResponse],
    summary="List push tokens",
)
async def list_push_tokens(
    platform: PushPlatform | None = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> list[PushTokenResponse]:
    repo = PushTokenRepository(db)
    tokens = repo.get_all(
        user_id,
        platform=platform.value if platform else None,
        active_only=active_only,
    )
    return [PushTokenResponse.model_validate(t) for t in tokens]


@router.delete(
    "/{device_id}",
    response_model=PushTokenDeregisterResponse,
    summary="Deregister device",
    responses={404: {"description": "No active token for this device"}},
)
async def deregister_push_token(
    device_id: str,
    platform: PushPlatform | None = Query(default=None),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> PushTokenDeregisterResponse:
    """Deactivate the device's tokens. Records are kept, not deleted."""
    repo = PushTokenRepository(db)
    count = repo.deactivate_device(
        user_id, device_id, platform=platform.value if platform else None
    )
    if count == 0:
        raise HTTPException(status_code=404, detail="No active token for this device")
    return PushTokenDeregisterResponse(deactivated=count)
