"""Notification preference endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from notification_engine.core.auth import get_current_user_id
from notification_engine.core.database import get_db
from notification_engine.repositories.notification_preference_repository import (
    NotificationPreferenceRepository,
)
from notification_engine.schemas.notification_preference import (
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)

router = APIRouter()


@router.get(
    "/",
    response_model=NotificationPreferenceResponse,
    summary="Get notification preferences",
)
async def get_preferences(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationPreferenceResponse:
    """Stored preferences, or the defaults when none were saved."""
    repo = NotificationPreferenceRepository(db)
    return NotificationPreferenceResponse.model_validate(repo.get_or_default(user_id))


@router.put(
    "/",
    response_model=NotificationPreferenceResponse,
    summary="Update notification preferences",
    responses={422: {"description": "Validation error"}},
)
async def update_preferences(
    data: NotificationPreferenceUpdate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationPreferenceResponse:
    """Update only the fields supplied."""
    repo = NotificationPreferenceRepository(db)
    preference = repo.upsert(user_id, data.model_dump(exclude_unset=True))
    return NotificationPreferenceResponse.model_validate(preference)
