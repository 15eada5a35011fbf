"""Notification API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from notification_engine.core.auth import get_current_user_id
from notification_engine.core.config import settings
from notification_engine.core.database import get_db
from notification_engine.core.errors import to_http_exception
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.schemas.notification import (
    DeliveryAttemptResponse,
    NotificationCreate,
    NotificationInteractionCreate,
    NotificationInteractionResponse,
    NotificationResponse,
    NotificationSnoozeRequest,
    NotificationStatsResponse,
    NotificationTypeResponse,
)
from notification_engine.services.notification_service import NotificationService
from notification_engine.services.notification_types import DEFAULT_NOTIFICATION_TYPES
from notification_engine.services.snooze_service import SnoozeManager

router = APIRouter()


def _service(db: Session) -> NotificationService:
    return NotificationService(db, default_max_snooze_count=settings.DEFAULT_MAX_SNOOZE_COUNT)


@router.post(
    "/",
    response_model=NotificationResponse,
    status_code=201,
    summary="Create notification",
    responses={
        400: {"description": "Unknown notification type"},
        422: {"description": "Validation error"},
    },
)
async def create_notification(
    data: NotificationCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationResponse:
    """Schedule a notification for delivery."""
    try:
        notification = _service(db).create_notification(user_id, data)
    except ValueError as e:
        raise to_http_exception(e) from None
    return NotificationResponse.model_validate(notification)


@router.get(
    "/",
    response_model=list[NotificationResponse],
    summary="List notifications",
)
async def list_notifications(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    status: str | None = None,
    category: str | None = None,
    is_reminder: bool | None = None,
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> list[NotificationResponse]:
    """List notifications with optional filters."""
    repo = NotificationRepository(db)
    response.headers["X-Total-Count"] = str(
        repo.count(user_id, status=status, category=category, is_reminder=is_reminder)
    )
    notifications = repo.get_all(
        user_id,
        skip=skip,
        limit=limit,
        status=status,
        category=category,
        is_reminder=is_reminder,
        order_by=order_by,
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get(
    "/stats",
    response_model=NotificationStatsResponse,
    summary="Notification statistics",
)
async def get_notification_stats(
    days: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationStatsResponse:
    """Counts by status, type and day, with delivery and click rates."""
    stats = _service(db).get_stats(user_id, days=days)
    return NotificationStatsResponse.model_validate(stats)


@router.get(
    "/types",
    response_model=list[NotificationTypeResponse],
    summary="List notification types",
)
async def list_notification_types() -> list[NotificationTypeResponse]:
    """The notification type catalogue with default templates."""
    return [
        NotificationTypeResponse.model_validate(config)
        for config in DEFAULT_NOTIFICATION_TYPES.values()
        if config.is_active
    ]


@router.get(
    "/{notification_id}",
    response_model=NotificationResponse,
    summary="Get notification",
    responses={404: {"description": "Notification not found"}},
)
async def get_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationResponse:
    try:
        notification = _service(db).get_notification(user_id, notification_id)
    except ValueError as e:
        raise to_http_exception(e) from None
    return NotificationResponse.model_validate(notification)


@router.post(
    "/{notification_id}/cancel",
    response_model=NotificationResponse,
    summary="Cancel notification",
    responses={
        404: {"description": "Notification not found"},
        409: {"description": "Notification already sent, failed or cancelled"},
    },
)
async def cancel_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationResponse:
    """Cancel a pending or snoozed notification."""
    try:
        notification = SnoozeManager(db).cancel(notification_id, user_id=user_id)
    except ValueError as e:
        raise to_http_exception(e) from None
    return NotificationResponse.model_validate(notification)


@router.post(
    "/{notification_id}/snooze",
    response_model=NotificationResponse,
    summary="Snooze notification",
    responses={
        404: {"description": "Notification not found"},
        409: {"description": "Notification cannot be snoozed in its current status"},
        422: {"description": "Snooze limit reached"},
    },
)
async def snooze_notification(
    notification_id: UUID,
    data: NotificationSnoozeRequest | None = None,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationResponse:
    """Defer a pending or sent notification by ``minutes``."""
    manager = SnoozeManager(db, default_minutes=settings.DEFAULT_SNOOZE_MINUTES)
    try:
        notification = manager.snooze(
            notification_id,
            minutes=data.minutes if data else None,
            user_id=user_id,
        )
    except ValueError as e:
        raise to_http_exception(e) from None
    return NotificationResponse.model_validate(notification)


@router.post(
    "/{notification_id}/interactions",
    response_model=NotificationInteractionResponse,
    status_code=201,
    summary="Record interaction",
    responses={404: {"description": "Notification not found"}},
)
async def record_interaction(
    notification_id: UUID,
    data: NotificationInteractionCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> NotificationInteractionResponse:
    """Log a view, click or other action. Does not affect delivery."""
    try:
        interaction = _service(db).record_interaction(user_id, notification_id, data)
    except ValueError as e:
        raise to_http_exception(e) from None
    return NotificationInteractionResponse.model_validate(interaction)


@router.get(
    "/{notification_id}/attempts",
    response_model=list[DeliveryAttemptResponse],
    summary="List delivery attempts",
    responses={404: {"description": "Notification not found"}},
)
async def list_delivery_attempts(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> list[DeliveryAttemptResponse]:
    """Delivery attempt log, oldest first."""
    try:
        attempts = _service(db).get_delivery_attempts(user_id, notification_id)
    except ValueError as e:
        raise to_http_exception(e) from None
    return [DeliveryAttemptResponse.model_validate(a) for a in attempts]
