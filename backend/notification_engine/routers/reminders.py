"""Recurring reminder definition endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from notification_engine.core.auth import get_current_user_id
from notification_engine.core.database import get_db
from notification_engine.core.errors import to_http_exception
from notification_engine.repositories.reminder_definition_repository import (
    ReminderDefinitionRepository,
)
from notification_engine.schemas.reminder import (
    ReminderDefinitionCreate,
    ReminderDefinitionResponse,
    ReminderDefinitionUpdate,
)
from notification_engine.services.notification_service import NotificationService

router = APIRouter()


@router.post(
    "/",
    response_model=ReminderDefinitionResponse,
    status_code=201,
    summary="Create reminder",
    responses={
        400: {"description": "Unknown notification type"},
        422: {"description": "Validation error"},
    },
)
async def create_reminder(
    data: ReminderDefinitionCreate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> ReminderDefinitionResponse:
    try:
        definition = NotificationService(db).create_reminder(user_id, data)
    except ValueError as e:
        raise to_http_exception(e) from None
    return ReminderDefinitionResponse.model_validate(definition)


@router.get(
    "/",
    response_model=list[ReminderDefinitionResponse],
    summary="List reminders",
)
async def list_reminders(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    is_enabled: bool | None = None,
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> list[ReminderDefinitionResponse]:
    repo = ReminderDefinitionRepository(db)
    definitions = repo.get_all(
        user_id, skip=skip, limit=limit, is_enabled=is_enabled, order_by=order_by
    )
    response.headers["X-Total-Count"] = str(len(definitions))
    return [ReminderDefinitionResponse.model_validate(d) for d in definitions]


@router.get(
    "/{definition_id}",
    response_model=ReminderDefinitionResponse,
    summary="Get reminder",
    responses={404: {"description": "Reminder definition not found"}},
)
async def get_reminder(
    definition_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> ReminderDefinitionResponse:
    try:
        definition = NotificationService(db).get_reminder(user_id, definition_id)
    except ValueError as e:
        raise to_http_exception(e) from None
    return ReminderDefinitionResponse.model_validate(definition)


@router.patch(
    "/{definition_id}",
    response_model=ReminderDefinitionResponse,
    summary="Update reminder",
    responses={
        400: {"description": "Invalid schedule"},
        404: {"description": "Reminder definition not found"},
    },
)
async def update_reminder(
    definition_id: UUID,
    data: ReminderDefinitionUpdate,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> ReminderDefinitionResponse:
    try:
        definition = NotificationService(db).update_reminder(user_id, definition_id, data)
    except ValueError as e:
        raise to_http_exception(e) from None
    return ReminderDefinitionResponse.model_validate(definition)


@router.delete(
    "/{definition_id}",
    response_model=ReminderDefinitionResponse,
    summary="Disable reminder",
    responses={404: {"description": "Reminder definition not found"}},
)
async def disable_reminder(
    definition_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
) -> ReminderDefinitionResponse:
    """Stop generating from this definition; it is kept for history."""
    try:
        definition = NotificationService(db).disable_reminder(user_id, definition_id)
    except ValueError as e:
        raise to_http_exception(e) from None
    return ReminderDefinitionResponse.model_validate(definition)
