"""Domain errors raised by the notification engine.

All errors derive from ``ValueError`` so routers can translate them the same
way they translate other validation failures. Delivery failures are not
exceptions: channel adapters report them as ``DeliveryOutcome`` values.
"""

from uuid import UUID

from fastapi import HTTPException


class NotFoundError(ValueError):
    """The requested record does not exist."""

    def __init__(self, entity: str, entity_id: UUID | str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ValueError):
    """A compare-and-transition lost a race.

    The caller should re-read the record and retry its intent with fresh state.
    """

    def __init__(self, notification_id: UUID, message: str | None = None):
        super().__init__(
            message or f"Notification {notification_id} was modified concurrently"
        )
        self.notification_id = notification_id


class InvalidTransitionError(ConflictError):
    """The requested status change is not an edge of the state machine."""

    def __init__(self, notification_id: UUID, current_status: str, new_status: str):
        super().__init__(
            notification_id,
            f"Cannot move notification {notification_id} from '{current_status}' "
            f"to '{new_status}'",
        )
        self.current_status = current_status
        self.new_status = new_status


class SnoozeLimitExceeded(ValueError):
    """The notification has already been snoozed the maximum number of times."""

    def __init__(self, notification_id: UUID, max_snooze_count: int):
        super().__init__(
            f"Notification {notification_id} reached its snooze limit of {max_snooze_count}"
        )
        self.notification_id = notification_id
        self.max_snooze_count = max_snooze_count


def to_http_exception(exc: ValueError) -> HTTPException:
    """Map a domain error onto the HTTP status the API reports it with."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, SnoozeLimitExceeded):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
