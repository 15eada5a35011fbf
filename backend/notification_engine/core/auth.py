from uuid import UUID

from fastapi import HTTPException, Request

from notification_engine.models.shared import DEFAULT_USER_ID


def get_current_user_id(request: Request) -> UUID:
    """Identify the calling user from the ``X-User-Id`` header.

    Authentication happens upstream of this service; requests without the
    header act as the default user.
    """
    user_id_header = request.headers.get("X-User-Id")
    if not user_id_header:
        return DEFAULT_USER_ID
    try:
        return UUID(user_id_header)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-User-Id header") from None
