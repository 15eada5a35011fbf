from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notification_engine.core.config import settings
from notification_engine.routers import (
    notification_preferences,
    notifications,
    push_tokens,
    reminders,
)

OPENAPI_TAGS = [
    {"name": "Notifications", "description": "Schedule, cancel, snooze and inspect notifications."},
    {"name": "Push Tokens", "description": "Register and deregister device push tokens."},
    {"name": "Preferences", "description": "Per-user channels, categories and quiet hours."},
    {"name": "Reminders", "description": "Recurring reminder definitions."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Notification scheduling and delivery engine. Schedules notifications, "
        "honors quiet hours and snoozes, generates recurring reminders and delivers "
        "over push, email and SMS with bounded retries."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])
app.include_router(push_tokens.router, prefix="/v1/push_tokens", tags=["Push Tokens"])
app.include_router(
    notification_preferences.router,
    prefix="/v1/notification_preferences",
    tags=["Preferences"],
)
app.include_router(reminders.router, prefix="/v1/reminders", tags=["Reminders"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
