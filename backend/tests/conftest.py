"""Shared test fixtures for all test modules."""

import asyncio
import contextlib
import uuid
from datetime import UTC, datetime

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import notification_engine.models  # noqa: F401  registers every table on Base
from notification_engine.core import database as db_module
from notification_engine.core.database import Base
from notification_engine.models.shared import DEFAULT_USER_ID
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.repositories.push_token_repository import PushTokenRepository
from notification_engine.services.channels.base import (
    ChannelAdapter,
    ChannelPayload,
    Destination,
    Recipient,
    SendResult,
    email_destinations,
    phone_destinations,
    push_destinations,
)

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

OTHER_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

# Wednesday 2026-10-14 12:00 UTC, outside any test's quiet window
NOON = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)


_ADDRESSING = {
    "push": push_destinations,
    "email": email_destinations,
    "sms": phone_destinations,
}


class FakeChannelAdapter(ChannelAdapter):
    """Channel adapter that records calls and answers from a script.

    ``results`` maps a destination address to the ``SendResult`` to return;
    unknown addresses get ``default``. ``delay`` makes ``send`` sleep first,
    ``error`` makes it raise.
    """

    def __init__(
        self,
        channel: str = "push",
        results: dict[str, SendResult] | None = None,
        default: SendResult | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self._channel = channel
        self.results = results or {}
        self.default = default or SendResult.ok(external_id="fake-1")
        self.delay = delay
        self.error = error
        self.calls: list[tuple[Destination, ChannelPayload]] = []

    @property
    def channel(self) -> str:
        return self._channel

    def destinations(self, recipient: Recipient) -> list[Destination] | str:
        return _ADDRESSING[self._channel](recipient)

    async def send(self, destination: Destination, payload: ChannelPayload) -> SendResult:
        self.calls.append((destination, payload))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.results.get(destination.address, self.default)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """A session on the in-memory test database."""
    db = _TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user_id():
    """Return the default user ID for tests."""
    return DEFAULT_USER_ID


def create_notification(db, **overrides):  # type: ignore[no-untyped-def]
    """Insert a pending push notification due at ``NOON`` for the default user."""
    fields = {
        "user_id": DEFAULT_USER_ID,
        "notification_type": "task_due",
        "category": "task",
        "title": "Task Due Soon",
        "body": "You have a task due: Write report",
        "data": {"task_title": "Write report"},
        "scheduled_at": NOON,
        "delivery_methods": ["push"],
        "priority": "normal",
    }
    fields.update(overrides)
    return NotificationRepository(db).create(**fields)


def register_token(  # type: ignore[no-untyped-def]
    db, token="token-a", device_id="device-a", platform="android", user=None
):
    return PushTokenRepository(db).register(user or DEFAULT_USER_ID, device_id, platform, token)
