"""Tests for engine construction."""

import uuid

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from notification_engine.core.database import Base, build_engine
from notification_engine.models.reminder_definition import ReminderOccurrence


def test_sqlite_enforces_foreign_keys():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine)()
    try:
        assert db.execute(text("PRAGMA foreign_keys")).scalar() == 1

        db.add(ReminderOccurrence(reminder_definition_id=uuid.uuid4(), period_bucket="2026-10-14"))
        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.close()
        engine.dispose()
