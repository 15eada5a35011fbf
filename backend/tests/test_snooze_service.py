"""Tests for snoozing and cancelling notifications."""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest

from notification_engine.core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SnoozeLimitExceeded,
)
from notification_engine.repositories.notification_interaction_repository import (
    NotificationInteractionRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.services.snooze_service import SnoozeManager
from tests.conftest import NOON, OTHER_USER_ID, create_notification


class TestSnooze:
    def test_snooze_pending(self, db_session) -> None:
        notification = create_notification(db_session)

        snoozed = SnoozeManager(db_session).snooze(notification.id, minutes=15, now=NOON)

        assert snoozed.status == "snoozed"
        assert snoozed.snooze_until == NOON + timedelta(minutes=15)
        assert snoozed.snooze_count == 1

    def test_snooze_sent(self, db_session) -> None:
        notification = create_notification(db_session, status="sent", sent_at=NOON)

        snoozed = SnoozeManager(db_session).snooze(notification.id, minutes=5, now=NOON)

        assert snoozed.status == "snoozed"
        assert snoozed.sent_at == NOON

    def test_default_duration(self, db_session) -> None:
        notification = create_notification(db_session)

        snoozed = SnoozeManager(db_session, default_minutes=30).snooze(notification.id, now=NOON)

        assert snoozed.snooze_until == NOON + timedelta(minutes=30)

    def test_records_interaction(self, db_session, user_id) -> None:
        notification = create_notification(db_session)
        SnoozeManager(db_session).snooze(notification.id, minutes=10, now=NOON)

        interactions = NotificationInteractionRepository(db_session).get_for_notification(
            notification.id
        )
        assert len(interactions) == 1
        assert interactions[0].action_type == "snoozed"
        assert interactions[0].user_id == user_id
        assert interactions[0].action_data["minutes"] == 10

    def test_limit_reached_leaves_state_unchanged(self, db_session) -> None:
        """The (max+1)-th snooze raises and nothing about the notification moves."""
        notification = create_notification(db_session, max_snooze_count=2)
        repo = NotificationRepository(db_session)
        manager = SnoozeManager(db_session)

        for round_ in range(2):
            manager.snooze(notification.id, minutes=10, now=NOON)
            # Back to pending, as the scheduler does when the snooze expires
            current = repo.get(notification.id)
            repo.transition(notification.id, "snoozed", "pending", fields={"snooze_until": None})
            assert current.snooze_count == round_ + 1

        before = repo.get(notification.id)
        snapshot = (before.status, before.snooze_count, before.snooze_until, before.version)

        with pytest.raises(SnoozeLimitExceeded):
            manager.snooze(notification.id, minutes=10, now=NOON)

        after = repo.get(notification.id)
        assert (after.status, after.snooze_count, after.snooze_until, after.version) == snapshot
        assert after.snooze_count <= after.max_snooze_count

    def test_zero_max_snooze_count(self, db_session) -> None:
        notification = create_notification(db_session, max_snooze_count=0)
        with pytest.raises(SnoozeLimitExceeded):
            SnoozeManager(db_session).snooze(notification.id, minutes=10)

    @pytest.mark.parametrize("status", ["snoozed", "failed", "cancelled"])
    def test_rejects_other_statuses(self, db_session, status) -> None:
        notification = create_notification(db_session, status=status)
        with pytest.raises(InvalidTransitionError):
            SnoozeManager(db_session).snooze(notification.id, minutes=10)

    def test_rejects_non_positive_duration(self, db_session) -> None:
        notification = create_notification(db_session)
        with pytest.raises(ValueError, match="positive"):
            SnoozeManager(db_session).snooze(notification.id, minutes=0)

    def test_other_users_notification_is_not_found(self, db_session) -> None:
        notification = create_notification(db_session, user_id=OTHER_USER_ID)
        with pytest.raises(NotFoundError):
            SnoozeManager(db_session).snooze(notification.id, minutes=10, user_id=uuid.uuid4())

    def test_retries_after_conflict(self, db_session) -> None:
        notification = create_notification(db_session)
        manager = SnoozeManager(db_session)
        real_transition = manager.notifications.transition
        calls = []

        def flaky_transition(*args, **kwargs):  # type: ignore[no-untyped-def]
            calls.append(kwargs.get("expected_version"))
            if len(calls) == 1:
                raise ConflictError(notification.id)
            return real_transition(*args, **kwargs)

        with patch.object(manager.notifications, "transition", side_effect=flaky_transition):
            snoozed = manager.snooze(notification.id, minutes=10, now=NOON)

        assert snoozed.status == "snoozed"
        assert len(calls) == 2

    def test_gives_up_after_repeated_conflicts(self, db_session) -> None:
        notification = create_notification(db_session)
        manager = SnoozeManager(db_session)

        with (
            patch.object(
                manager.notifications,
                "transition",
                side_effect=ConflictError(notification.id),
            ),
            pytest.raises(ConflictError),
        ):
            manager.snooze(notification.id, minutes=10, now=NOON)


class TestCancel:
    @pytest.mark.parametrize("status", ["pending", "snoozed"])
    def test_cancel(self, db_session, status) -> None:
        notification = create_notification(db_session, status=status)

        cancelled = SnoozeManager(db_session).cancel(notification.id)

        assert cancelled.status == "cancelled"

    @pytest.mark.parametrize("status", ["sent", "failed", "cancelled"])
    def test_cannot_cancel_finished(self, db_session, status) -> None:
        notification = create_notification(db_session, status=status)

        with pytest.raises(InvalidTransitionError) as exc_info:
            SnoozeManager(db_session).cancel(notification.id)

        assert exc_info.value.current_status == status
        assert status in str(exc_info.value)

    def test_cancel_wins_over_inflight_dispatch(self, db_session) -> None:
        notification = create_notification(db_session)
        repo = NotificationRepository(db_session)
        repo.claim(notification.id, "pending", 0, NOON + timedelta(minutes=2), NOON)

        cancelled = SnoozeManager(db_session).cancel(notification.id)

        assert cancelled.status == "cancelled"
        assert cancelled.locked_until is None
        # The dispatcher's outcome, written with the version it claimed, now loses
        with pytest.raises(ConflictError):
            repo.transition(notification.id, "pending", "sent", expected_version=1)
        assert repo.get(notification.id).status == "cancelled"

    def test_cancel_missing(self, db_session) -> None:
        with pytest.raises(NotFoundError):
            SnoozeManager(db_session).cancel(uuid.uuid4())
