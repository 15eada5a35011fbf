"""Push token repository for data access."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.models.push_token import PushToken
from notification_engine.models.shared import utc_now


class PushTokenRepository:
    def __init__(self, db: Session):
        self.db = db

    def register(
        self,
        user_id: UUID,
        device_id: str,
        platform: str,
        token: str,
    ) -> PushToken:
        """Create a token, or refresh and reactivate the existing device record."""
        now = utc_now()
        existing = self.get_by_device(user_id, device_id, platform)
        if existing is not None:
            existing.token = token  # type: ignore[assignment]
            existing.is_active = True  # type: ignore[assignment]
            existing.deactivated_at = None  # type: ignore[assignment]
            existing.last_used_at = now  # type: ignore[assignment]
            self.db.commit()
            self.db.refresh(existing)
            return existing

        push_token = PushToken(
            user_id=user_id,
            device_id=device_id,
            platform=platform,
            token=token,
            is_active=True,
            last_used_at=now,
        )
        self.db.add(push_token)
        self.db.commit()
        self.db.refresh(push_token)
        return push_token

    def get_by_id(self, token_id: UUID) -> PushToken | None:
        return self.db.query(PushToken).filter(PushToken.id == token_id).first()

    def get_by_device(self, user_id: UUID, device_id: str, platform: str) -> PushToken | None:
        return (
            self.db.query(PushToken)
            .filter(
                PushToken.user_id == user_id,
                PushToken.device_id == device_id,
                PushToken.platform == platform,
            )
            .first()
        )

    def get_all(
        self,
        user_id: UUID,
        platform: str | None = None,
        active_only: bool = False,
    ) -> list[PushToken]:
        query = self.db.query(PushToken).filter(PushToken.user_id == user_id)
        if platform is not None:
            query = query.filter(PushToken.platform == platform)
        if active_only:
            query = query.filter(PushToken.is_active == True)  # noqa: E712
        return query.order_by(PushToken.last_used_at.desc()).all()

    def get_active_for_user(self, user_id: UUID) -> list[PushToken]:
        return self.get_all(user_id, active_only=True)

    def deactivate(self, token_id: UUID) -> bool:
        """Mark a token inactive.

        Idempotent: returns False (and changes nothing) when the token is
        already inactive or missing.
        """
        updated = (
            self.db.query(PushToken)
            .filter(PushToken.id == token_id, PushToken.is_active == True)  # noqa: E712
            .update(
                {"is_active": False, "deactivated_at": utc_now(), "updated_at": utc_now()},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated > 0

    def deactivate_device(
        self,
        user_id: UUID,
        device_id: str,
        platform: str | None = None,
    ) -> int:
        """Deactivate every token for a device (optionally one platform)."""
        query = self.db.query(PushToken).filter(
            PushToken.user_id == user_id,
            PushToken.device_id == device_id,
            PushToken.is_active == True,  # noqa: E712
        )
        if platform is not None:
            query = query.filter(PushToken.platform == platform)
        count = query.update(
            {"is_active": False, "deactivated_at": utc_now(), "updated_at": utc_now()},
            synchronize_session=False,
        )
        self.db.commit()
        return count

    def touch(self, token_id: UUID, used_at: datetime | None = None) -> None:
        """Refresh ``last_used_at`` after a successful delivery."""
        self.db.query(PushToken).filter(PushToken.id == token_id).update(
            {"last_used_at": used_at or utc_now()},
            synchronize_session=False,
        )
        self.db.commit()
