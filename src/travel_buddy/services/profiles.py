"""Profile record business logic."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from travel_buddy.domain.profiles import ProfileForm, ProfileRecord
from travel_buddy.errors import PersistenceError, ProfileNotFound
from travel_buddy.services.events import KeyedChangeStream, Unsubscribe

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for profile records."""

    def get_profile(self, user_id: str) -> ProfileRecord | None:
        """Return the profile for a user, if present."""

    def upsert_fields(self, user_id: str, fields: dict[str, object]) -> None:
        """Merge fields into the user's record, creating it when missing."""

    def find_by_email(self, email: str) -> ProfileRecord | None:
        """Return the profile registered under an email address, if any."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ProfileService:
    """Application service for profile creation, edits, and verification flags."""

    repository: ProfileRepository
    clock: Callable[[], datetime] = _utcnow
    changes: KeyedChangeStream[ProfileRecord | None] = field(
        default_factory=KeyedChangeStream
    )

    def get_profile(self, user_id: str) -> ProfileRecord | None:
        """Return the user's profile, if present."""
        return self.repository.get_profile(user_id)

    def save_profile(
        self, user_id: str, form: ProfileForm, email: str | None = None
    ) -> ProfileRecord | None:
        """Save the profile form and mark the profile as created."""
        fields = form.to_fields()
        fields["profile_created"] = True
        if email:
            fields["email"] = email.strip().lower()
        self.repository.upsert_fields(user_id, fields)
        _logger.info("Profile saved: user_id=%s", user_id)
        return self._publish(user_id)

    def update_profile(self, user_id: str, form: ProfileForm) -> ProfileRecord | None:
        """Apply edits to an existing profile."""
        existing = self.repository.get_profile(user_id)
        if existing is None or not existing.profile_created:
            raise ProfileNotFound(user_id)
        self.repository.upsert_fields(user_id, form.to_fields())
        return self._publish(user_id)

    def mark_verified(self, user_id: str) -> datetime:
        """Record a successful identity verification.

        Only the write can fail this call; subscribers are notified on a
        best-effort basis afterwards. Returns the stored ``verified_at``.
        """
        verified_at = self.clock()
        self.repository.upsert_fields(
            user_id,
            {"is_verified": True, "verified_at": verified_at.isoformat()},
        )
        _logger.info("Identity verified: user_id=%s", user_id)
        self._notify(user_id)
        return verified_at

    def find_by_email(self, email: str) -> ProfileRecord | None:
        """Look up a profile by the email saved with it."""
        cleaned = email.strip().lower()
        if not cleaned:
            return None
        return self.repository.find_by_email(cleaned)

    def is_verified(self, user_id: str) -> bool:
        """One-shot read of the stored verification flag."""
        profile = self.repository.get_profile(user_id)
        return bool(profile and profile.is_verified)

    def subscribe(
        self, user_id: str, callback: Callable[[ProfileRecord | None], None]
    ) -> Unsubscribe:
        """Push the user's profile to the callback after every write."""
        return self.changes.subscribe(user_id, callback)

    def _publish(self, user_id: str) -> ProfileRecord | None:
        profile = self.repository.get_profile(user_id)
        self.changes.publish(user_id, profile)
        return profile

    def _notify(self, user_id: str) -> None:
        if self.changes.subscriber_count(user_id) == 0:
            return
        try:
            profile = self.repository.get_profile(user_id)
        except PersistenceError:
            _logger.warning(
                "Failed to reload profile after write: user_id=%s", user_id
            )
            return
        self.changes.publish(user_id, profile)
