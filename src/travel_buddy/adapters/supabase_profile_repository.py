"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

import httpx
from supabase import Client, PostgrestAPIError

from travel_buddy.domain.profiles import Address, ProfileRecord
from travel_buddy.errors import PersistenceError
from travel_buddy.services.profiles import ProfileRepository

_PROFILE_COLUMNS = (
    "user_id, profile_created, is_verified, verified_at, full_name, "
    "date_of_birth, gender, address, about_me, travel_interests, profile_image_ref, "
    "email"
)


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for profile persistence."""

    client: Client
    table: str = "users"

    def get_profile(self, user_id: str) -> ProfileRecord | None:
        """Return the profile for a user id, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select(_PROFILE_COLUMNS)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"Failed to load profile {user_id}") from exc
        if not response.data:
            return None
        return _to_record(response.data[0])

    def upsert_fields(self, user_id: str, fields: dict[str, object]) -> None:
        """Merge fields into the user's row, inserting it when missing."""
        payload = {
            **fields,
            "user_id": user_id,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        try:
            self.client.table(self.table).upsert(
                payload, on_conflict="user_id"
            ).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"Failed to save profile {user_id}") from exc

    def find_by_email(self, email: str) -> ProfileRecord | None:
        """Return the profile saved under an email address, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select(_PROFILE_COLUMNS)
                .eq("email", email)
                .limit(1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("Failed to look up profile by email") from exc
        if not response.data:
            return None
        return _to_record(response.data[0])


def _to_record(row: dict[str, object]) -> ProfileRecord:
    """Map a database row to a profile record."""
    is_verified = bool(row.get("is_verified"))
    verified_at = _parse_datetime(row.get("verified_at")) if is_verified else None
    address = row.get("address")
    if not isinstance(address, dict):
        address = {}
    return ProfileRecord(
        user_id=str(row["user_id"]),
        profile_created=bool(row.get("profile_created")),
        is_verified=is_verified and verified_at is not None,
        verified_at=verified_at,
        full_name=str(row.get("full_name") or ""),
        date_of_birth=_parse_date(row.get("date_of_birth")),
        gender=row.get("gender") or None,
        address=Address.model_validate(address),
        about_me=str(row.get("about_me") or ""),
        travel_interests=frozenset(row.get("travel_interests") or ()),
        profile_image_ref=row.get("profile_image_ref") or None,
        email=row.get("email") or None,
    )


def _parse_datetime(value: object) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _parse_date(value: object) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])
