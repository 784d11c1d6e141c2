"""Supabase-backed trip repository."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

import httpx
from supabase import Client, PostgrestAPIError

from travel_buddy.domain.trips import Place, Trip
from travel_buddy.errors import PersistenceError, TripNotFound
from travel_buddy.services.trips import TripRepository

_TRIP_COLUMNS = (
    "id, user_id, trip_type, starting_point, destination, start_date, end_date, "
    "description, meeting_point, trip_picture_ref, participants, created_at"
)


@dataclass
class SupabaseTripRepository(TripRepository):
    """Supabase implementation for trip persistence."""

    client: Client
    table: str = "trips"

    def create_trip(self, user_id: str, fields: dict[str, object]) -> Trip:
        """Insert a trip and return the stored row."""
        payload = {
            **fields,
            "user_id": user_id,
            "participants": [],
            "created_at": datetime.now(tz=UTC).isoformat(),
        }
        try:
            response = self.client.table(self.table).insert(payload).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"Failed to post trip for {user_id}") from exc
        if not response.data:
            raise PersistenceError(f"Trip insert returned no row for {user_id}")
        return _to_trip(response.data[0])

    def list_trips(self, limit: int) -> list[Trip]:
        """Return recent trips, newest first."""
        try:
            response = (
                self.client.table(self.table)
                .select(_TRIP_COLUMNS)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("Failed to list trips") from exc
        return [_to_trip(row) for row in response.data or []]

    def get_trip(self, trip_id: str) -> Trip | None:
        """Return a trip by id, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select(_TRIP_COLUMNS)
                .eq("id", trip_id)
                .limit(1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"Failed to load trip {trip_id}") from exc
        if not response.data:
            return None
        return _to_trip(response.data[0])

    def set_participants(self, trip_id: str, participants: list[str]) -> Trip:
        """Replace the participant list of a trip."""
        try:
            response = (
                self.client.table(self.table)
                .update({"participants": participants})
                .eq("id", trip_id)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"Failed to update trip {trip_id}") from exc
        if not response.data:
            raise TripNotFound(trip_id)
        return _to_trip(response.data[0])


def _to_trip(row: dict[str, object]) -> Trip:
    """Map a database row to a trip."""
    created_at = row.get("created_at")
    return Trip(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        trip_type=str(row.get("trip_type") or ""),
        starting_point=_to_place(row.get("starting_point")),
        destination=_to_place(row.get("destination")),
        start_date=date.fromisoformat(str(row["start_date"])[:10]),
        end_date=date.fromisoformat(str(row["end_date"])[:10]),
        description=str(row.get("description") or ""),
        meeting_point=_to_place(row.get("meeting_point")),
        trip_picture_ref=str(row.get("trip_picture_ref") or ""),
        participants=tuple(row.get("participants") or ()),
        created_at=datetime.fromisoformat(str(created_at)) if created_at else None,
    )


def _to_place(value: object) -> Place:
    if isinstance(value, dict) and value.get("address"):
        return Place.model_validate(value)
    return Place(address="Not specified")
