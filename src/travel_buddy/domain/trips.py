"""Trips posted by travellers and the validated trip form."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Place(BaseModel):
    """A named location with optional coordinates."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(min_length=1, max_length=300)
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)

    @field_validator("address")
    @classmethod
    def _strip_address(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("address must not be blank")
        return stripped


class TripForm(BaseModel):
    """Fields submitted when posting a trip. Every field is required."""

    trip_type: str = Field(min_length=1, max_length=60)
    starting_point: Place
    destination: Place
    start_date: date
    end_date: date
    description: str = Field(min_length=1, max_length=2000)
    meeting_point: Place
    trip_picture_ref: str = Field(min_length=1)

    @field_validator("trip_type", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @field_validator("start_date")
    @classmethod
    def _start_not_in_past(cls, value: date) -> date:
        if value < datetime.now(tz=UTC).date():
            raise ValueError("start_date cannot be in the past")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> "TripForm":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    def to_fields(self) -> dict[str, object]:
        """Return the form as persistence fields."""
        return {
            "trip_type": self.trip_type,
            "starting_point": self.starting_point.model_dump(),
            "destination": self.destination.model_dump(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "description": self.description,
            "meeting_point": self.meeting_point.model_dump(),
            "trip_picture_ref": self.trip_picture_ref,
        }


@dataclass(frozen=True)
class Trip:
    """A posted trip. ``user_id`` is the host; ``participants`` are buddies."""

    id: str
    user_id: str
    trip_type: str
    starting_point: Place
    destination: Place
    start_date: date
    end_date: date
    description: str
    meeting_point: Place
    trip_picture_ref: str
    participants: tuple[str, ...] = ()
    created_at: datetime | None = None


@dataclass(frozen=True)
class JoinRequest:
    """A traveller asking the host to be added to a trip."""

    trip_id: str
    destination: str
    host_email: str
    requester_name: str
    requester_email: str
