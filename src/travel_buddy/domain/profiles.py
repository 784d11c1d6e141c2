"""Profile records and the validated profile form."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

TRAVEL_INTERESTS = frozenset({"Adventure", "Culture", "Nature", "Urban"})


class Address(BaseModel):
    """Postal address captured on the profile form."""

    model_config = ConfigDict(frozen=True)

    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


@dataclass(frozen=True)
class ProfileRecord:
    """Represents a user's onboarding profile stored in the database."""

    user_id: str
    profile_created: bool = False
    is_verified: bool = False
    verified_at: datetime | None = None
    full_name: str = ""
    date_of_birth: date | None = None
    gender: str | None = None
    address: Address = field(default_factory=Address)
    about_me: str = ""
    travel_interests: frozenset[str] = frozenset()
    profile_image_ref: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        if self.is_verified != (self.verified_at is not None):
            raise ValueError("verified_at must be set exactly when is_verified is true")


class ProfileForm(BaseModel):
    """Fields submitted when creating or editing a profile."""

    full_name: str = Field(min_length=1, max_length=120)
    date_of_birth: date
    gender: str | None = None
    address: Address = Field(default_factory=Address)
    about_me: str = Field(default="", max_length=500)
    travel_interests: set[str] = Field(default_factory=set)
    profile_image_ref: str | None = None

    @field_validator("full_name")
    @classmethod
    def _strip_full_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("full_name must not be blank")
        return stripped

    @field_validator("date_of_birth")
    @classmethod
    def _past_date_of_birth(cls, value: date) -> date:
        if value >= datetime.now(tz=UTC).date():
            raise ValueError("date_of_birth must be in the past")
        return value

    @field_validator("travel_interests")
    @classmethod
    def _known_interests(cls, value: set[str]) -> set[str]:
        unknown = value - TRAVEL_INTERESTS
        if unknown:
            raise ValueError(f"unknown travel interests: {', '.join(sorted(unknown))}")
        return value

    def to_fields(self) -> dict[str, object]:
        """Return the form as persistence fields."""
        return {
            "full_name": self.full_name,
            "date_of_birth": self.date_of_birth.isoformat(),
            "gender": self.gender,
            "address": self.address.model_dump(),
            "about_me": self.about_me,
            "travel_interests": sorted(self.travel_interests),
            "profile_image_ref": self.profile_image_ref,
        }
