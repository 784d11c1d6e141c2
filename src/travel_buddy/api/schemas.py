"""Pydantic models for API requests and responses."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from travel_buddy.domain.flows import AppFlow
from travel_buddy.domain.profiles import Address, ProfileRecord
from travel_buddy.domain.trips import Place, Trip
from travel_buddy.domain.verification import VerificationOutcome, VerificationState


class Credentials(BaseModel):
    """Email and password sign-up or sign-in payload."""

    email: str
    password: str


class SessionResponse(BaseModel):
    """Signed-in session returned to the client."""

    user_id: str
    email: str | None = None
    access_token: str | None = None


class FlowResponse(BaseModel):
    """Flow the client should mount."""

    flow: AppFlow


class ProfileResponse(BaseModel):
    """Profile record as returned to the client."""

    user_id: str
    profile_created: bool
    is_verified: bool
    verified_at: datetime | None
    full_name: str
    date_of_birth: date | None
    gender: str | None
    address: Address
    about_me: str
    travel_interests: list[str]
    profile_image_ref: str | None
    email: str | None = None

    @classmethod
    def from_record(cls, record: ProfileRecord) -> "ProfileResponse":
        """Build a response from a profile record."""
        return cls(
            user_id=record.user_id,
            profile_created=record.profile_created,
            is_verified=record.is_verified,
            verified_at=record.verified_at,
            full_name=record.full_name,
            date_of_birth=record.date_of_birth,
            gender=record.gender,
            address=record.address,
            about_me=record.about_me,
            travel_interests=sorted(record.travel_interests),
            profile_image_ref=record.profile_image_ref,
            email=record.email,
        )


class ImageUploadResponse(BaseModel):
    """Result of attaching an image to the verification flow."""

    kind: str
    content_type: str
    state: VerificationState
    can_submit: bool


class VerificationStatusResponse(BaseModel):
    """Current verification flow state for the user."""

    state: VerificationState
    can_submit: bool
    has_id_image: bool
    has_selfie_image: bool
    is_verified: bool


class VerificationResultResponse(BaseModel):
    """Terminal outcome of a verification submission."""

    state: VerificationState
    is_verified: bool
    confidence: float
    message: str

    @classmethod
    def from_outcome(cls, outcome: VerificationOutcome) -> "VerificationResultResponse":
        """Build a response from a verification outcome."""
        return cls(
            state=outcome.state,
            is_verified=outcome.result.is_verified,
            confidence=outcome.result.confidence,
            message=outcome.result.message,
        )


class TripResponse(BaseModel):
    """Trip as returned to the client."""

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
    participants: list[str]
    created_at: datetime | None

    @classmethod
    def from_trip(cls, trip: Trip) -> "TripResponse":
        """Build a response from a trip."""
        return cls(
            id=trip.id,
            user_id=trip.user_id,
            trip_type=trip.trip_type,
            starting_point=trip.starting_point,
            destination=trip.destination,
            start_date=trip.start_date,
            end_date=trip.end_date,
            description=trip.description,
            meeting_point=trip.meeting_point,
            trip_picture_ref=trip.trip_picture_ref,
            participants=list(trip.participants),
            created_at=trip.created_at,
        )


class BuddyRequest(BaseModel):
    """Email of the user a host wants to add to a trip."""

    email: str = Field(min_length=3, max_length=320)
