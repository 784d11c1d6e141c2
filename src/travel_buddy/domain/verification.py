"""Models for identity verification attempts."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, Field


class VerificationState(StrEnum):
    """States of the verification flow for one user."""

    IDLE = "idle"
    CAPTURING = "capturing"
    VERIFYING = "verifying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ImageHandle:
    """Reference to an image held by the image store."""

    ref: str
    content_type: str = "image/jpeg"


class FaceMatch(BaseModel):
    """Decision returned by the face verify endpoint."""

    is_identical: bool = Field(alias="isIdentical")
    confidence: float = Field(ge=0.0, le=1.0)


@dataclass(frozen=True)
class VerificationResult:
    """User-presentable result of comparing an ID image with a selfie."""

    is_verified: bool
    confidence: float
    message: str


@dataclass
class VerificationAttempt:
    """Working data for a single verification attempt."""

    id_image: ImageHandle | None = None
    selfie_image: ImageHandle | None = None
    id_face_id: str | None = None
    selfie_face_id: str | None = None
    is_match: bool | None = None
    confidence: float | None = None
    message: str | None = None

    @property
    def is_complete(self) -> bool:
        """Return True when both images are present."""
        return self.id_image is not None and self.selfie_image is not None


@dataclass(frozen=True)
class VerificationOutcome:
    """Terminal outcome reported back to the client."""

    state: VerificationState
    result: VerificationResult


@dataclass(frozen=True)
class VerificationStatus:
    """Snapshot of a user's verification flow and stored flag."""

    state: VerificationState
    can_submit: bool
    has_id_image: bool
    has_selfie_image: bool
    is_verified: bool
