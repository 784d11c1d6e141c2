"""Face matching between an ID document and a selfie."""

import logging
from dataclasses import dataclass
from typing import Protocol

from travel_buddy.domain.verification import (
    FaceMatch,
    ImageHandle,
    VerificationAttempt,
    VerificationResult,
)
from travel_buddy.errors import ImageUnavailable, NoFaceDetected, ServiceError
from travel_buddy.services.images import ImageService

_logger = logging.getLogger(__name__)


class FaceClient(Protocol):
    """Interface for the remote face detection and verification API."""

    async def detect(self, image_bytes: bytes) -> list[dict[str, object]]:
        """Return the raw list of faces detected in an image."""

    async def verify(self, face_id_1: str, face_id_2: str) -> dict[str, object]:
        """Return the raw verification payload for two face ids."""


@dataclass
class FaceMatchService:
    """Runs detection on both images and compares the resulting faces."""

    client: FaceClient
    images: ImageService

    async def detect_face(self, image: ImageHandle) -> str:
        """Return the face id of the first face found in an image."""
        faces = await self.client.detect(self.images.load(image))
        if not faces:
            raise NoFaceDetected(image.ref)
        first = faces[0]
        if not isinstance(first, dict):
            raise ServiceError("Face detection returned a malformed face entry")
        face_id = first.get("faceId")
        if not isinstance(face_id, str) or not face_id:
            raise ServiceError("Face detection response is missing faceId")
        return face_id

    async def verify_faces(self, face_id_1: str, face_id_2: str) -> FaceMatch:
        """Compare two detected faces."""
        payload = await self.client.verify(face_id_1, face_id_2)
        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise ServiceError(f"Face verification failed: {message}")
        try:
            return FaceMatch.model_validate(payload)
        except ValueError as exc:
            raise ServiceError("Face verification response is malformed") from exc

    async def verify_identity(
        self,
        id_image: ImageHandle,
        selfie_image: ImageHandle,
        attempt: VerificationAttempt | None = None,
    ) -> VerificationResult:
        """Compare the face on an ID with a selfie.

        Failures come back as an unverified result with a message suitable
        for display. When ``attempt`` is given, intermediate face ids and the
        match decision are recorded on it.
        """
        attempt = attempt or VerificationAttempt(
            id_image=id_image, selfie_image=selfie_image
        )
        try:
            try:
                attempt.id_face_id = await self.detect_face(id_image)
            except NoFaceDetected:
                return _record(attempt, _failure("No face detected in ID image"))
            try:
                attempt.selfie_face_id = await self.detect_face(selfie_image)
            except NoFaceDetected:
                return _record(attempt, _failure("No face detected in selfie image"))
            match = await self.verify_faces(attempt.id_face_id, attempt.selfie_face_id)
        except (ServiceError, ImageUnavailable) as exc:
            _logger.warning("Identity verification error: %s", exc)
            return _record(attempt, _failure(f"Error: {exc}"))

        if match.is_identical:
            percent = round(match.confidence * 100)
            result = VerificationResult(
                is_verified=True,
                confidence=match.confidence,
                message=f"Identity verified with {percent}% confidence",
            )
        else:
            result = VerificationResult(
                is_verified=False,
                confidence=match.confidence,
                message="Face on ID does not match selfie",
            )
        return _record(attempt, result)


def _failure(message: str) -> VerificationResult:
    return VerificationResult(is_verified=False, confidence=0.0, message=message)


def _record(
    attempt: VerificationAttempt, result: VerificationResult
) -> VerificationResult:
    attempt.is_match = result.is_verified
    attempt.confidence = result.confidence
    attempt.message = result.message
    return result
