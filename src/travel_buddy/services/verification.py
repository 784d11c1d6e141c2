"""Identity verification flow for onboarding."""

import logging
from dataclasses import dataclass, field

from travel_buddy.domain.verification import (
    ImageHandle,
    VerificationAttempt,
    VerificationOutcome,
    VerificationResult,
    VerificationState,
    VerificationStatus,
)
from travel_buddy.errors import (
    ImageUnavailable,
    IncompleteSubmission,
    PersistenceError,
    VerificationInProgress,
)
from travel_buddy.services.face_match import FaceMatchService
from travel_buddy.services.images import ID_IMAGE, SELFIE_IMAGE, ImageService
from travel_buddy.services.profiles import ProfileService

_SAVE_FAILED_MESSAGE = (
    "Your identity was confirmed but we could not save the result. Please try again."
)

_SETTLED_STATES = frozenset({VerificationState.IDLE, VerificationState.SUCCEEDED})

_logger = logging.getLogger(__name__)


@dataclass
class VerificationOrchestrator:
    """State machine for one user's verification attempt."""

    user_id: str
    face_match: FaceMatchService
    profiles: ProfileService
    images: ImageService
    state: VerificationState = VerificationState.IDLE
    attempt: VerificationAttempt = field(default_factory=VerificationAttempt)

    @property
    def can_submit(self) -> bool:
        """Return True when both images are present and nothing is running."""
        return self.state != VerificationState.VERIFYING and self.attempt.is_complete

    @property
    def is_settled(self) -> bool:
        """Return True when the flow holds no images and nothing is running."""
        return (
            self.state in _SETTLED_STATES
            and self.attempt.id_image is None
            and self.attempt.selfie_image is None
        )

    def attach_id_image(self, image: ImageHandle) -> None:
        """Use an image as the identification document."""
        self._ensure_not_verifying()
        previous = self.attempt.id_image
        self.attempt.id_image = image
        self.state = VerificationState.CAPTURING
        if previous is not None and previous != image:
            self._discard(previous)

    def attach_selfie_image(self, image: ImageHandle) -> None:
        """Use an image as the live selfie."""
        self._ensure_not_verifying()
        previous = self.attempt.selfie_image
        self.attempt.selfie_image = image
        self.state = VerificationState.CAPTURING
        if previous is not None and previous != image:
            self._discard(previous)

    async def submit(self) -> VerificationOutcome:
        """Run face matching and record the result on success.

        Any exception escaping the run puts the flow back in ``CAPTURING``
        with its images kept, so the user can submit again.
        """
        self._ensure_not_verifying()
        attempt = self.attempt
        if attempt.id_image is None or attempt.selfie_image is None:
            raise IncompleteSubmission(
                "Both an ID image and a selfie are required before submitting"
            )

        self.state = VerificationState.VERIFYING
        try:
            return await self._verify(attempt)
        finally:
            if self.state == VerificationState.VERIFYING:
                _logger.warning("Verification aborted: user_id=%s", self.user_id)
                self.state = VerificationState.CAPTURING

    async def _verify(self, attempt: VerificationAttempt) -> VerificationOutcome:
        result = await self.face_match.verify_identity(
            attempt.id_image, attempt.selfie_image, attempt
        )
        if not result.is_verified:
            return self._fail(result)

        try:
            self.profiles.mark_verified(self.user_id)
        except PersistenceError:
            _logger.exception(
                "Failed to save verification result: user_id=%s", self.user_id
            )
            return self._fail(
                VerificationResult(
                    is_verified=False,
                    confidence=result.confidence,
                    message=_SAVE_FAILED_MESSAGE,
                )
            )

        self._discard(attempt.id_image, attempt.selfie_image)
        self.attempt = VerificationAttempt()
        self.state = VerificationState.SUCCEEDED
        _logger.info(
            "Verification succeeded: user_id=%s confidence=%.2f",
            self.user_id,
            result.confidence,
        )
        return VerificationOutcome(state=VerificationState.SUCCEEDED, result=result)

    def _fail(self, result: VerificationResult) -> VerificationOutcome:
        _logger.info(
            "Verification failed: user_id=%s message=%s", self.user_id, result.message
        )
        self._discard(self.attempt.id_image, self.attempt.selfie_image)
        self.attempt = VerificationAttempt()
        self.state = VerificationState.IDLE
        return VerificationOutcome(state=VerificationState.FAILED, result=result)

    def _discard(self, *images: ImageHandle | None) -> None:
        try:
            self.images.discard(*images)
        except ImageUnavailable:
            _logger.warning(
                "Failed to delete verification images: user_id=%s", self.user_id
            )

    def _ensure_not_verifying(self) -> None:
        if self.state == VerificationState.VERIFYING:
            raise VerificationInProgress(self.user_id)


@dataclass
class VerificationService:
    """Keeps in-progress verification flows in memory, one per user.

    A flow is dropped once it is idle or succeeded and holds no images, so
    only users with uploads or a running submission occupy memory.
    """

    face_match: FaceMatchService
    profiles: ProfileService
    images: ImageService
    _flows: dict[str, VerificationOrchestrator] = field(default_factory=dict)

    def flow_for(self, user_id: str) -> VerificationOrchestrator:
        """Return the user's verification flow, creating it if needed."""
        flow = self._flows.get(user_id)
        if flow is None:
            flow = VerificationOrchestrator(
                user_id=user_id,
                face_match=self.face_match,
                profiles=self.profiles,
                images=self.images,
            )
            self._flows[user_id] = flow
        return flow

    def active_flow(self, user_id: str) -> VerificationOrchestrator | None:
        """Return the user's flow if one is held, without creating it."""
        return self._flows.get(user_id)

    def upload_image(self, user_id: str, kind: str, content: bytes) -> ImageHandle:
        """Store an uploaded image and attach it to the user's flow."""
        flow = self.flow_for(user_id)
        if flow.state == VerificationState.VERIFYING:
            raise VerificationInProgress(user_id)
        try:
            image = self.images.acquire(user_id, kind, content)
            if kind == ID_IMAGE:
                flow.attach_id_image(image)
            elif kind == SELFIE_IMAGE:
                flow.attach_selfie_image(image)
        finally:
            self._release_if_settled(flow)
        return image

    async def submit(self, user_id: str) -> VerificationOutcome:
        """Submit the user's current attempt."""
        flow = self.flow_for(user_id)
        try:
            return await flow.submit()
        finally:
            self._release_if_settled(flow)

    def status(self, user_id: str) -> VerificationStatus:
        """Describe the user's flow together with the stored verification flag.

        Without a held flow the state is ``SUCCEEDED`` for verified users
        and ``IDLE`` otherwise.
        """
        is_verified = self.verification_status(user_id)
        flow = self.active_flow(user_id)
        if flow is None:
            state = (
                VerificationState.SUCCEEDED if is_verified else VerificationState.IDLE
            )
            return VerificationStatus(
                state=state,
                can_submit=False,
                has_id_image=False,
                has_selfie_image=False,
                is_verified=is_verified,
            )
        return VerificationStatus(
            state=flow.state,
            can_submit=flow.can_submit,
            has_id_image=flow.attempt.id_image is not None,
            has_selfie_image=flow.attempt.selfie_image is not None,
            is_verified=is_verified,
        )

    def verification_status(self, user_id: str) -> bool:
        """One-shot read of whether the user's profile is verified."""
        return self.profiles.is_verified(user_id)

    def _release_if_settled(self, flow: VerificationOrchestrator) -> None:
        if flow.is_settled and self._flows.get(flow.user_id) is flow:
            del self._flows[flow.user_id]
