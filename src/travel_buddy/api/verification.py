"""Identity verification endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from travel_buddy.api.auth import get_container, require_session
from travel_buddy.api.schemas import (
    ImageUploadResponse,
    VerificationResultResponse,
    VerificationStatusResponse,
)
from travel_buddy.containers import AppContainer
from travel_buddy.domain.models import Session
from travel_buddy.errors import (
    ImageUnavailable,
    IncompleteSubmission,
    PersistenceError,
    VerificationInProgress,
)
from travel_buddy.services.images import ID_IMAGE, SELFIE_IMAGE

router = APIRouter(prefix="/verification", tags=["verification"])


@router.get("")
async def verification_status(
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> VerificationStatusResponse:
    """Return the user's verification flow and stored verification flag."""
    try:
        current = container.verification_service.status(session.user_id)
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY) from exc
    return VerificationStatusResponse(
        state=current.state,
        can_submit=current.can_submit,
        has_id_image=current.has_id_image,
        has_selfie_image=current.has_selfie_image,
        is_verified=current.is_verified,
    )


@router.put("/id-image")
async def upload_id_image(
    request: Request,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> ImageUploadResponse:
    """Attach the identification document image."""
    return await _upload(request, session, container, ID_IMAGE)


@router.put("/selfie")
async def upload_selfie(
    request: Request,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> ImageUploadResponse:
    """Attach the live selfie image."""
    return await _upload(request, session, container, SELFIE_IMAGE)


@router.post("/submit")
async def submit_verification(
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> VerificationResultResponse:
    """Compare the uploaded images and record a successful verification."""
    try:
        outcome = await container.verification_service.submit(session.user_id)
    except IncompleteSubmission as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    except VerificationInProgress as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Verification is already in progress.",
        ) from exc
    return VerificationResultResponse.from_outcome(outcome)


async def _upload(
    request: Request, session: Session, container: AppContainer, kind: str
) -> ImageUploadResponse:
    content = await request.body()
    if not content:
        raise HTTPException(
            status_code=422,
            detail="Image body is empty.",
        )
    service = container.verification_service
    try:
        image = service.upload_image(session.user_id, kind, content)
    except VerificationInProgress as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Verification is already in progress.",
        ) from exc
    except ImageUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to store image."
        ) from exc
    flow = service.flow_for(session.user_id)
    return ImageUploadResponse(
        kind=kind,
        content_type=image.content_type,
        state=flow.state,
        can_submit=flow.can_submit,
    )
