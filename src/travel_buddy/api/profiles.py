"""Profile endpoints for the signed-in user."""

from fastapi import APIRouter, Depends, HTTPException, status

from travel_buddy.api.auth import get_container, require_session
from travel_buddy.api.schemas import ProfileResponse
from travel_buddy.containers import AppContainer
from travel_buddy.domain.models import Session
from travel_buddy.domain.profiles import ProfileForm, ProfileRecord
from travel_buddy.errors import PersistenceError, ProfileNotFound

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me")
async def get_profile(
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> ProfileResponse:
    """Return the signed-in user's profile."""
    try:
        profile = container.profile_service.get_profile(session.user_id)
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY) from exc
    return _profile_or_404(profile)


@router.put("/me")
async def save_profile(
    form: ProfileForm,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> ProfileResponse:
    """Create or replace the signed-in user's profile fields."""
    try:
        profile = container.profile_service.save_profile(
            session.user_id, form, email=session.email
        )
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to save profile."
        ) from exc
    return _profile_or_404(profile)


@router.patch("/me")
async def edit_profile(
    form: ProfileForm,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> ProfileResponse:
    """Edit an existing profile."""
    try:
        profile = container.profile_service.update_profile(session.user_id, form)
    except ProfileNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to save profile."
        ) from exc
    return _profile_or_404(profile)


def _profile_or_404(profile: ProfileRecord | None) -> ProfileResponse:
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return ProfileResponse.from_record(profile)
