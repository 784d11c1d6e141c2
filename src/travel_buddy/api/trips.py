"""Trip board endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from travel_buddy.api.auth import get_container, require_session
from travel_buddy.api.schemas import BuddyRequest, TripResponse
from travel_buddy.containers import AppContainer
from travel_buddy.domain.models import Session
from travel_buddy.domain.trips import TripForm
from travel_buddy.errors import (
    BuddyNotFound,
    NotificationError,
    PersistenceError,
    TripNotFound,
    TripPermissionDenied,
)

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def post_trip(
    form: TripForm,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> TripResponse:
    """Publish a trip hosted by the signed-in user."""
    try:
        trip = container.trip_service.post_trip(session.user_id, form)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to post trip."
        ) from exc
    return TripResponse.from_trip(trip)


@router.get("")
async def list_trips(
    limit: int = Query(default=50, ge=1, le=100),
    _session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> list[TripResponse]:
    """Return recent trips, newest first."""
    try:
        trips = container.trip_service.list_trips(limit)
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY) from exc
    return [TripResponse.from_trip(trip) for trip in trips]


@router.get("/{trip_id}")
async def get_trip(
    trip_id: str,
    _session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> TripResponse:
    """Return a single trip."""
    try:
        trip = container.trip_service.get_trip(trip_id)
    except TripNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY) from exc
    return TripResponse.from_trip(trip)


@router.post("/{trip_id}/join-requests", status_code=status.HTTP_202_ACCEPTED)
async def request_to_join(
    trip_id: str,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> dict[str, str]:
    """Email the host that the signed-in user wants to join."""
    try:
        await container.trip_service.request_to_join(trip_id, session)
    except TripNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except TripPermissionDenied as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)
        ) from exc
    except (NotificationError, PersistenceError) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {"status": "sent"}


@router.post("/{trip_id}/buddies")
async def add_buddy(
    trip_id: str,
    buddy: BuddyRequest,
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> TripResponse:
    """Add a user to the signed-in host's trip by email."""
    try:
        trip = container.trip_service.add_buddy(trip_id, session.user_id, buddy.email)
    except TripNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except BuddyNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No traveller is registered with that email.",
        ) from exc
    except TripPermissionDenied as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY) from exc
    return TripResponse.from_trip(trip)
