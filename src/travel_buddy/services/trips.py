"""Trip posting, browsing, join requests, and buddies."""

import logging
from dataclasses import dataclass
from typing import Protocol

from travel_buddy.domain.models import Session
from travel_buddy.domain.trips import JoinRequest, Trip, TripForm
from travel_buddy.errors import (
    BuddyNotFound,
    NotificationError,
    TripNotFound,
    TripPermissionDenied,
)
from travel_buddy.services.profiles import ProfileService

_DEFAULT_PAGE_SIZE = 50

_logger = logging.getLogger(__name__)


class TripRepository(Protocol):
    """Persistence interface for trips."""

    def create_trip(self, user_id: str, fields: dict[str, object]) -> Trip:
        """Insert a trip hosted by the user and return it."""

    def list_trips(self, limit: int) -> list[Trip]:
        """Return the most recently posted trips, newest first."""

    def get_trip(self, trip_id: str) -> Trip | None:
        """Return a trip by id, if present."""

    def set_participants(self, trip_id: str, participants: list[str]) -> Trip:
        """Replace the trip's participant list and return the updated trip."""


class JoinRequestNotifier(Protocol):
    """Delivers join requests to trip hosts."""

    async def send_join_request(self, request: JoinRequest) -> None:
        """Tell the host that someone wants to join their trip."""


@dataclass
class TripService:
    """Application service for the trip board."""

    trips: TripRepository
    profiles: ProfileService
    notifier: JoinRequestNotifier

    def post_trip(self, user_id: str, form: TripForm) -> Trip:
        """Publish a trip hosted by the user."""
        trip = self.trips.create_trip(user_id, form.to_fields())
        _logger.info("Trip posted: trip_id=%s user_id=%s", trip.id, user_id)
        return trip

    def list_trips(self, limit: int = _DEFAULT_PAGE_SIZE) -> list[Trip]:
        """Return recent trips for the home feed."""
        return self.trips.list_trips(limit)

    def get_trip(self, trip_id: str) -> Trip:
        """Return a trip or raise ``TripNotFound``."""
        trip = self.trips.get_trip(trip_id)
        if trip is None:
            raise TripNotFound(trip_id)
        return trip

    async def request_to_join(self, trip_id: str, requester: Session) -> JoinRequest:
        """Email the trip host that the requester wants to join."""
        trip = self.get_trip(trip_id)
        if requester.user_id == trip.user_id:
            raise TripPermissionDenied("You can't join your own trip")
        if requester.user_id in trip.participants:
            raise TripPermissionDenied("You are already on this trip")
        host = self.profiles.get_profile(trip.user_id)
        if host is None or not host.email:
            raise NotificationError("Cannot contact trip host - email not available")
        profile = self.profiles.get_profile(requester.user_id)
        request = JoinRequest(
            trip_id=trip.id,
            destination=trip.destination.address,
            host_email=host.email,
            requester_name=(profile.full_name if profile else "") or "Unnamed User",
            requester_email=requester.email or "",
        )
        await self.notifier.send_join_request(request)
        _logger.info(
            "Join request sent: trip_id=%s user_id=%s", trip.id, requester.user_id
        )
        return request

    def add_buddy(self, trip_id: str, host_user_id: str, email: str) -> Trip:
        """Add the user registered under ``email`` to the host's trip.

        Adding someone who is already on the trip leaves it unchanged.
        """
        trip = self.get_trip(trip_id)
        if trip.user_id != host_user_id:
            raise TripPermissionDenied("Only the trip host can add buddies")
        buddy = self.profiles.find_by_email(email)
        if buddy is None:
            raise BuddyNotFound(email)
        if buddy.user_id == trip.user_id:
            raise TripPermissionDenied("The host is already on the trip")
        if buddy.user_id in trip.participants:
            return trip
        updated = self.trips.set_participants(
            trip.id, [*trip.participants, buddy.user_id]
        )
        _logger.info("Buddy added: trip_id=%s buddy_id=%s", trip.id, buddy.user_id)
        return updated
