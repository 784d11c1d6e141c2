"""Chooses which top-level app flow a client should mount."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from travel_buddy.domain.flows import AppFlow
from travel_buddy.domain.models import Session
from travel_buddy.domain.profiles import ProfileRecord
from travel_buddy.services.auth import AuthService
from travel_buddy.services.events import Unsubscribe
from travel_buddy.services.profiles import ProfileService

_logger = logging.getLogger(__name__)


def select_flow(session: Session | None, profile: ProfileRecord | None) -> AppFlow:
    """Pick the flow for a session and its profile record."""
    if session is None:
        return AppFlow.AUTH
    if profile is None or not profile.profile_created:
        return AppFlow.PROFILE_CREATION
    return AppFlow.MAIN


@dataclass
class FlowWatch:
    """Live subscription that re-evaluates one user's flow on every change.

    The watch follows the session it was started with: a sign-out of that
    user emits ``AUTH``, and profile writes re-emit the flow. Use as a
    context manager, or call ``close`` on teardown.
    """

    auth: AuthService
    profiles: ProfileService
    listener: Callable[[AppFlow], None]
    session: Session | None = None
    _unsubscribe_session: Unsubscribe | None = None
    _unsubscribe_profile: Unsubscribe | None = None
    closed: bool = field(default=False, init=False)

    def start(self) -> "FlowWatch":
        """Subscribe to the session's user and emit the current flow."""
        if self.session is not None:
            user_id = self.session.user_id
            self._unsubscribe_session = self.auth.subscribe(user_id, self._on_session)
            self._unsubscribe_profile = self.profiles.subscribe(
                user_id, self._on_profile
            )
        self._emit(self._load_profile())
        return self

    def close(self) -> None:
        """Release every subscription."""
        if self.closed:
            return
        self.closed = True
        self._drop_profile_subscription()
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None

    def __enter__(self) -> "FlowWatch":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def _on_session(self, session: Session | None) -> None:
        if self.closed:
            return
        self.session = session
        if session is None:
            self._drop_profile_subscription()
        elif self._unsubscribe_profile is None:
            self._unsubscribe_profile = self.profiles.subscribe(
                session.user_id, self._on_profile
            )
        self._emit(self._load_profile())

    def _on_profile(self, profile: ProfileRecord | None) -> None:
        if self.closed or self.session is None:
            return
        self._emit(profile)

    def _load_profile(self) -> ProfileRecord | None:
        if self.session is None:
            return None
        return self.profiles.get_profile(self.session.user_id)

    def _emit(self, profile: ProfileRecord | None) -> None:
        flow = select_flow(self.session, profile)
        _logger.debug("Flow evaluated: flow=%s", flow)
        self.listener(flow)

    def _drop_profile_subscription(self) -> None:
        if self._unsubscribe_profile is not None:
            self._unsubscribe_profile()
            self._unsubscribe_profile = None


@dataclass
class FlowGate:
    """Request-scoped router gate over auth events and the profile store."""

    auth: AuthService
    profiles: ProfileService

    def flow_for(self, session: Session | None) -> AppFlow:
        """Evaluate the flow once for a resolved session."""
        profile = self.profiles.get_profile(session.user_id) if session else None
        return select_flow(session, profile)

    def watch(
        self, session: Session | None, listener: Callable[[AppFlow], None]
    ) -> FlowWatch:
        """Start a live flow subscription for a resolved session."""
        return FlowWatch(
            auth=self.auth, profiles=self.profiles, listener=listener, session=session
        ).start()
