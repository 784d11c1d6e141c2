"""Credential and session handling."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from travel_buddy.domain.models import Session
from travel_buddy.errors import AuthenticationError
from travel_buddy.services.events import KeyedChangeStream, Unsubscribe

_MIN_PASSWORD_LENGTH = 6

_logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    """Interface for the authentication backend."""

    def resolve_token(self, access_token: str) -> Session | None:
        """Return the session an access token belongs to, if valid."""

    def sign_up(self, email: str, password: str) -> Session | None:
        """Create an account; returns a session when sign-in is immediate."""

    def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password."""

    def sign_out(self, access_token: str) -> None:
        """Revoke the session an access token belongs to."""


@dataclass
class AuthService:
    """Application service for sign-up, sign-in, and token lookups.

    Sessions are per request: the service holds no signed-in user. Sign-in
    and sign-out made through it are pushed to subscribers keyed by user id.
    """

    provider: CredentialProvider
    changes: KeyedChangeStream[Session | None] = field(
        default_factory=KeyedChangeStream
    )

    def sign_up(self, email: str, password: str) -> Session | None:
        """Validate credentials and create an account."""
        _validate_credentials(email, password)
        session = self.provider.sign_up(email.strip(), password)
        _logger.info("Account created: email=%s", email.strip())
        if session is not None:
            self.changes.publish(session.user_id, session)
        return session

    def sign_in(self, email: str, password: str) -> Session:
        """Validate credentials and sign in."""
        _validate_credentials(email, password)
        session = self.provider.sign_in(email.strip(), password)
        self.changes.publish(session.user_id, session)
        return session

    def sign_out(self, session: Session) -> None:
        """Revoke the session and tell the user's subscribers."""
        if session.access_token:
            self.provider.sign_out(session.access_token)
        _logger.info("Signed out: user_id=%s", session.user_id)
        self.changes.publish(session.user_id, None)

    def subscribe(
        self, user_id: str, callback: Callable[[Session | None], None]
    ) -> Unsubscribe:
        """Push sign-in and sign-out events for one user to the callback."""
        return self.changes.subscribe(user_id, callback)

    def session_for_token(self, access_token: str | None) -> Session | None:
        """Resolve a bearer token, treating blank tokens as signed out."""
        if not access_token or not access_token.strip():
            return None
        try:
            return self.provider.resolve_token(access_token.strip())
        except AuthenticationError:
            _logger.info("Rejected access token")
            return None


def _validate_credentials(email: str, password: str) -> None:
    """Reject obviously malformed credentials before calling the backend."""
    cleaned = email.strip()
    if "@" not in cleaned or cleaned.startswith("@") or cleaned.endswith("@"):
        raise AuthenticationError("A valid email address is required")
    if len(password) < _MIN_PASSWORD_LENGTH:
        raise AuthenticationError(
            f"Password must be at least {_MIN_PASSWORD_LENGTH} characters"
        )
