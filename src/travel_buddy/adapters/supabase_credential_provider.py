"""Supabase Auth credential provider."""

from collections.abc import Callable
from dataclasses import dataclass

from supabase import AuthError, Client

from travel_buddy.domain.models import Session
from travel_buddy.errors import AuthenticationError
from travel_buddy.services.auth import CredentialProvider


@dataclass
class SupabaseCredentialProvider(CredentialProvider):
    """Credential provider backed by Supabase Auth.

    ``client`` is the shared service-role client. It only serves token
    lookups and admin sign-out, neither of which stores a session on it.
    Password sign-up and sign-in run on a throwaway client from
    ``session_client_factory``, because a sign-in rewrites the
    ``Authorization`` header of the client it runs on.
    """

    client: Client
    session_client_factory: Callable[[], Client]

    def resolve_token(self, access_token: str) -> Session | None:
        """Look up the user an access token belongs to."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as exc:
            raise AuthenticationError("Invalid access token") from exc
        if response is None or response.user is None:
            return None
        return Session(
            user_id=response.user.id,
            email=response.user.email,
            access_token=access_token,
        )

    def sign_up(self, email: str, password: str) -> Session | None:
        """Create an account with email and password."""
        auth = self.session_client_factory().auth
        try:
            response = auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise AuthenticationError(str(exc)) from exc
        return _to_session(response.session)

    def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password."""
        auth = self.session_client_factory().auth
        try:
            response = auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise AuthenticationError(str(exc)) from exc
        session = _to_session(response.session)
        if session is None:
            raise AuthenticationError("Sign-in did not return a session")
        return session

    def sign_out(self, access_token: str) -> None:
        """Revoke the session an access token belongs to."""
        try:
            self.client.auth.admin.sign_out(access_token)
        except AuthError as exc:
            raise AuthenticationError(str(exc)) from exc


def _to_session(auth_session: object) -> Session | None:
    """Convert a Supabase auth session into a domain session."""
    if auth_session is None:
        return None
    user = getattr(auth_session, "user", None)
    if user is None:
        return None
    return Session(
        user_id=user.id,
        email=getattr(user, "email", None),
        access_token=getattr(auth_session, "access_token", None),
    )
