"""Domain models for signed-in sessions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    """Represents the signed-in identity of a user."""

    user_id: str
    email: str | None = None
    access_token: str | None = None
