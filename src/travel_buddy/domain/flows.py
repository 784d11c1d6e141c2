"""Top-level app flows a client can mount."""

from enum import StrEnum


class AppFlow(StrEnum):
    """Flow chosen by the router gate."""

    AUTH = "auth"
    PROFILE_CREATION = "profile_creation"
    MAIN = "main"
