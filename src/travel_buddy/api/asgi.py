"""ASGI entrypoint for the Travel Buddy API."""

from travel_buddy.api.app import create_app
from travel_buddy.containers import build_container

app = create_app(build_container())
