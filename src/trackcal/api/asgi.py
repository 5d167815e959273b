"""ASGI entrypoint for the TrackCal API."""

from trackcal.api.app import create_app
from trackcal.containers import build_container

app = create_app(build_container())
