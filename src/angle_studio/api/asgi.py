"""ASGI entrypoint for the angle studio API."""

from angle_studio.api.app import create_app
from angle_studio.containers import build_container

app = create_app(build_container())
