"""ASGI entrypoint for the Life4Today API."""

from life4today.api.app import create_app
from life4today.containers import build_container

app = create_app(build_container())
