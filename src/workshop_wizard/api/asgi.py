"""ASGI entrypoint for the workshop wizard API."""

from workshop_wizard.api.app import create_app
from workshop_wizard.containers import build_container

app = create_app(build_container())
