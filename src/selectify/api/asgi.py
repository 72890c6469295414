"""ASGI entrypoint for the Selectify API."""

from selectify.api.app import create_app
from selectify.containers import build_container

app = create_app(build_container())
