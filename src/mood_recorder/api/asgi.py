"""ASGI entrypoint for the mood recorder API."""

from mood_recorder.api.app import create_app
from mood_recorder.containers import build_container

app = create_app(build_container())
