"""ASGI entrypoint for the try-on bot API."""

from tryon_bot.api.app import create_app
from tryon_bot.containers import build_container

app = create_app(build_container())
