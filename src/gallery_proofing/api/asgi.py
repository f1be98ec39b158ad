"""ASGI entrypoint for the gallery proofing API."""

from gallery_proofing.api.app import create_app
from gallery_proofing.containers import build_container

app = create_app(build_container())
