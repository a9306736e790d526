"""ASGI entrypoint for the cb-lens API."""

from cb_lens.api.app import create_app
from cb_lens.containers import build_container

app = create_app(build_container())
