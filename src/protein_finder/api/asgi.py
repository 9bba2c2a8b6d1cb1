"""ASGI entrypoint for the Protein Finder API."""

from protein_finder.api.app import create_app
from protein_finder.containers import build_container

app = create_app(build_container())
