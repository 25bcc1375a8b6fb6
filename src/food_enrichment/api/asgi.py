"""ASGI entrypoint for the food enrichment API."""

from food_enrichment.api.app import create_app
from food_enrichment.containers import build_container

app = create_app(build_container())
