"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Literal

import httpx
from fastapi import FastAPI, HTTPException, Request, status
from pydantic import BaseModel

from food_enrichment.app_logging import configure_logging
from food_enrichment.containers import AppContainer
from food_enrichment.domain.errors import EnrichmentError
from food_enrichment.domain.models import BarcodeProduct, EnrichedFood
from food_enrichment.services.serving import parse_serving_from_text


class EnrichRequest(BaseModel):
    """Free-text enrichment request."""

    query: str
    context: Literal["manual", "scan"] = "manual"
    locale: str = "auto"
    bypass_cache: bool = False


class ServingRequest(BaseModel):
    """Serving text to parse."""

    text: str | None = None


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/enrich")
    async def enrich(payload: EnrichRequest, request: Request) -> EnrichedFood:
        """Resolve a free-text food query into per-serving nutrition."""
        state_container: AppContainer = request.app.state.container
        try:
            food = await state_container.enrichment_service.enrich(
                payload.query,
                context=payload.context,
                locale=payload.locale,
                bypass_cache=payload.bypass_cache,
            )
        except EnrichmentError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        if food is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No nutrition data found",
            )
        return food

    @app.get("/barcode/{code}")
    async def barcode(code: str, request: Request) -> BarcodeProduct:
        """Resolve a scanned barcode."""
        state_container: AppContainer = request.app.state.container
        try:
            product = await state_container.barcode_service.lookup(code)
        except EnrichmentError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except httpx.HTTPError as exc:
            logger.exception("Barcode lookup failed for %s", code)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Barcode lookup failed",
            ) from exc
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        return product

    @app.post("/serving/parse")
    async def parse_serving(payload: ServingRequest) -> dict[str, object]:
        """Parse a serving description into grams."""
        serving = parse_serving_from_text(payload.text)
        return {"grams": serving.grams, "text": serving.text}

    return app
