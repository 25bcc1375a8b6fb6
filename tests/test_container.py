"""Tests for container wiring."""

import asyncio

from food_enrichment.config import Settings
from food_enrichment.containers import build_container
from food_enrichment.domain.enrichment import ProviderSource
from food_enrichment.services.cache import InMemoryCache


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    router = container.enrichment_service.router
    assert set(router.providers) == {
        ProviderSource.BRANDED,
        ProviderSource.GENERIC,
        ProviderSource.MINIMAL,
    }
    assert container.enrichment_service.estimator is not None
    assert isinstance(container.enrichment_service.cache, InMemoryCache)
    assert container.barcode_service.cache is container.enrichment_service.cache
    asyncio.run(container.close_resources())


def test_build_container_skips_unconfigured_providers() -> None:
    container = build_container(Settings(fdc_api_key="fdc-key", openai_api_key=None))

    assert set(container.enrichment_service.router.providers) == {
        ProviderSource.MINIMAL
    }
    assert container.enrichment_service.estimator is None
    asyncio.run(container.close_resources())
