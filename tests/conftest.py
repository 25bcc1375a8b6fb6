"""Shared test fixtures."""

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest

from food_enrichment.adapters.openai_estimation_client import EstimationClient
from food_enrichment.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_enrichment.config import EnrichmentFlags, Settings
from food_enrichment.containers import AppContainer
from food_enrichment.domain.enrichment import (
    FoodPayload,
    ProviderResult,
    ProviderSource,
)
from food_enrichment.services.barcode import BarcodeService
from food_enrichment.services.cache import InMemoryCache
from food_enrichment.services.enrichment import EnrichmentService
from food_enrichment.services.providers import EstimationProvider, FoodProvider
from food_enrichment.services.router import EnrichmentRouter


def make_result(
    source: ProviderSource,
    ingredients_len: int,
    confidence: float = 0.8,
    name: str = "test food",
    nutriments: dict[str, float] | None = None,
    serving_grams: float | None = None,
) -> ProviderResult:
    """Build a provider result with placeholder ingredient names."""
    ingredients = tuple(f"ingredient {index}" for index in range(ingredients_len))
    return ProviderResult(
        source=source,
        ingredients_len=ingredients_len,
        confidence=confidence,
        data=FoodPayload(
            name=name,
            ingredients=ingredients,
            nutriments=nutriments
            if nutriments is not None
            else {
                "energy-kcal_100g": 250.0,
                "proteins_100g": 12.0,
                "carbohydrates_100g": 30.0,
                "fat_100g": 9.0,
            },
            serving_grams=serving_grams,
        ),
    )


@dataclass
class StaticProvider(FoodProvider):
    """Provider double returning a fixed result and recording calls."""

    result: ProviderResult | None = None
    error: Exception | None = None
    delay_seconds: float = 0.0
    calls: list[tuple[str, bool]] = field(default_factory=list)

    async def lookup(
        self, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        self.calls.append((query, branded))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class FakeEstimationClient(EstimationClient):
    """Estimation client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "name": "club sandwich",
            "ingredients": [
                {"name": "bread", "amount": "2 slices"},
                {"name": "turkey", "amount": None},
                {"name": "bacon", "amount": None},
                {"name": "lettuce", "amount": None},
            ],
            "per100g": {
                "calories": 250,
                "protein": 14,
                "fat": 11,
                "carbs": 24,
                "fiber": 2,
                "sugar": 3,
                "sodium": 600,
            },
            "confidence": 0.9,
        }
    )
    calls: int = 0

    async def estimate(self, *, model: str, query: str) -> dict[str, object]:
        self.calls += 1
        return self.payload


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """OpenFoodFacts client serving products from memory."""

    products: dict[str, dict[str, object]] = field(default_factory=dict)
    calls: int = 0

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        self.calls += 1
        return self.products.get(barcode)


PEANUT_BUTTER = {
    "code": "0051500255162",
    "product_name": "Creamy Peanut Butter",
    "brands": "Jif, J.M. Smucker",
    "serving_size": "2 tbsp (32 g)",
    "ingredients_text": "Roasted peanuts, sugar, molasses, salt",
    "nutriments": {
        "energy-kcal_100g": 594,
        "proteins_100g": 21.9,
        "carbohydrates_100g": 25,
        "fat_100g": 50,
        "sodium_100g": 0.44,
    },
}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        nutritionix_app_id="nix-app",
        nutritionix_api_key="nix-key",
        edamam_app_id="edamam-app",
        edamam_app_key="edamam-key",
        fdc_api_key="fdc-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def providers() -> dict[ProviderSource, StaticProvider]:
    return {
        ProviderSource.BRANDED: StaticProvider(
            result=make_result(ProviderSource.BRANDED, 6, confidence=0.85)
        ),
        ProviderSource.GENERIC: StaticProvider(),
        ProviderSource.MINIMAL: StaticProvider(
            result=make_result(ProviderSource.MINIMAL, 1, confidence=0.6)
        ),
    }


@pytest.fixture
def container(
    settings: Settings, providers: dict[ProviderSource, StaticProvider]
) -> AppContainer:
    cache = InMemoryCache()
    router = EnrichmentRouter(providers=providers, flags=EnrichmentFlags())
    enrichment_service = EnrichmentService(
        router=router,
        cache=cache,
        estimator=EstimationProvider(client=FakeEstimationClient(), model="test"),
    )
    barcode_service = BarcodeService(
        client=FakeOpenFoodFactsClient(products={PEANUT_BUTTER["code"]: PEANUT_BUTTER}),
        cache=cache,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        enrichment_service=enrichment_service,
        barcode_service=barcode_service,
        close_resources=close_resources,
    )


@pytest.fixture(autouse=True)
def propagate_app_logs() -> Iterator[None]:
    """Let caplog see records after configure_logging disables propagation."""
    logger = logging.getLogger("food_enrichment")
    previous = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = previous
