"""Tests for barcode lookups."""

import asyncio
from dataclasses import dataclass

import httpx
import pytest

from food_enrichment.containers import AppContainer
from food_enrichment.domain.errors import InvalidBarcodeError
from food_enrichment.services.barcode import BarcodeService, product_from_off
from food_enrichment.services.cache import InMemoryCache
from tests.conftest import PEANUT_BUTTER, FakeOpenFoodFactsClient


@dataclass
class FlakyOpenFoodFactsClient(FakeOpenFoodFactsClient):
    failures: int = 1

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        self.calls += 1
        if self.calls <= self.failures:
            raise httpx.ReadTimeout("slow upstream")
        return self.products.get(barcode)


def test_lookup_normalizes_serving_nutrition(container: AppContainer) -> None:
    product = asyncio.run(container.barcode_service.lookup("0051500255162"))

    assert product is not None
    assert product.name == "Creamy Peanut Butter"
    assert product.brand == "Jif"
    assert product.ingredients == ["Roasted peanuts", "sugar", "molasses", "salt"]
    assert product.nutrition["serving_grams"] == 32.0
    assert product.nutrition["serving_text"] == "2 tbsp (32 g)"
    assert product.nutrition["macro_mode"] == "SCALED_FROM_100G"
    assert product.nutrition["calories_serving"] == 190
    assert product.nutrition["calories_per_100g"] == 594
    assert product.nutrition["sodium_mg_serving"] == 141
    assert product.ingredients_text == "Roasted peanuts, sugar, molasses, salt"
    assert product.health.score == 70
    assert product.health.flags == []


@pytest.mark.parametrize("code", ["", "12345", "abcdefgh", "123456789012345"])
def test_lookup_rejects_invalid_barcodes(container: AppContainer, code: str) -> None:
    with pytest.raises(InvalidBarcodeError):
        asyncio.run(container.barcode_service.lookup(code))


def test_unknown_barcode_returns_none(container: AppContainer) -> None:
    assert asyncio.run(container.barcode_service.lookup("12345678")) is None


def test_lookup_uses_cache() -> None:
    client = FakeOpenFoodFactsClient(products={PEANUT_BUTTER["code"]: PEANUT_BUTTER})
    service = BarcodeService(client=client, cache=InMemoryCache())

    first = asyncio.run(service.lookup("0051500255162"))
    second = asyncio.run(service.lookup(" 0051500255162 "))

    assert first == second
    assert client.calls == 1


def test_lookup_retries_transient_errors() -> None:
    client = FlakyOpenFoodFactsClient(products={PEANUT_BUTTER["code"]: PEANUT_BUTTER})
    service = BarcodeService(
        client=client, cache=InMemoryCache(), retry_delay_seconds=0
    )

    product = asyncio.run(service.lookup("0051500255162"))

    assert product is not None
    assert client.calls == 2


def test_lookup_raises_after_retries() -> None:
    client = FlakyOpenFoodFactsClient(failures=5)
    service = BarcodeService(
        client=client, cache=InMemoryCache(), retry_delay_seconds=0
    )

    with pytest.raises(httpx.ReadTimeout):
        asyncio.run(service.lookup("0051500255162"))

    assert client.calls == 2


def test_product_from_off_prefers_structured_ingredients() -> None:
    product = product_from_off(
        "3017620422003",
        {
            "product_name": "Nutella",
            "ingredients": [{"id": "en:sugar", "text": "Sugar"}, {"id": "en:palm-oil"}],
            "ingredients_text": "ignored",
            "nutriments": {"energy-kcal_100g": 539, "energy-kcal_serving": 80},
        },
    )

    assert product.ingredients == ["Sugar", "en:palm-oil"]
    assert product.brand is None
    assert product.nutrition["macro_mode"] == "SERVING_PROVIDER"
    assert product.nutrition["calories_serving"] == 80


def test_product_without_serving_falls_back_to_100g() -> None:
    product = product_from_off(
        "12345678", {"nutriments": {"energy-kj_100g": 1046}}
    )

    assert product.name == "Unknown product"
    assert product.nutrition["macro_mode"] == "PER100G_FALLBACK"
    assert product.nutrition["calories_serving"] == 250


def test_product_health_flags_and_score() -> None:
    product = product_from_off(
        "0016000275287",
        {
            "product_name": "Frosted Crunch",
            "serving_size": "1 cup (30 g)",
            "ingredients_text": "Sugar, corn flour, Red 40, BHT, sucralose",
            "additives_tags": ["en:e129", "fr:e321", ""],
            "allergens_tags": ["en:gluten", "es:Soja"],
            "nutriments": {"sugars_100g": 90, "sodium_100g": 3.0},
        },
    )

    assert product.additives == ["e129", "e321"]
    assert product.allergens == ["gluten", "soja"]
    assert [(flag.id, flag.level) for flag in product.health.flags] == [
        ("high_sugar", "danger"),
        ("artificial_colors", "warning"),
        ("preservatives", "warning"),
        ("artificial_sweeteners", "warning"),
        ("high_sodium", "warning"),
    ]
    assert product.health.flags[0].details == "27g sugar per serving"
    assert product.health.score == 10


def test_whole_grain_low_sodium_product_scores_higher() -> None:
    product = product_from_off(
        "0030000010402",
        {
            "product_name": "Rolled Oats",
            "serving_size": "40 g",
            "ingredients_text": "Whole grain rolled oats",
            "nutriments": {
                "energy-kcal_100g": 379,
                "sugars_100g": 1,
                "sodium_100g": 0.01,
            },
        },
    )

    assert [flag.id for flag in product.health.flags] == ["whole_grains", "low_sodium"]
    assert product.health.score == 90


def test_product_without_nutrition_has_no_health_score() -> None:
    product = product_from_off("12345678", {"ingredients_text": "aspartame"})

    assert [flag.id for flag in product.health.flags] == ["artificial_sweeteners"]
    assert product.health.score is None
