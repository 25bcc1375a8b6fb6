"""Barcode lookups through OpenFoodFacts."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from food_enrichment.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_enrichment.domain.errors import InvalidBarcodeError
from food_enrichment.domain.models import BarcodeProduct
from food_enrichment.services.cache import BARCODE_TTL_SECONDS, Cache
from food_enrichment.services.health import compute_health
from food_enrichment.services.normalizer import normalize_nutrition
from food_enrichment.services.serving import parse_serving_grams

_BARCODE = re.compile(r"^\d{8,14}$")
_INGREDIENT_SEPARATORS = re.compile(r"[,;•·()]")
_LOCALE_PREFIX = re.compile(r"^(?:en|fr|es):")
_INGREDIENT_TEXT_FIELDS = (
    "ingredients_text_en",
    "ingredients_text",
    "ingredients_text_es",
    "ingredients_text_fr",
)

_logger = logging.getLogger(__name__)


@dataclass
class BarcodeService:
    """Resolves scanned barcodes into per-serving nutrition."""

    client: OpenFoodFactsClient
    cache: Cache
    ttl_seconds: int = BARCODE_TTL_SECONDS
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def lookup(self, barcode: str) -> BarcodeProduct | None:
        """Return the product for a barcode, or None when it is unknown."""
        code = barcode.strip()
        if not _BARCODE.match(code):
            raise InvalidBarcodeError(f"Invalid barcode: {barcode!r}")

        cache_key = f"off:barcode:{code}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return BarcodeProduct.model_validate(cached)

        product = await self._call_with_retry(
            lambda: self.client.get_product(code), action=f"product:{code}"
        )
        if product is None:
            _logger.info("Barcode not found: %s", code)
            return None
        result = product_from_off(code, product)
        try:
            self.cache.set(
                cache_key, result.model_dump(mode="json"), ttl_seconds=self.ttl_seconds
            )
        except Exception:
            _logger.exception("Failed to cache barcode product %s", code)
        return result

    async def _call_with_retry(
        self,
        func: Callable[[], Awaitable[dict[str, object] | None]],
        *,
        action: str,
    ) -> dict[str, object] | None:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "OpenFoodFacts %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def product_from_off(barcode: str, product: dict[str, object]) -> BarcodeProduct:
    """Map a raw OpenFoodFacts product to a normalized record."""
    nutriments = product.get("nutriments")
    nutriments = nutriments if isinstance(nutriments, dict) else {}
    serving_text = product.get("serving_size")
    serving_text = serving_text if isinstance(serving_text, str) else None
    nutrition = normalize_nutrition(
        nutriments, parse_serving_grams(product), serving_text=serving_text
    )
    brands = str(product.get("brands") or "")
    ingredients_text = _ingredients_text(product)
    ingredients = _ingredients(product, ingredients_text)
    return BarcodeProduct(
        barcode=str(product.get("code") or barcode),
        name=str(
            product.get("product_name")
            or product.get("generic_name")
            or "Unknown product"
        ),
        brand=brands.split(",")[0].strip() or None,
        image_url=_str_or_none(
            product.get("image_front_small_url") or product.get("image_url")
        ),
        ingredients=ingredients,
        ingredients_text=ingredients_text,
        additives=_tags(
            product.get("additives_tags") or product.get("additives_original_tags")
        ),
        allergens=_tags(product.get("allergens_tags")),
        nutrition=nutrition.as_dict(),
        health=compute_health(ingredients, ingredients_text, nutrition),
    )


def _ingredients(product: dict[str, object], ingredients_text: str) -> list[str]:
    structured = product.get("ingredients")
    if isinstance(structured, list) and structured:
        names = []
        for item in structured:
            if isinstance(item, dict):
                name = item.get("text") or item.get("id")
            else:
                name = item
            if name:
                names.append(str(name).strip())
        return [name for name in names if name]
    parts = (part.strip() for part in _INGREDIENT_SEPARATORS.split(ingredients_text))
    return [part for part in parts if part]


def _ingredients_text(product: dict[str, object]) -> str:
    for field_name in _INGREDIENT_TEXT_FIELDS:
        text = product.get(field_name)
        if isinstance(text, str) and text.strip():
            return text.strip()
    return ""


def _tags(raw: object) -> list[str]:
    """Strip locale prefixes such as "en:" from taxonomy tags."""
    if not isinstance(raw, list):
        return []
    tags = (_LOCALE_PREFIX.sub("", str(tag)).lower() for tag in raw if tag)
    return [tag for tag in tags if tag]


def _str_or_none(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
