"""Food data providers mapped onto a single lookup contract."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from food_enrichment.adapters.edamam_client import EdamamClient
from food_enrichment.adapters.fdc_client import FdcClient
from food_enrichment.adapters.nutritionix_client import NutritionixClient
from food_enrichment.adapters.openai_estimation_client import EstimationClient
from food_enrichment.domain.enrichment import (
    FoodPayload,
    ProviderResult,
    ProviderSource,
)
from food_enrichment.services.normalizer import reconcile_energy
from food_enrichment.services.serving import positive_number

MAX_INGREDIENTS = 40

# FDC search results carry legacy nutrient numbers, food details carry ids.
_FDC_NUTRIENTS = {
    "208": "energy-kcal_100g",
    "1008": "energy-kcal_100g",
    "203": "proteins_100g",
    "1003": "proteins_100g",
    "204": "fat_100g",
    "1004": "fat_100g",
    "205": "carbohydrates_100g",
    "1005": "carbohydrates_100g",
    "291": "fiber_100g",
    "1079": "fiber_100g",
    "269": "sugars_100g",
    "2000": "sugars_100g",
    "307": "sodium_100g",
    "1093": "sodium_100g",
}
_MG_NUTRIENTS = {"sodium_100g"}

_EDAMAM_NUTRIENTS = {
    "ENERC_KCAL": "energy-kcal_100g",
    "PROCNT": "proteins_100g",
    "FAT": "fat_100g",
    "CHOCDF": "carbohydrates_100g",
    "FIBTG": "fiber_100g",
    "SUGAR": "sugars_100g",
    "NA": "sodium_100g",
}

_NUTRITIONIX_NUTRIENTS = {
    "nf_calories": "energy-kcal",
    "nf_protein": "proteins",
    "nf_total_fat": "fat",
    "nf_total_carbohydrate": "carbohydrates",
    "nf_dietary_fiber": "fiber",
    "nf_sugars": "sugars",
    "nf_sodium": "sodium",
}

_PARENTHETICAL = re.compile(r"\(.*?\)")
_INGREDIENT_SPLIT = re.compile(r"[,;]+")

_logger = logging.getLogger(__name__)


class FoodProvider(Protocol):
    """Looks up a single best match for a free-text food query."""

    async def lookup(
        self, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        """Return the provider's best match, or None when nothing matched."""


def parse_ingredient_statement(raw: str | None) -> tuple[str, ...]:
    """Split a label ingredient statement into names, dropping parentheticals."""
    if not raw:
        return ()
    names = (
        chunk.strip()
        for chunk in _INGREDIENT_SPLIT.split(_PARENTHETICAL.sub("", raw))
    )
    return tuple(name for name in names if name)[:MAX_INGREDIENTS]


@dataclass
class NutritionixProvider(FoodProvider):
    """Branded provider: Nutritionix instant search with an item deep fetch."""

    client: NutritionixClient
    confidence: float = 0.75

    async def lookup(
        self, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        """Deep fetch the top instant match, else use natural nutrients."""
        try:
            instant = await self.client.search_instant(query)
        except httpx.HTTPError as exc:
            _logger.warning("Nutritionix instant search failed: %s", exc)
            return None
        branded_items = _dicts(instant.get("branded"))
        common_items = _dicts(instant.get("common"))
        candidates = branded_items if branded else branded_items + common_items
        if not candidates:
            return None
        top = candidates[0]
        item_id = top.get("nix_item_id") or top.get("tag_id")
        if not item_id:
            return None

        food = None
        try:
            detail = await self.client.get_item(str(item_id))
            foods = _dicts(detail.get("foods"))
            food = foods[0] if foods else None
        except httpx.HTTPError as exc:
            _logger.warning("Nutritionix item fetch failed: %s", exc)
        if food is None:
            food = await self._natural(query)
        if food is None:
            return None
        return self._to_result(food, fallback_name=str(top.get("food_name") or query))

    async def _natural(self, query: str) -> dict[str, object] | None:
        try:
            payload = await self.client.natural_nutrients(query)
        except httpx.HTTPError as exc:
            _logger.warning("Nutritionix natural nutrients failed: %s", exc)
            return None
        foods = _dicts(payload.get("foods"))
        return foods[0] if foods else None

    def _to_result(self, food: dict[str, object], fallback_name: str) -> ProviderResult:
        name = str(food.get("food_name") or fallback_name)
        serving_grams = positive_number(food.get("serving_weight_grams"))
        scale = 100 / serving_grams if serving_grams else None
        nutriments: dict[str, float] = {}
        for field_name, key in _NUTRITIONIX_NUTRIENTS.items():
            value = _number(food.get(field_name))
            if value is None:
                continue
            if key == "sodium":
                value = value / 1000
            nutriments[f"{key}_serving"] = value
            if scale is not None:
                nutriments[f"{key}_100g"] = value * scale
        nutriments = reconcile_energy(nutriments)
        ingredients = parse_ingredient_statement(
            _str_or_none(food.get("nf_ingredient_statement"))
        ) or (name,)
        serving_text = None
        if food.get("serving_qty") and food.get("serving_unit"):
            serving_text = f"{food['serving_qty']} {food['serving_unit']}"
        return ProviderResult(
            source=ProviderSource.BRANDED,
            ingredients_len=len(ingredients),
            confidence=self.confidence,
            data=FoodPayload(
                name=name,
                brand=_str_or_none(food.get("brand_name")),
                ingredients=ingredients,
                nutriments=nutriments,
                serving_text=serving_text,
                serving_grams=serving_grams,
                source_id=_str_or_none(food.get("nix_item_id")),
            ),
        )


@dataclass
class EdamamProvider(FoodProvider):
    """Generic ingredient provider backed by the Edamam food database."""

    client: EdamamClient
    confidence: float = 0.78

    async def lookup(
        self, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        """Return the first parsed food, or the first hint."""
        try:
            payload = await self.client.parse(query)
        except httpx.HTTPError as exc:
            _logger.warning("Edamam parser failed: %s", exc)
            return None
        entries = _dicts(payload.get("parsed")) or _dicts(payload.get("hints"))
        food = entries[0].get("food") if entries else None
        if not isinstance(food, dict):
            return None

        raw_nutrients = food.get("nutrients")
        raw_nutrients = raw_nutrients if isinstance(raw_nutrients, dict) else {}
        nutriments: dict[str, float] = {}
        for code, key in _EDAMAM_NUTRIENTS.items():
            value = _number(raw_nutrients.get(code))
            if value is None:
                continue
            nutriments[key] = value / 1000 if key in _MG_NUTRIENTS else value
        nutriments = reconcile_energy(nutriments)

        name = str(food.get("label") or query)
        ingredients = parse_ingredient_statement(
            _str_or_none(food.get("foodContentsLabel"))
        ) or (name,)
        return ProviderResult(
            source=ProviderSource.GENERIC,
            ingredients_len=len(ingredients),
            confidence=self.confidence,
            data=FoodPayload(
                name=name,
                brand=_str_or_none(food.get("brand")),
                ingredients=ingredients,
                nutriments=nutriments,
                source_id=_str_or_none(food.get("foodId")),
            ),
        )


@dataclass
class FdcProvider(FoodProvider):
    """Minimal ingredient provider backed by USDA FoodData Central search."""

    client: FdcClient
    confidence: float = 0.85
    page_size: int = 5

    async def lookup(
        self, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        """Return the first FDC search hit with per-100g nutrients."""
        try:
            payload = await self.client.search_foods(query, page_size=self.page_size)
        except httpx.HTTPError as exc:
            _logger.warning("FDC search failed: %s", exc)
            return None
        foods = _dicts(payload.get("foods"))
        if not foods:
            return None
        food = foods[0]

        nutriments: dict[str, float] = {}
        for nutrient in _dicts(food.get("foodNutrients")):
            number = nutrient.get("nutrientNumber") or nutrient.get("nutrientId")
            key = _FDC_NUTRIENTS.get(str(number))
            value = _number(nutrient.get("value", nutrient.get("amount")))
            if key is None or value is None:
                continue
            nutriments[key] = value / 1000 if key in _MG_NUTRIENTS else value
        nutriments = reconcile_energy(nutriments)

        name = str(food.get("description") or query)
        ingredients = parse_ingredient_statement(
            _str_or_none(food.get("ingredients"))
        ) or (name,)
        fdc_id = food.get("fdcId")
        return ProviderResult(
            source=ProviderSource.MINIMAL,
            ingredients_len=len(ingredients),
            confidence=self.confidence,
            data=FoodPayload(
                name=name,
                brand=_str_or_none(food.get("brandName") or food.get("brandOwner")),
                ingredients=ingredients,
                nutriments=nutriments,
                serving_grams=_fdc_serving_grams(food),
                source_id=str(fdc_id) if fdc_id is not None else None,
            ),
        )


@dataclass
class EstimationProvider(FoodProvider):
    """LLM estimate used when no data provider produced a usable match."""

    client: EstimationClient
    model: str
    min_confidence: float = 0.55
    max_confidence: float = 0.70

    async def lookup(
        self, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        """Ask the model for per-100g nutrition and an ingredient list."""
        raw = await self.client.estimate(model=self.model, query=query)
        per_100g = raw.get("per100g")
        per_100g = per_100g if isinstance(per_100g, dict) else {}
        nutriments: dict[str, float] = {}
        for field_name, key in (
            ("calories", "energy-kcal_100g"),
            ("protein", "proteins_100g"),
            ("fat", "fat_100g"),
            ("carbs", "carbohydrates_100g"),
            ("fiber", "fiber_100g"),
            ("sugar", "sugars_100g"),
            ("sodium", "sodium_100g"),
        ):
            value = _number(per_100g.get(field_name))
            if value is None:
                continue
            nutriments[key] = value / 1000 if key in _MG_NUTRIENTS else value
        nutriments = reconcile_energy(nutriments)

        name = str(raw.get("name") or query)
        ingredients = tuple(
            str(item.get("name")).strip()
            for item in _dicts(raw.get("ingredients"))
            if item.get("name")
        )[:MAX_INGREDIENTS] or (name,)
        confidence = _number(raw.get("confidence"))
        if confidence is None:
            confidence = self.min_confidence
        confidence = max(self.min_confidence, min(self.max_confidence, confidence))
        return ProviderResult(
            source=ProviderSource.ESTIMATED,
            ingredients_len=len(ingredients),
            confidence=confidence,
            data=FoodPayload(
                name=name,
                ingredients=ingredients,
                nutriments=nutriments,
            ),
        )


def _fdc_serving_grams(food: dict[str, object]) -> float | None:
    unit = str(food.get("servingSizeUnit") or "").lower()
    if unit not in {"g", "grm", "ml", "mlt"}:
        return None
    return positive_number(food.get("servingSize"))


def _dicts(value: object) -> list[dict[str, object]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def _str_or_none(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
