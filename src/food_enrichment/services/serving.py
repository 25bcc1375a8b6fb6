"""Serving size parsing helpers."""

import re
from collections.abc import Mapping

from food_enrichment.domain.nutrition import ServingInfo

OZ_TO_G = 28.349523125
# Liquids are treated as water; denser liquids such as oils are not corrected.
ML_TO_G = 1.0

_DECIMAL_COMMA = re.compile(r"(\d),(\d)")
_PER_100G = re.compile(r"\bper\s*100\s*(?:g|gr|grams?)\b", re.IGNORECASE)
_PAREN_GRAMS = re.compile(
    r"\(\s*(\d+(?:\.\d+)?)\s*(?:g|gr|grams?)\s*\)", re.IGNORECASE
)
_QUANTITY = re.compile(
    r"(\d+(?:\.\d+)?)\s*"
    r"(g|gr|grams?|oz|ounces?|ml|millilit(?:er|re)s?)\b",
    re.IGNORECASE,
)

_NUMERIC_FIELDS = ("serving_weight_grams", "serving_size_g", "serving_grams")
_TEXT_FIELDS = ("serving_size", "serving_text", "serving")


def parse_serving_from_text(text: str | None) -> ServingInfo:
    """Extract a gram amount from serving text such as "2 tbsp (32 g)"."""
    if not text:
        return ServingInfo(grams=None, text=None)

    normalized = _DECIMAL_COMMA.sub(r"\1.\2", text)
    if _PER_100G.search(normalized):
        return ServingInfo(grams=100.0, text=text)

    paren = _PAREN_GRAMS.search(normalized)
    if paren:
        return ServingInfo(grams=float(paren.group(1)), text=text)

    match = _QUANTITY.search(normalized)
    if not match:
        return ServingInfo(grams=None, text=text)
    amount = float(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("o"):
        return ServingInfo(grams=amount * OZ_TO_G, text=text)
    if unit.startswith("m"):
        return ServingInfo(grams=amount * ML_TO_G, text=text)
    return ServingInfo(grams=amount, text=text)


def parse_serving_grams(raw: Mapping[str, object]) -> float | None:
    """Resolve serving grams from numeric fields, text fields, or a kcal ratio."""
    for key in _NUMERIC_FIELDS:
        value = positive_number(raw.get(key))
        if value is not None:
            return value

    for key in _TEXT_FIELDS:
        text = raw.get(key)
        if isinstance(text, str) and text:
            grams = parse_serving_from_text(text).grams
            if grams is not None and grams > 0:
                return grams

    nutriments = raw.get("nutriments")
    sources = [nutriments, raw] if isinstance(nutriments, Mapping) else [raw]
    for source in sources:
        kcal_serving = positive_number(
            source.get("energy-kcal_serving", source.get("energy_kcal_serving"))
        )
        kcal_100g = positive_number(
            source.get("energy-kcal_100g", source.get("energy_kcal_100g"))
        )
        if kcal_serving is not None and kcal_100g is not None:
            return 100 * (kcal_serving / kcal_100g)
    return None


def positive_number(value: object) -> float | None:
    """Coerce numbers and numeric strings, keeping only values above zero."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value) if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip().replace(",", "."))
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None
