"""Nutrient normalization to per-serving values."""

import logging
import math
from collections.abc import Mapping

from food_enrichment.domain.nutrition import MacroMode, NormalizedNutrition

KJ_PER_KCAL = 4.184
SALT_TO_SODIUM = 0.393
ENERGY_TOLERANCE = 0.08
DEFAULT_SERVING_G = 100.0

_ENERGY_KCAL_KEYS = ("energy-kcal", "energy_kcal")
_ENERGY_KJ_KEYS = ("energy-kj", "energy_kj", "energy")

_logger = logging.getLogger(__name__)


def normalize_nutrition(
    nutriments: Mapping[str, object],
    serving_grams: float | None,
    serving_text: str | None = None,
) -> NormalizedNutrition:
    """Build per-serving nutrition from raw per-100g and per-serving fields.

    The macro mode follows where calories come from: a provider-supplied
    per-serving value, per-100g values scaled to a known serving, or the
    per-100g values themselves when no serving size is known.
    """
    values = _numeric_values(nutriments)
    kcal_100g = _energy_kcal(values, "100g")
    kcal_serving = _energy_kcal(values, "serving")
    grams = serving_grams if serving_grams and serving_grams > 0 else None

    if kcal_serving is not None:
        mode = MacroMode.SERVING_PROVIDER
        if grams is None and kcal_100g:
            grams = 100 * kcal_serving / kcal_100g
    elif grams is not None:
        mode = MacroMode.SCALED_FROM_100G
    else:
        mode = MacroMode.PER100G_FALLBACK
        grams = DEFAULT_SERVING_G

    use_serving = mode is MacroMode.SERVING_PROVIDER
    scale = grams / 100 if grams is not None else None

    def pick(key: str, per_serving: float | None = None) -> float | None:
        if use_serving:
            direct = per_serving if per_serving is not None else values.get(
                f"{key}_serving"
            )
            if direct is not None:
                return direct
        per_100g = kcal_100g if key == "energy-kcal" else values.get(f"{key}_100g")
        if per_100g is not None and scale is not None:
            return per_100g * scale
        return values.get(f"{key}_serving")

    calories = pick("energy-kcal", kcal_serving)
    sodium_g = pick("sodium")
    if sodium_g is None:
        salt_g = pick("salt")
        sodium_g = salt_g * SALT_TO_SODIUM if salt_g is not None else None

    if kcal_100g is not None:
        calories_per_100g = round_half_up(kcal_100g)
    elif kcal_serving is not None and grams:
        calories_per_100g = round_half_up(kcal_serving * 100 / grams)
    else:
        calories_per_100g = None

    return NormalizedNutrition(
        serving_grams=round_one(grams) if grams is not None else None,
        serving_text=serving_text,
        calories_per_100g=calories_per_100g,
        calories_serving=round_half_up(calories or 0.0),
        protein_g_serving=_optional(pick("proteins"), round_one),
        carbs_g_serving=_optional(pick("carbohydrates"), round_one),
        fat_g_serving=_optional(pick("fat"), round_one),
        fiber_g_serving=_optional(pick("fiber"), round_one),
        sugar_g_serving=_optional(pick("sugars"), round_one),
        sodium_mg_serving=_optional(
            sodium_g * 1000 if sodium_g is not None else None, round_half_up
        ),
        macro_mode=mode,
    )


def reconcile_energy(per_100g: dict[str, float]) -> dict[str, float]:
    """Clamp per-100g calories to the Atwater estimate when they disagree by >8%."""
    calories = per_100g.get("energy-kcal_100g")
    if calories is None:
        return per_100g
    calculated = (
        per_100g.get("carbohydrates_100g", 0.0) * 4
        + per_100g.get("fat_100g", 0.0) * 9
        + per_100g.get("proteins_100g", 0.0) * 4
    )
    if calculated <= 0:
        return per_100g
    if abs(calories - calculated) / calculated > ENERGY_TOLERANCE:
        _logger.info(
            "Energy sanity check failed: reported=%s calculated=%s",
            calories,
            round(calculated, 1),
        )
        return {**per_100g, "energy-kcal_100g": float(round_half_up(calculated))}
    return per_100g


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def round_one(value: float) -> float:
    """Round to one decimal place with .05 going up."""
    return math.floor(value * 10 + 0.5) / 10


def _optional(value, rounder):  # type: ignore[no-untyped-def]
    return rounder(value) if value is not None else None


def _energy_kcal(values: dict[str, float], basis: str) -> float | None:
    for prefix in _ENERGY_KCAL_KEYS:
        kcal = values.get(f"{prefix}_{basis}")
        if kcal is not None:
            return kcal
    for prefix in _ENERGY_KJ_KEYS:
        kilojoules = values.get(f"{prefix}_{basis}")
        if kilojoules is not None:
            return kilojoules / KJ_PER_KCAL
    return None


def _numeric_values(nutriments: Mapping[str, object]) -> dict[str, float]:
    """Keep finite, non-negative numeric fields."""
    values: dict[str, float] = {}
    for key, raw in nutriments.items():
        if isinstance(raw, bool):
            continue
        if isinstance(raw, str):
            try:
                number = float(raw.strip().replace(",", "."))
            except ValueError:
                continue
        elif isinstance(raw, int | float):
            number = float(raw)
        else:
            continue
        if math.isfinite(number) and number >= 0:
            values[key] = number
    return values
