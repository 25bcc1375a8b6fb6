"""Nutrition domain models."""

from dataclasses import dataclass
from enum import Enum


class MacroMode(str, Enum):
    """Which data path produced per-serving nutrient values."""

    SERVING_PROVIDER = "SERVING_PROVIDER"
    SCALED_FROM_100G = "SCALED_FROM_100G"
    PER100G_FALLBACK = "PER100G_FALLBACK"


@dataclass(frozen=True)
class ServingInfo:
    """Serving size parsed from free-form text."""

    grams: float | None
    text: str | None = None


@dataclass(frozen=True)
class NormalizedNutrition:
    """Per-serving nutrient values with their derivation mode."""

    serving_grams: float | None
    serving_text: str | None
    calories_per_100g: int | None
    calories_serving: int
    protein_g_serving: float | None
    carbs_g_serving: float | None
    fat_g_serving: float | None
    fiber_g_serving: float | None
    sugar_g_serving: float | None
    sodium_mg_serving: int | None
    macro_mode: MacroMode

    @property
    def calories(self) -> int:
        return self.calories_serving

    @property
    def protein_g(self) -> float | None:
        return self.protein_g_serving

    @property
    def carbs_g(self) -> float | None:
        return self.carbs_g_serving

    @property
    def fat_g(self) -> float | None:
        return self.fat_g_serving

    @property
    def fiber_g(self) -> float | None:
        return self.fiber_g_serving

    @property
    def sugar_g(self) -> float | None:
        return self.sugar_g_serving

    @property
    def sodium_mg(self) -> int | None:
        return self.sodium_mg_serving

    def as_dict(self) -> dict[str, object]:
        """Serialize with legacy flat keys mirroring the serving values."""
        return {
            "serving_grams": self.serving_grams,
            "serving_text": self.serving_text,
            "calories_per_100g": self.calories_per_100g,
            "calories_serving": self.calories_serving,
            "protein_g_serving": self.protein_g_serving,
            "carbs_g_serving": self.carbs_g_serving,
            "fat_g_serving": self.fat_g_serving,
            "fiber_g_serving": self.fiber_g_serving,
            "sugar_g_serving": self.sugar_g_serving,
            "sodium_mg_serving": self.sodium_mg_serving,
            "macro_mode": self.macro_mode.value,
            "calories": self.calories,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "fiber_g": self.fiber_g,
            "sugar_g": self.sugar_g,
            "sodium_mg": self.sodium_mg,
        }
