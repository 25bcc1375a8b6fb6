"""Heuristic health flags and score for packaged products."""

import re

from food_enrichment.domain.models import HealthFlag, HealthReport
from food_enrichment.domain.nutrition import NormalizedNutrition

BASE_SCORE = 70
HIGH_SUGAR_G = 18
DANGER_SUGAR_G = 25
WHOLE_GRAIN_MAX_SUGAR_G = 10
HIGH_SODIUM_MG = 800
DANGER_SODIUM_MG = 1200
LOW_SODIUM_MG = 140

_LEVEL_POINTS = {"danger": -20, "warning": -10, "info": 0, "ok": 10}

_ARTIFICIAL_COLORS = re.compile(
    r"(red\s?40|allura\s?red|yellow\s?5|tartrazine|yellow\s?6|sunset\s?yellow"
    r"|blue\s?1|blue\s?2|green\s?3)",
    re.IGNORECASE,
)
_PRESERVATIVES = re.compile(
    r"(bha|bht|tbhq|sodium\s+benzoate|potassium\s+sorbate)", re.IGNORECASE
)
_SWEETENERS = re.compile(
    r"(aspartame|acesulfame\s*k|sucralose|saccharin)", re.IGNORECASE
)


def compute_health(
    ingredients: list[str],
    ingredients_text: str,
    nutrition: NormalizedNutrition,
) -> HealthReport:
    """Flag concerning ingredients and per-serving nutrients, then score them.

    The score starts at 70 and moves 20 down per danger flag, 10 down per
    warning and 10 up per positive flag, clamped to 0..100. Without any
    calorie, sugar or sodium data there is no score.
    """
    text = (ingredients_text or " ".join(ingredients)).lower()
    sugar = nutrition.sugar_g_serving
    sodium = nutrition.sodium_mg_serving
    flags: list[HealthFlag] = []

    if sugar and sugar >= HIGH_SUGAR_G:
        flags.append(
            HealthFlag(
                id="high_sugar",
                level="danger" if sugar >= DANGER_SUGAR_G else "warning",
                label="High Sugar",
                details=f"{sugar:g}g sugar per serving",
            )
        )
    if _ARTIFICIAL_COLORS.search(text):
        flags.append(
            HealthFlag(
                id="artificial_colors",
                level="warning",
                label="Artificial Colors",
                details="Contains Red 40, Yellow 5/6, Blue 1, or other artificial colors",
            )
        )
    if _PRESERVATIVES.search(text):
        flags.append(
            HealthFlag(
                id="preservatives",
                level="warning",
                label="Preservatives of Concern",
                details="Contains BHA, BHT, TBHQ, or other concerning preservatives",
            )
        )
    if _SWEETENERS.search(text):
        flags.append(
            HealthFlag(
                id="artificial_sweeteners",
                level="warning",
                label="Artificial Sweeteners",
                details="Contains aspartame, sucralose, or other artificial sweeteners",
            )
        )
    if sodium and sodium > HIGH_SODIUM_MG:
        flags.append(
            HealthFlag(
                id="high_sodium",
                level="danger" if sodium > DANGER_SODIUM_MG else "warning",
                label="High Sodium",
                details=f"{sodium}mg sodium per serving",
            )
        )
    if "whole grain" in text and (not sugar or sugar < WHOLE_GRAIN_MAX_SUGAR_G):
        flags.append(
            HealthFlag(
                id="whole_grains",
                level="ok",
                label="Whole Grains",
                details="Contains whole grain ingredients",
            )
        )
    if sodium and sodium < LOW_SODIUM_MG:
        flags.append(
            HealthFlag(
                id="low_sodium", level="ok", label="Low Sodium", details="Low in sodium"
            )
        )

    score = None
    if nutrition.calories_serving or sugar or sodium:
        score = BASE_SCORE + sum(_LEVEL_POINTS[flag.level] for flag in flags)
        score = max(0, min(100, score))
    return HealthReport(score=score, flags=flags)
