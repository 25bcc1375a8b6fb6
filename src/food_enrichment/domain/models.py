"""Caller-facing response models."""

from typing import Literal

from pydantic import BaseModel, Field

from food_enrichment.domain.enrichment import ProviderSource, RouteDecision


class EnrichedFood(BaseModel):
    """Formatted enrichment result returned to the food logger."""

    name: str
    query: str
    source: ProviderSource
    ingredient_source: ProviderSource
    confidence: float = Field(ge=0.0, le=1.0)
    ingredients: list[str]
    nutrition: dict[str, object]
    decision: RouteDecision
    why_picked: str
    guards_applied: list[str] = Field(default_factory=list)
    cached: bool = False


class HealthFlag(BaseModel):
    """A single ingredient or nutrient observation about a product."""

    id: str
    level: Literal["danger", "warning", "info", "ok"]
    label: str
    details: str | None = None


class HealthReport(BaseModel):
    """Heuristic health flags with an optional 0-100 score."""

    score: int | None = Field(default=None, ge=0, le=100)
    flags: list[HealthFlag] = Field(default_factory=list)


class BarcodeProduct(BaseModel):
    """Product resolved from a barcode scan."""

    barcode: str
    name: str
    brand: str | None = None
    image_url: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    ingredients_text: str = ""
    additives: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    nutrition: dict[str, object]
    health: HealthReport = Field(default_factory=HealthReport)
