"""Enrichment routing domain models."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class ProviderSource(str, Enum):
    """Food data providers, ranked by how rich their ingredient data is."""

    BRANDED = "BRANDED"
    GENERIC = "GENERIC"
    MINIMAL = "MINIMAL"
    ESTIMATED = "ESTIMATED"


class RouteDecision(str, Enum):
    """How a routing result was picked."""

    GATE = "gate"
    SCORE = "score"
    FALLBACK = "fallback"
    GUARD = "guard"
    NO_RESULTS = "no_results"


@dataclass(frozen=True)
class FoodPayload:
    """Provider-neutral food data carried by a provider result."""

    name: str
    brand: str | None = None
    ingredients: tuple[str, ...] = ()
    nutriments: dict[str, float] = field(default_factory=dict)
    serving_text: str | None = None
    serving_grams: float | None = None
    source_id: str | None = None


@dataclass(frozen=True)
class ProviderResult:
    """A single provider match."""

    source: ProviderSource
    ingredients_len: int
    confidence: float
    data: FoodPayload
    cached: bool | None = None

    def __post_init__(self) -> None:
        if self.ingredients_len < 0:
            raise ValueError("ingredients_len must be non-negative")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0, 1]")


@dataclass(frozen=True)
class AttemptStats:
    """Calls made to one provider during a routing pass."""

    calls: int = 0
    best_ingredients_len: int = 0


@dataclass(frozen=True)
class RouterResult:
    """Outcome of routing a query across providers."""

    chosen: ProviderResult | None
    tried: Mapping[ProviderSource, AttemptStats]
    decision: RouteDecision
    why_picked: str
    time_ms: float = field(default=0.0, compare=False)
    candidates: tuple[ProviderResult, ...] = ()


@dataclass(frozen=True)
class AggregateResult:
    """Router result after the aggregation guards."""

    final: ProviderResult | None
    guards_applied: tuple[str, ...]
    decision: RouteDecision
    why_picked: str
