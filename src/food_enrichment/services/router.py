"""Provider routing with sandwich gating and a weak-result guard."""

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, NamedTuple

from food_enrichment.config import EnrichmentFlags
from food_enrichment.domain.enrichment import (
    AttemptStats,
    ProviderResult,
    ProviderSource,
    RouteDecision,
    RouterResult,
)
from food_enrichment.services.providers import FoodProvider

SANDWICH_TERMS = frozenset(
    {"club", "sandwich", "sub", "wrap", "burger", "torta", "hoagie"}
)
SANDWICH_GATE_MIN_INGREDIENTS = 5
ACCEPT_MIN_INGREDIENTS = 2
WEAK_MAX_INGREDIENTS = 1

LookupContext = Literal["manual", "scan"]

_logger = logging.getLogger(__name__)


class _Step(NamedTuple):
    source: ProviderSource
    branded: bool
    min_ingredients: int
    decision: RouteDecision
    reason: str


def is_sandwichy(query: str) -> bool:
    """Return True when any query token names a sandwich-style food."""
    return any(token in SANDWICH_TERMS for token in query.lower().split())


def find_richer_candidate(
    candidates: Iterable[ProviderResult],
) -> ProviderResult | None:
    """Return the first non-minimal candidate with at least two ingredients."""
    for candidate in candidates:
        if (
            candidate.source is not ProviderSource.MINIMAL
            and candidate.ingredients_len >= ACCEPT_MIN_INGREDIENTS
        ):
            return candidate
    return None


def is_weak_minimal(result: ProviderResult | None) -> bool:
    """Return True for a minimal-provider match with at most one ingredient."""
    return (
        result is not None
        and result.source is ProviderSource.MINIMAL
        and result.ingredients_len <= WEAK_MAX_INGREDIENTS
    )


@dataclass
class _RoutingPass:
    """Per-query call bookkeeping."""

    providers: Mapping[ProviderSource, FoodProvider]
    flags: EnrichmentFlags
    timeout_seconds: float
    tried: dict[ProviderSource, AttemptStats] = field(default_factory=dict)
    candidates: list[ProviderResult] = field(default_factory=list)

    async def call(
        self, source: ProviderSource, query: str, *, branded: bool = False
    ) -> ProviderResult | None:
        provider = self.providers.get(source)
        if provider is None:
            return None
        stats = self.tried.get(source, AttemptStats())
        if (
            source is ProviderSource.BRANDED
            and stats.calls >= self.flags.branded_cap_per_query
        ):
            return None

        result: ProviderResult | None = None
        try:
            result = await asyncio.wait_for(
                provider.lookup(query, branded=branded),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            _logger.warning(
                "Provider %s timed out after %ss", source.value, self.timeout_seconds
            )
        except Exception as exc:
            _logger.warning("Provider %s failed: %s", source.value, exc)

        best = stats.best_ingredients_len
        if result is not None:
            best = max(best, result.ingredients_len)
            self.candidates.append(result)
        self.tried[source] = AttemptStats(
            calls=stats.calls + 1, best_ingredients_len=best
        )
        return result

    async def first_accepted(
        self, query: str, steps: list[_Step]
    ) -> tuple[ProviderResult | None, RouteDecision, str]:
        for step in steps:
            result = await self.call(step.source, query, branded=step.branded)
            if result is not None and result.ingredients_len >= step.min_ingredients:
                return result, step.decision, step.reason
        return None, RouteDecision.FALLBACK, "no_results"


@dataclass
class EnrichmentRouter:
    """Decides which providers to query for a free-text food query.

    Each call is independent: providers are awaited one at a time in a fixed
    priority order and the first result meeting its branch's ingredient
    threshold wins. Provider errors and timeouts count as "no candidate".
    """

    providers: Mapping[ProviderSource, FoodProvider]
    flags: EnrichmentFlags = field(default_factory=EnrichmentFlags)
    timeout_seconds: float = 1.2

    async def route(
        self, query: str, context: LookupContext = "manual"
    ) -> RouterResult:
        """Route a query through the providers and pick a result."""
        started = time.perf_counter()
        tokens = query.split()
        is_multi_word = len(tokens) > 1
        sandwich = is_sandwichy(query)
        routing = _RoutingPass(self.providers, self.flags, self.timeout_seconds)

        if self.flags.diagnostics:
            _logger.info(
                "Routing query=%r context=%s multiword=%s sandwich=%s",
                query,
                context,
                is_multi_word,
                sandwich,
            )

        chosen: ProviderResult | None = None
        decision = RouteDecision.FALLBACK
        why_picked = "no_results"
        if not tokens:
            pass
        elif not is_multi_word:
            chosen = await routing.call(ProviderSource.GENERIC, query)
            if chosen is None:
                chosen = await routing.call(ProviderSource.MINIMAL, query)
            if chosen is not None:
                why_picked = f"single_word_{chosen.source.value.lower()}"
        elif sandwich and self.flags.lock_sandwich and not self.flags.safe_mode:
            chosen, decision, why_picked = await routing.first_accepted(
                query, _sandwich_steps()
            )
        else:
            chosen, decision, why_picked = await routing.first_accepted(
                query, _multi_word_steps(self.flags)
            )

        if self.flags.fdc_guard and is_weak_minimal(chosen):
            better = find_richer_candidate(routing.candidates)
            if better is not None:
                chosen = better
                decision = RouteDecision.GUARD
                why_picked = f"minimal_guard_replaced_with_{better.source.value.lower()}"
                if self.flags.diagnostics:
                    _logger.info(
                        "Guard replaced weak minimal match with %s (%s ingredients)",
                        better.source.value,
                        better.ingredients_len,
                    )
            else:
                why_picked = "weak_only_option"

        result = RouterResult(
            chosen=chosen,
            tried=MappingProxyType(dict(routing.tried)),
            decision=decision,
            why_picked=why_picked,
            time_ms=(time.perf_counter() - started) * 1000,
            candidates=tuple(routing.candidates),
        )
        if self.flags.diagnostics:
            _logger.info(
                "Routing result query=%r chosen=%s decision=%s why=%s tried=%s "
                "time_ms=%.1f",
                query,
                _describe(chosen),
                decision.value,
                why_picked,
                {source.value: stats for source, stats in routing.tried.items()},
                result.time_ms,
            )
        return result


def _sandwich_steps() -> list[_Step]:
    return [
        _Step(
            ProviderSource.BRANDED,
            True,
            SANDWICH_GATE_MIN_INGREDIENTS,
            RouteDecision.GATE,
            "sandwich_branded_gate",
        ),
        _Step(
            ProviderSource.GENERIC,
            False,
            SANDWICH_GATE_MIN_INGREDIENTS,
            RouteDecision.GATE,
            "sandwich_generic_gate",
        ),
        _Step(
            ProviderSource.MINIMAL,
            False,
            ACCEPT_MIN_INGREDIENTS,
            RouteDecision.FALLBACK,
            "sandwich_minimal_fallback",
        ),
    ]


def _multi_word_steps(flags: EnrichmentFlags) -> list[_Step]:
    steps = [
        _Step(
            ProviderSource.GENERIC,
            False,
            ACCEPT_MIN_INGREDIENTS,
            RouteDecision.SCORE,
            "multiword_generic",
        )
    ]
    if not flags.safe_mode:
        steps.append(
            _Step(
                ProviderSource.BRANDED,
                False,
                ACCEPT_MIN_INGREDIENTS,
                RouteDecision.SCORE,
                "multiword_branded",
            )
        )
    steps.append(
        _Step(
            ProviderSource.MINIMAL,
            False,
            ACCEPT_MIN_INGREDIENTS,
            RouteDecision.FALLBACK,
            "multiword_minimal_fallback",
        )
    )
    return steps


def _describe(result: ProviderResult | None) -> str:
    if result is None:
        return "none"
    return f"{result.source.value}:{result.ingredients_len}"
