"""Post-routing guards and formatting of the chosen result."""

import logging

from food_enrichment.domain.enrichment import (
    AggregateResult,
    ProviderResult,
    RouteDecision,
    RouterResult,
)
from food_enrichment.domain.models import EnrichedFood
from food_enrichment.services.normalizer import normalize_nutrition
from food_enrichment.services.router import find_richer_candidate, is_weak_minimal
from food_enrichment.services.serving import parse_serving_grams

LOW_CONFIDENCE = 0.3
GUARD_REPLACED = "minimal_guard_replaced"
GUARD_WEAK_NO_ALTERNATIVE = "minimal_weak_no_alternative"

_logger = logging.getLogger(__name__)


def aggregate_results(router_result: RouterResult) -> AggregateResult:
    """Re-check the routed choice against every candidate the router saw."""
    chosen = router_result.chosen
    if chosen is None:
        return AggregateResult(
            final=None,
            guards_applied=(),
            decision=RouteDecision.NO_RESULTS,
            why_picked="no_results",
        )

    final = chosen
    guards: list[str] = []
    decision = router_result.decision
    why_picked = router_result.why_picked
    if is_weak_minimal(chosen):
        better = find_richer_candidate(router_result.candidates)
        if better is not None:
            final = better
            guards.append(GUARD_REPLACED)
            decision = RouteDecision.GUARD
            why_picked = f"minimal_guard_replaced_with_{better.source.value.lower()}"
        else:
            guards.append(GUARD_WEAK_NO_ALTERNATIVE)

    if final.confidence < LOW_CONFIDENCE:
        _logger.warning(
            "Low confidence result: source=%s confidence=%.2f",
            final.source.value,
            final.confidence,
        )

    return AggregateResult(
        final=final,
        guards_applied=tuple(guards),
        decision=decision,
        why_picked=why_picked,
    )


def format_enriched_food(
    aggregate: AggregateResult,
    query: str,
    *,
    ingredient_result: ProviderResult | None = None,
    cached: bool = False,
) -> EnrichedFood | None:
    """Format the final result into the record shown by the food logger.

    ``ingredient_result`` overrides only the ingredient list, for backfills
    where nutrition stays with the trusted provider.
    """
    final = aggregate.final
    if final is None:
        return None
    payload = final.data
    serving_grams = payload.serving_grams or parse_serving_grams(
        {"serving_text": payload.serving_text, "nutriments": payload.nutriments}
    )
    nutrition = normalize_nutrition(
        payload.nutriments, serving_grams, serving_text=payload.serving_text
    )

    ingredient_source = final.source
    if ingredient_result is not None:
        names = list(ingredient_result.data.ingredients)
        ingredient_source = ingredient_result.source
    else:
        names = list(payload.ingredients) or [payload.name]

    return EnrichedFood(
        name=payload.name,
        query=query,
        source=final.source,
        ingredient_source=ingredient_source,
        confidence=final.confidence,
        ingredients=names,
        nutrition=nutrition.as_dict(),
        decision=aggregate.decision,
        why_picked=aggregate.why_picked,
        guards_applied=list(aggregate.guards_applied),
        cached=cached,
    )
