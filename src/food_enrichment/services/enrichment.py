"""Enrichment service: cache, routing, estimation fallback, formatting."""

import asyncio
import logging
from dataclasses import dataclass

from food_enrichment.domain.enrichment import (
    AggregateResult,
    ProviderResult,
    ProviderSource,
    RouteDecision,
)
from food_enrichment.domain.errors import EmptyQueryError
from food_enrichment.domain.models import EnrichedFood
from food_enrichment.services.aggregator import aggregate_results, format_enriched_food
from food_enrichment.services.cache import (
    ENRICHMENT_TTL_SECONDS,
    Cache,
    enrichment_cache_key,
)
from food_enrichment.services.providers import FoodProvider
from food_enrichment.services.router import EnrichmentRouter, LookupContext

_logger = logging.getLogger(__name__)


@dataclass
class EnrichmentService:
    """Resolves a free-text food query into a per-serving nutrition record."""

    router: EnrichmentRouter
    cache: Cache
    estimator: FoodProvider | None = None
    gpt_fallback: bool = True
    ingredient_backfill: bool = True
    ttl_seconds: int = ENRICHMENT_TTL_SECONDS
    estimate_timeout_seconds: float = 10.0

    async def enrich(
        self,
        query: str,
        context: LookupContext = "manual",
        locale: str = "auto",
        bypass_cache: bool = False,
    ) -> EnrichedFood | None:
        """Return enriched nutrition for a query, or None when nothing matched."""
        cleaned = query.strip()
        if not cleaned:
            raise EmptyQueryError("Query is required")

        cache_key = enrichment_cache_key(cleaned, locale)
        if not bypass_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                _logger.info("Enrichment cache hit: query=%r", cleaned)
                return EnrichedFood.model_validate({**cached, "cached": True})

        aggregate = aggregate_results(await self.router.route(cleaned, context))
        if aggregate.final is None and self.gpt_fallback:
            estimated = await self._estimate(cleaned)
            if estimated is not None:
                aggregate = AggregateResult(
                    final=estimated,
                    guards_applied=aggregate.guards_applied,
                    decision=RouteDecision.FALLBACK,
                    why_picked="estimated_fallback",
                )
        if aggregate.final is None:
            _logger.info("No nutrition data found: query=%r", cleaned)
            return None

        backfill = await self._ingredient_backfill(cleaned, aggregate.final)
        food = format_enriched_food(aggregate, cleaned, ingredient_result=backfill)
        if food is None:
            return None
        _logger.info(
            "Enrichment hit: query=%r source=%s confidence=%.2f ingredients=%s",
            cleaned,
            food.source.value,
            food.confidence,
            len(food.ingredients),
        )
        try:
            self.cache.set(
                cache_key, food.model_dump(mode="json"), ttl_seconds=self.ttl_seconds
            )
        except Exception:
            _logger.exception("Failed to cache enrichment result")
        return food

    async def _ingredient_backfill(
        self, query: str, final: ProviderResult
    ) -> ProviderResult | None:
        """Estimate a richer ingredient list when the winner has at most one."""
        if (
            not self.ingredient_backfill
            or final.ingredients_len > 1
            or final.source is ProviderSource.ESTIMATED
        ):
            return None
        estimated = await self._estimate(query)
        if estimated is None or estimated.ingredients_len <= 1:
            return None
        _logger.info(
            "Ingredient backfill: %s ingredients from estimate",
            estimated.ingredients_len,
        )
        return estimated

    async def _estimate(self, query: str) -> ProviderResult | None:
        if self.estimator is None:
            return None
        try:
            return await asyncio.wait_for(
                self.estimator.lookup(query), timeout=self.estimate_timeout_seconds
            )
        except TimeoutError:
            _logger.warning("Estimation timed out: query=%r", query)
        except Exception as exc:
            _logger.warning("Estimation failed: query=%r error=%s", query, exc)
        return None
