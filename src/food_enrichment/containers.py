"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_enrichment.adapters.edamam_client import HttpxEdamamClient
from food_enrichment.adapters.fdc_client import HttpxFdcClient
from food_enrichment.adapters.nutritionix_client import HttpxNutritionixClient
from food_enrichment.adapters.openai_estimation_client import OpenAIEstimationClient
from food_enrichment.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_enrichment.adapters.supabase_enrichment_cache import SupabaseEnrichmentCache
from food_enrichment.config import EnrichmentFlags, Settings
from food_enrichment.domain.enrichment import ProviderSource
from food_enrichment.services.barcode import BarcodeService
from food_enrichment.services.cache import Cache, InMemoryCache
from food_enrichment.services.enrichment import EnrichmentService
from food_enrichment.services.providers import (
    EdamamProvider,
    EstimationProvider,
    FdcProvider,
    FoodProvider,
    NutritionixProvider,
)
from food_enrichment.services.router import EnrichmentRouter


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    enrichment_service: EnrichmentService
    barcode_service: BarcodeService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    Providers without credentials are left out, so the router treats them as
    returning no candidate.
    """
    resolved_settings = settings or Settings()
    closers: list[Callable[[], Awaitable[None]]] = []
    providers: dict[ProviderSource, FoodProvider] = {}

    if resolved_settings.nutritionix_app_id and resolved_settings.nutritionix_api_key:
        nutritionix_client = HttpxNutritionixClient.create(
            app_id=resolved_settings.nutritionix_app_id,
            api_key=resolved_settings.nutritionix_api_key,
            base_url=resolved_settings.nutritionix_base_url,
        )
        providers[ProviderSource.BRANDED] = NutritionixProvider(nutritionix_client)
        closers.append(nutritionix_client.close)
    if resolved_settings.edamam_app_id and resolved_settings.edamam_app_key:
        edamam_client = HttpxEdamamClient.create(
            app_id=resolved_settings.edamam_app_id,
            app_key=resolved_settings.edamam_app_key,
            base_url=resolved_settings.edamam_base_url,
        )
        providers[ProviderSource.GENERIC] = EdamamProvider(edamam_client)
        closers.append(edamam_client.close)
    if resolved_settings.fdc_api_key:
        fdc_client = HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
        )
        providers[ProviderSource.MINIMAL] = FdcProvider(fdc_client)
        closers.append(fdc_client.close)

    estimator: FoodProvider | None = None
    if resolved_settings.openai_api_key:
        openai_client = OpenAIEstimationClient.create(resolved_settings.openai_api_key)
        estimator = EstimationProvider(
            client=openai_client, model=resolved_settings.openai_model
        )
        closers.append(openai_client.close)

    cache = _build_cache(resolved_settings)
    router = EnrichmentRouter(
        providers=providers,
        flags=EnrichmentFlags.from_settings(resolved_settings),
        timeout_seconds=resolved_settings.provider_timeout_seconds,
    )
    enrichment_service = EnrichmentService(
        router=router,
        cache=cache,
        estimator=estimator,
        gpt_fallback=resolved_settings.enrich_gpt_fallback,
        ingredient_backfill=resolved_settings.enrich_ingredient_backfill,
    )
    off_client = HttpxOpenFoodFactsClient.create(
        resolved_settings.openfoodfacts_base_url
    )
    closers.append(off_client.close)
    barcode_service = BarcodeService(client=off_client, cache=cache)

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        enrichment_service=enrichment_service,
        barcode_service=barcode_service,
        close_resources=close_resources,
    )


def _build_cache(settings: Settings) -> Cache:
    if settings.supabase_url and settings.supabase_service_key:
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseEnrichmentCache(client)
    return InMemoryCache()
