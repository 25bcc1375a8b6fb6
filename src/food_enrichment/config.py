"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    nutritionix_app_id: str | None = None
    nutritionix_api_key: str | None = None
    nutritionix_base_url: str = "https://trackapi.nutritionix.com/v2"
    edamam_app_id: str | None = None
    edamam_app_key: str | None = None
    edamam_base_url: str = "https://api.edamam.com/api/food-database/v2"
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    provider_timeout_seconds: float = 1.2
    enrich_lock_sandwich: bool = True
    enrich_safe_mode: bool = False
    enrich_nix_cap_per_query: int = 1
    enrich_diag: bool = False
    enrich_fdc_guard: bool = True
    enrich_gpt_fallback: bool = True
    enrich_ingredient_backfill: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


@dataclass(frozen=True)
class EnrichmentFlags:
    """Feature flags consumed by the enrichment router."""

    lock_sandwich: bool = True
    safe_mode: bool = False
    branded_cap_per_query: int = 1
    diagnostics: bool = False
    fdc_guard: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnrichmentFlags":
        """Build router flags from application settings."""
        return cls(
            lock_sandwich=settings.enrich_lock_sandwich,
            safe_mode=settings.enrich_safe_mode,
            branded_cap_per_query=max(settings.enrich_nix_cap_per_query, 0),
            diagnostics=settings.enrich_diag,
            fdc_guard=settings.enrich_fdc_guard,
        )
