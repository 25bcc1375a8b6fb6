"""Supabase-backed cache for enrichment results."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from supabase import Client

from food_enrichment.services.cache import Cache


@dataclass
class SupabaseEnrichmentCache(Cache):
    """Cache stored in the food_enrichment_cache table."""

    client: Client
    table: str = "food_enrichment_cache"

    def get(self, key: str) -> dict[str, object] | None:
        """Return a cached record unless it has expired."""
        response = (
            self.client.table(self.table)
            .select("response_data, expires_at")
            .eq("query_hash", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        expires_at = row.get("expires_at")
        if expires_at and datetime.fromisoformat(str(expires_at)) <= datetime.now(
            tz=UTC
        ):
            return None
        data = row.get("response_data")
        return data if isinstance(data, dict) else None

    def set(self, key: str, value: dict[str, object], ttl_seconds: int) -> None:
        """Upsert a record keyed by its query hash."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self.client.table(self.table).upsert(
            {
                "query_hash": key,
                "query": value.get("query"),
                "source": value.get("source"),
                "confidence": value.get("confidence"),
                "response_data": value,
                "expires_at": expires_at.isoformat(),
            },
            on_conflict="query_hash",
        ).execute()
