"""Cache abstractions for enrichment results."""

import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

ENRICHMENT_TTL_SECONDS = 90 * 24 * 3600
BARCODE_TTL_SECONDS = 24 * 3600


class Cache(Protocol):
    """Cache interface for JSON-like records."""

    def get(self, key: str) -> dict[str, object] | None:
        """Return a cached record if present and not expired."""

    def set(self, key: str, value: dict[str, object], ttl_seconds: int) -> None:
        """Store a record with a TTL in seconds."""


@dataclass
class _CacheEntry:
    value: dict[str, object]
    expires_at: datetime


class InMemoryCache(Cache):
    """Process-local cache used when no database is configured."""

    def __init__(self) -> None:
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str) -> dict[str, object] | None:
        """Return a cached record if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: dict[str, object], ttl_seconds: int) -> None:
        """Store a record with a TTL."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)


def enrichment_cache_key(query: str, locale: str) -> str:
    """Hash a normalized query and locale into a cache key."""
    normalized = query.lower().strip()
    return hashlib.sha256(f"{normalized}|{locale}".encode()).hexdigest()
