"""Edamam food database client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class EdamamClient(Protocol):
    """Interface for the Edamam food-database parser."""

    async def parse(self, ingredient: str) -> dict[str, object]:
        """Return parsed foods and hints for an ingredient phrase."""


@dataclass
class HttpxEdamamClient(EdamamClient):
    """HTTPX-backed Edamam client."""

    app_id: str
    app_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 5.0

    @classmethod
    def create(cls, app_id: str, app_key: str, base_url: str) -> "HttpxEdamamClient":
        """Create an Edamam client with a managed httpx session."""
        return cls(
            app_id=app_id,
            app_key=app_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
        )

    async def parse(self, ingredient: str) -> dict[str, object]:
        """Call the parser endpoint."""
        response = await self.http_client.get(
            f"{self.base_url}/parser",
            params={
                "ingr": ingredient,
                "app_id": self.app_id,
                "app_key": self.app_key,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
