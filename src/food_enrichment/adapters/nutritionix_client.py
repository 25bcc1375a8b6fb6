"""Nutritionix API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class NutritionixClient(Protocol):
    """Interface for the Nutritionix search and nutrients endpoints."""

    async def search_instant(self, query: str) -> dict[str, object]:
        """Return branded and common instant-search candidates."""

    async def get_item(self, nix_item_id: str) -> dict[str, object]:
        """Return full item details, including the ingredient statement."""

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        """Return nutrients parsed from a natural-language query."""


@dataclass
class HttpxNutritionixClient(NutritionixClient):
    """HTTPX-backed Nutritionix client."""

    app_id: str
    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 5.0

    @classmethod
    def create(
        cls, app_id: str, api_key: str, base_url: str
    ) -> "HttpxNutritionixClient":
        """Create a Nutritionix client with a managed httpx session."""
        return cls(
            app_id=app_id,
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
        )

    def _headers(self) -> dict[str, str]:
        return {"x-app-id": self.app_id, "x-app-key": self.api_key}

    async def search_instant(self, query: str) -> dict[str, object]:
        """Search instant candidates."""
        response = await self.http_client.get(
            f"{self.base_url}/search/instant",
            params={"query": query},
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def get_item(self, nix_item_id: str) -> dict[str, object]:
        """Fetch item details by Nutritionix item id."""
        response = await self.http_client.get(
            f"{self.base_url}/search/item",
            params={"nix_item_id": nix_item_id},
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        """Post a natural-language query to the nutrients endpoint."""
        response = await self.http_client.post(
            f"{self.base_url}/natural/nutrients",
            json={"query": query},
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
