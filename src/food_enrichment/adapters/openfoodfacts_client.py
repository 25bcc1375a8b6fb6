"""OpenFoodFacts product API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

USER_AGENT = "food-enrichment/0.1"


class OpenFoodFactsClient(Protocol):
    """Interface for OpenFoodFacts product lookups."""

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Return the raw product for a barcode, or None when unknown."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed OpenFoodFacts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 5.0

    @classmethod
    def create(cls, base_url: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": USER_AGENT}),
        )

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Fetch a product by barcode."""
        response = await self.http_client.get(
            f"{self.base_url}/api/v2/product/{barcode}.json",
            timeout=self.timeout,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise httpx.DecodingError(
                "OpenFoodFacts returned a non-JSON body", request=response.request
            ) from exc
        if not isinstance(payload, dict):
            raise httpx.DecodingError(
                "OpenFoodFacts returned an unexpected payload", request=response.request
            )
        if payload.get("status") != 1:
            return None
        product = payload.get("product")
        return product if isinstance(product, dict) else None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
