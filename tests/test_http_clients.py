"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from food_enrichment.adapters.edamam_client import HttpxEdamamClient
from food_enrichment.adapters.fdc_client import HttpxFdcClient
from food_enrichment.adapters.nutritionix_client import HttpxNutritionixClient
from food_enrichment.adapters.openai_estimation_client import OpenAIEstimationClient
from food_enrichment.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)


def test_openai_estimation_client_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"name": "pho", "ingredients": []}))
    client = OpenAIEstimationClient(client=fake)

    result = asyncio.run(client.estimate(model="gpt-4o-mini", query="pho"))

    assert result == {"name": "pho", "ingredients": []}
    payload = fake.responses.last_payload
    assert payload is not None
    assert payload["store"] is False
    assert payload["text"]["format"]["strict"] is True
    assert "pho" in payload["input"][0]["content"][0]["text"]


def test_openai_estimation_client_rejects_empty_output() -> None:
    client = OpenAIEstimationClient(client=_FakeOpenAI(""))

    with pytest.raises(RuntimeError):
        asyncio.run(client.estimate(model="gpt-4o-mini", query="pho"))


def test_nutritionix_client_sends_credentials() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["x-app-id"] == "app"
        assert request.headers["x-app-key"] == "key"
        seen.append((request.method, request.url.path))
        if request.url.path.endswith("/natural/nutrients"):
            assert json.loads(request.content.decode()) == {"query": "1 banana"}
        if request.url.path.endswith("/search/item"):
            assert request.url.params["nix_item_id"] == "nix-1"
        return httpx.Response(200, json={"foods": []})

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxNutritionixClient(
        app_id="app",
        api_key="key",
        base_url="https://nix.test/v2",
        http_client=async_client,
    )

    asyncio.run(client.search_instant("banana"))
    asyncio.run(client.get_item("nix-1"))
    asyncio.run(client.natural_nutrients("1 banana"))

    assert seen == [
        ("GET", "/v2/search/instant"),
        ("GET", "/v2/search/item"),
        ("POST", "/v2/natural/nutrients"),
    ]


def test_edamam_client_passes_query_params() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/parser")
        assert request.url.params["ingr"] == "pad thai"
        assert request.url.params["app_id"] == "app"
        assert request.url.params["app_key"] == "key"
        return httpx.Response(200, json={"parsed": [], "hints": []})

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxEdamamClient(
        app_id="app",
        app_key="key",
        base_url="https://edamam.test/api/food-database/v2",
        http_client=async_client,
    )

    assert asyncio.run(client.parse("pad thai")) == {"parsed": [], "hints": []}


def test_fdc_client_search() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/foods/search")
        assert request.url.params["pageSize"] == "5"
        assert request.url.params["api_key"] == "fdc-key"
        return httpx.Response(200, json={"foods": [{"fdcId": 1}]})

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxFdcClient(
        api_key="fdc-key", base_url="https://fdc.test/fdc/v1", http_client=async_client
    )

    assert asyncio.run(client.search_foods("banana")) == {"foods": [{"fdcId": 1}]}


def test_fdc_client_raises_on_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxFdcClient(
        api_key="fdc-key", base_url="https://fdc.test/fdc/v1", http_client=async_client
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.search_foods("banana"))


def test_openfoodfacts_client_returns_product() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v2/product/3017620422003.json"
        return httpx.Response(
            200, json={"status": 1, "product": {"product_name": "Nutella"}}
        )

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.test", http_client=async_client
    )

    product = asyncio.run(client.get_product("3017620422003"))

    assert product == {"product_name": "Nutella"}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404),
        httpx.Response(200, json={"status": 0, "status_verbose": "product not found"}),
    ],
)
def test_openfoodfacts_client_unknown_product(response: httpx.Response) -> None:
    async_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: response)
    )
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.test", http_client=async_client
    )

    assert asyncio.run(client.get_product("00000000")) is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>Service Unavailable</html>"),
        httpx.Response(200, json=["not", "a", "product"]),
    ],
)
def test_openfoodfacts_client_rejects_malformed_body(response: httpx.Response) -> None:
    async_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: response)
    )
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.test", http_client=async_client
    )

    with pytest.raises(httpx.DecodingError):
        asyncio.run(client.get_product("3017620422003"))
