"""OpenAI Responses API client for nutrition estimates."""

import json
from dataclasses import dataclass
from typing import Protocol

from openai import AsyncOpenAI

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "ingredients": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "amount": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                },
                "required": ["name", "amount"],
                "additionalProperties": False,
            },
        },
        "per100g": {
            "type": "object",
            "properties": {
                "calories": {"type": "number", "minimum": 0},
                "protein": {"type": "number", "minimum": 0},
                "fat": {"type": "number", "minimum": 0},
                "carbs": {"type": "number", "minimum": 0},
                "fiber": {"type": "number", "minimum": 0},
                "sugar": {"type": "number", "minimum": 0},
                "sodium": {"type": "number", "minimum": 0},
            },
            "required": [
                "calories",
                "protein",
                "fat",
                "carbs",
                "fiber",
                "sugar",
                "sodium",
            ],
            "additionalProperties": False,
        },
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
    },
    "required": ["name", "ingredients", "per100g", "confidence"],
    "additionalProperties": False,
}

ESTIMATE_PROMPT = (
    "You are a nutrition expert. Analyze the food '{query}' and estimate its "
    "nutrition per 100 g (sodium in mg). If it is a composed dish, list its "
    "main ingredients."
)


class EstimationClient(Protocol):
    """Interface for LLM nutrition estimates."""

    async def estimate(self, *, model: str, query: str) -> dict[str, object]:
        """Return structured estimate data for a food query."""


@dataclass
class OpenAIEstimationClient(EstimationClient):
    """Estimation client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIEstimationClient":
        """Create an OpenAI estimation client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def estimate(self, *, model: str, query: str) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_text",
                            "text": ESTIMATE_PROMPT.format(query=query),
                        }
                    ],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "nutrition_estimate",
                    "strict": True,
                    "schema": ESTIMATE_SCHEMA,
                }
            },
            store=False,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
