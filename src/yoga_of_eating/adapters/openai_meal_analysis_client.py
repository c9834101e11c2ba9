"""OpenAI Responses API client for meal analysis."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from yoga_of_eating.services.meal_analysis import (
    MEAL_ANALYSIS_PROMPT,
    MEAL_ANALYSIS_SCHEMA,
    MealAnalysisClient,
)


@dataclass
class OpenAIMealAnalysisClient(MealAnalysisClient):
    """Meal analysis backed by OpenAI structured outputs."""

    client: AsyncOpenAI
    model: str
    store: bool = False

    @classmethod
    def create(
        cls, api_key: str, model: str, store: bool = False
    ) -> "OpenAIMealAnalysisClient":
        """Create an OpenAI meal analysis client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model, store=store)

    async def analyze(self, description: str) -> dict[str, object]:
        """Call the Responses API and decode the JSON result."""
        response = await self.client.responses.create(
            model=self.model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": MEAL_ANALYSIS_PROMPT},
                        {"type": "input_text", "text": f"Meal: {description}"},
                    ],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "meal_analysis",
                    "strict": True,
                    "schema": MEAL_ANALYSIS_SCHEMA,
                }
            },
            store=self.store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying OpenAI HTTP session."""
        await self.client.close()
