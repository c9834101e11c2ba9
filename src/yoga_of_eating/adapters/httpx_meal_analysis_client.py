"""HTTP client for a hosted meal analysis function."""

from dataclasses import dataclass

import httpx

from yoga_of_eating.services.meal_analysis import MealAnalysisClient


@dataclass
class HttpxMealAnalysisClient(MealAnalysisClient):
    """HTTPX-backed client posting meal descriptions to a function URL."""

    url: str
    http_client: httpx.AsyncClient
    timeout: float = 15.0

    @classmethod
    def create(cls, url: str, timeout: float = 15.0) -> "HttpxMealAnalysisClient":
        """Create a client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def analyze(self, description: str) -> dict[str, object]:
        """Post a description and return the analysis payload."""
        response = await self.http_client.post(
            self.url,
            json={"description": description},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise RuntimeError("Meal analysis returned a non-object response")
        # Callable functions wrap their return value.
        for key in ("result", "data"):
            wrapped = payload.get(key)
            if isinstance(wrapped, dict):
                return wrapped
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
