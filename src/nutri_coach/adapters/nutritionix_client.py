"""Nutritionix natural-language nutrition API client."""

from dataclasses import dataclass

import httpx

from nutri_coach.services.nutrition import NutritionLookupClient


@dataclass
class HttpxNutritionixClient(NutritionLookupClient):
    """HTTPX-backed Nutritionix client."""

    app_id: str
    app_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, app_id: str, app_key: str, base_url: str, timeout_seconds: float = 15.0
    ) -> "HttpxNutritionixClient":
        """Create a Nutritionix client with a managed httpx session."""
        return cls(
            app_id=app_id,
            app_key=app_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        """Look up nutrients for a free-text query.

        A 404 means nothing matched and comes back as an empty food list.
        """
        response = await self.http_client.post(
            f"{self.base_url}/natural/nutrients",
            headers=self._headers(),
            json={"query": query},
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return {"foods": []}
        response.raise_for_status()
        return response.json()

    async def search_instant(self, query: str) -> dict[str, object]:
        """Search common and branded foods by name."""
        response = await self.http_client.get(
            f"{self.base_url}/search/instant",
            headers=self._headers(),
            params={"query": query},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def _headers(self) -> dict[str, str]:
        return {"x-app-id": self.app_id, "x-app-key": self.app_key}

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
