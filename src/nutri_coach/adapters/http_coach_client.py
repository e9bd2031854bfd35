"""Client for the coach reasoning backend."""

from dataclasses import dataclass

import httpx

from nutri_coach.errors import ReasoningUnavailable
from nutri_coach.services.coach import CoachClient


@dataclass
class HttpxCoachClient(CoachClient):
    """HTTPX-backed client for the coach backend's chat endpoints."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float = 30.0) -> "HttpxCoachClient":
        """Create a coach client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def send_message(self, payload: dict[str, object]) -> dict[str, object]:
        """POST a user message to the coach."""
        return await self._post("/chat/ai-coach", payload)

    async def analyze_scanned_food(
        self, payload: dict[str, object]
    ) -> dict[str, object]:
        """POST a scanned food to the coach."""
        return await self._post("/chat/analyze-scanned-food", payload)

    async def _post(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        response = await self.http_client.post(
            f"{self.base_url}{path}", json=payload, timeout=self.timeout_seconds
        )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise ReasoningUnavailable("Coach backend returned invalid JSON") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
