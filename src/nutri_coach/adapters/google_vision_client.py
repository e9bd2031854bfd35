"""Google Cloud Vision annotate client."""

from dataclasses import dataclass

import httpx

from nutri_coach.errors import DetectionTransportError, ImageUnreadableError
from nutri_coach.services.detection import VisionClient

# google.rpc.Code.INVALID_ARGUMENT
_INVALID_ARGUMENT = 3


@dataclass
class HttpxGoogleVisionClient(VisionClient):
    """HTTPX-backed client for the images:annotate endpoint."""

    api_key: str
    url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 20.0

    @classmethod
    def create(
        cls, api_key: str, url: str, timeout_seconds: float = 20.0
    ) -> "HttpxGoogleVisionClient":
        """Create a vision client with a managed httpx session."""
        return cls(
            api_key=api_key,
            url=url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def annotate(
        self, image: dict[str, object], features: list[dict[str, object]]
    ) -> dict[str, object]:
        """Annotate one image and return its response entry."""
        try:
            response = await self.http_client.post(
                self.url,
                params={"key": self.api_key},
                json={"requests": [{"image": image, "features": features}]},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise DetectionTransportError(f"Vision API unreachable: {exc}") from exc

        if response.status_code == httpx.codes.BAD_REQUEST:
            raise ImageUnreadableError(f"Vision API rejected image: {response.text}")
        if response.is_error:
            raise DetectionTransportError(
                f"Vision API error: {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise DetectionTransportError("Vision API returned invalid JSON") from exc

        responses = payload.get("responses") or [{}]
        entry = responses[0] or {}
        error = entry.get("error")
        if error:
            message = error.get("message", "unknown error")
            if error.get("code") == _INVALID_ARGUMENT:
                raise ImageUnreadableError(
                    f"Vision API could not read image: {message}"
                )
            raise DetectionTransportError(f"Vision API error: {message}")
        return entry

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
