"""Tests for HTTP-based adapters."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from nutri_coach.adapters.google_vision_client import HttpxGoogleVisionClient
from nutri_coach.adapters.http_coach_client import HttpxCoachClient
from nutri_coach.adapters.nutritionix_client import HttpxNutritionixClient
from nutri_coach.adapters.openai_coach_client import OpenAICoachClient
from nutri_coach.errors import (
    DetectionTransportError,
    ImageUnreadableError,
    ReasoningUnavailable,
)
from nutri_coach.services.detection import DETECTION_FEATURES

VISION_URL = "https://vision.test/v1/images:annotate"


def _vision_client(handler) -> HttpxGoogleVisionClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxGoogleVisionClient(
        api_key="vision-key",
        url=VISION_URL,
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_vision_client_posts_request_and_returns_entry() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "vision-key"
        payload = json.loads(request.content.decode())
        [entry] = payload["requests"]
        assert entry["image"] == {"content": "ZmFrZQ=="}
        assert entry["features"] == DETECTION_FEATURES
        return httpx.Response(
            200,
            json={
                "responses": [
                    {"labelAnnotations": [{"description": "Pizza", "score": 0.9}]}
                ]
            },
        )

    client = _vision_client(handler)

    result = asyncio.run(client.annotate({"content": "ZmFrZQ=="}, DETECTION_FEATURES))

    assert result["labelAnnotations"][0]["description"] == "Pizza"


@pytest.mark.parametrize(
    ("response", "error_type"),
    [
        (httpx.Response(400, text="bad image"), ImageUnreadableError),
        (httpx.Response(403, json={"error": "forbidden"}), DetectionTransportError),
        (httpx.Response(503, text="unavailable"), DetectionTransportError),
        (httpx.Response(200, text="not json"), DetectionTransportError),
        (
            httpx.Response(
                200,
                json={"responses": [{"error": {"code": 3, "message": "Bad image"}}]},
            ),
            ImageUnreadableError,
        ),
        (
            httpx.Response(
                200,
                json={"responses": [{"error": {"code": 14, "message": "Try later"}}]},
            ),
            DetectionTransportError,
        ),
    ],
)
def test_vision_client_maps_failures(
    response: httpx.Response, error_type: type[Exception]
) -> None:
    client = _vision_client(lambda request: response)

    with pytest.raises(error_type):
        asyncio.run(client.annotate({"content": "ZmFrZQ=="}, DETECTION_FEATURES))


def test_vision_client_network_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = _vision_client(handler)

    with pytest.raises(DetectionTransportError):
        asyncio.run(client.annotate({"content": "ZmFrZQ=="}, DETECTION_FEATURES))


def test_nutritionix_client_sends_credentials_and_maps_404() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/natural/nutrients"):
            query = json.loads(request.content.decode())["query"]
            if query == "unknown":
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json={"foods": [{"food_name": query}]})
        return httpx.Response(
            200, json={"common": [{"food_name": request.url.params["query"]}]}
        )

    transport = httpx.MockTransport(handler)
    client = HttpxNutritionixClient(
        app_id="app-id",
        app_key="app-key",
        base_url="https://nutritionix.test/v2",
        http_client=httpx.AsyncClient(transport=transport),
    )

    found = asyncio.run(client.natural_nutrients("apple"))
    missing = asyncio.run(client.natural_nutrients("unknown"))
    search = asyncio.run(client.search_instant("appl"))

    assert found == {"foods": [{"food_name": "apple"}]}
    assert missing == {"foods": []}
    assert search == {"common": [{"food_name": "appl"}]}
    assert all(request.headers["x-app-id"] == "app-id" for request in seen)
    assert all(request.headers["x-app-key"] == "app-key" for request in seen)
    assert seen[2].url.path == "/v2/search/instant"


def test_nutritionix_client_raises_on_server_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    client = HttpxNutritionixClient(
        app_id="app-id",
        app_key="app-key",
        base_url="https://nutritionix.test/v2",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.natural_nutrients("apple"))


def test_coach_client_posts_to_chat_endpoints() -> None:
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        payload = json.loads(request.content.decode())
        return httpx.Response(
            200, json={"success": True, "message": f"echo {payload['userId']}"}
        )

    transport = httpx.MockTransport(handler)
    client = HttpxCoachClient(
        base_url="https://coach.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    reply = asyncio.run(client.send_message({"userId": "user-1", "content": "hi"}))
    asyncio.run(client.analyze_scanned_food({"userId": "user-1", "foodName": "kale"}))

    assert reply == {"success": True, "message": "echo user-1"}
    assert seen_paths == ["/chat/ai-coach", "/chat/analyze-scanned-food"]


def test_coach_client_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/ai-coach"):
            return httpx.Response(200, text="<html>oops</html>")
        return httpx.Response(502)

    transport = httpx.MockTransport(handler)
    client = HttpxCoachClient(
        base_url="https://coach.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(ReasoningUnavailable):
        asyncio.run(client.send_message({"content": "hi"}))
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.analyze_scanned_food({"foodName": "kale"}))


class _FakeCompletions:
    def __init__(self, content: str | None) -> None:
        self.content = content
        self.last_kwargs: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_kwargs = kwargs
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class _FakeOpenAI:
    def __init__(self, content: str | None) -> None:
        self.chat = SimpleNamespace(completions=_FakeCompletions(content))
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def test_openai_coach_client_builds_messages_and_parses_json() -> None:
    fake = _FakeOpenAI(json.dumps({"message": "Great pick!"}))
    client = OpenAICoachClient(client=fake, model="gpt-4o")

    reply = asyncio.run(
        client.send_message(
            {
                "type": "voice",
                "content": "I had a salad",
                "userContext": {"name": "Alex", "goal": "lose"},
                "conversationHistory": [
                    {"role": "user", "content": "hello"},
                    {"role": "assistant", "content": "hi there"},
                ],
            }
        )
    )

    assert reply == {"message": "Great pick!", "success": True}
    kwargs = fake.chat.completions.last_kwargs
    assert kwargs is not None
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["response_format"] == {"type": "json_object"}
    messages = kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert "Alex" in messages[0]["content"]
    assert [message["role"] for message in messages[1:]] == [
        "user",
        "assistant",
        "user",
    ]
    assert messages[-1]["content"] == "User input (voice): I had a salad"


def test_openai_coach_client_scanned_food_prompt() -> None:
    fake = _FakeOpenAI(json.dumps({"success": True, "message": "Tasty"}))
    client = OpenAICoachClient(client=fake, model="gpt-4o")

    asyncio.run(
        client.analyze_scanned_food(
            {"foodName": "kale chips", "nutritionData": {"nf_calories": 150}}
        )
    )

    messages = fake.chat.completions.last_kwargs["messages"]
    assert "kale chips" in messages[-1]["content"]


@pytest.mark.parametrize("content", [None, "", "not json", "[1, 2]"])
def test_openai_coach_client_rejects_unusable_output(content: str | None) -> None:
    client = OpenAICoachClient(client=_FakeOpenAI(content), model="gpt-4o")

    with pytest.raises(ReasoningUnavailable):
        asyncio.run(client.send_message({"content": "hi"}))


def test_openai_coach_client_close_closes_sdk_client() -> None:
    fake = _FakeOpenAI(None)
    client = OpenAICoachClient(client=fake, model="gpt-4o")

    asyncio.run(client.close())

    assert fake.closed
