"""Coach client that talks to OpenAI directly."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from nutri_coach.errors import ReasoningUnavailable
from nutri_coach.services.coach import CoachClient
from nutri_coach.services.coach_prompts import (
    COACH_SYSTEM_PROMPT,
    build_context_prompt,
    scanned_food_prompt,
)


@dataclass
class OpenAICoachClient(CoachClient):
    """Coach client backed by OpenAI chat completions in JSON mode."""

    client: AsyncOpenAI
    model: str
    max_tokens: int = 1500
    temperature: float = 0.7

    @classmethod
    def create(cls, api_key: str, model: str) -> "OpenAICoachClient":
        """Create an OpenAI coach client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()

    async def send_message(self, payload: dict[str, object]) -> dict[str, object]:
        """Answer a free-form user message."""
        user_text = f"User input ({payload.get('type', 'text')}): {payload['content']}"
        return await self._complete(payload, user_text)

    async def analyze_scanned_food(
        self, payload: dict[str, object]
    ) -> dict[str, object]:
        """Give feedback on a scanned food."""
        user_text = scanned_food_prompt(
            str(payload["foodName"]), payload.get("nutritionData") or {}
        )
        return await self._complete(payload, user_text)

    async def _complete(
        self, payload: dict[str, object], user_text: str
    ) -> dict[str, object]:
        context = build_context_prompt(payload.get("userContext"))
        messages: list[dict[str, str]] = [
            {"role": "system", "content": f"{COACH_SYSTEM_PROMPT}\n\n{context}"}
        ]
        messages.extend(
            {"role": turn["role"], "content": turn["content"]}
            for turn in payload.get("conversationHistory") or []
        )
        messages.append({"role": "user", "content": user_text})

        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )
        output_text = (
            completion.choices[0].message.content if completion.choices else None
        )
        if not output_text:
            raise ReasoningUnavailable("OpenAI returned an empty response")
        try:
            reply = json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise ReasoningUnavailable("OpenAI returned malformed JSON") from exc
        if not isinstance(reply, dict):
            raise ReasoningUnavailable("OpenAI reply is not a JSON object")
        reply.setdefault("success", True)
        return reply
