"""OpenAI Responses API client for structured and free-text calls."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from diet_tracker.services.llm import LlmClient


@dataclass
class OpenAILlmClient(LlmClient):
    """LLM client backed by OpenAI Responses API."""

    client: AsyncOpenAI | None

    @classmethod
    def create(cls, api_key: str | None) -> "OpenAILlmClient":
        """Create an OpenAI client; without a key every call fails."""
        return cls(client=AsyncOpenAI(api_key=api_key) if api_key else None)

    async def extract_structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        output_text = await self._create(request_payload, reasoning_effort)
        payload = json.loads(output_text)
        if not isinstance(payload, dict):
            raise RuntimeError("OpenAI returned a non-object response")
        return payload

    async def generate_text(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
    ) -> str:
        """Call OpenAI Responses API for plain text."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": prompt,
            "store": store,
        }
        return await self._create(request_payload, reasoning_effort)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.client is not None:
            await self.client.close()

    async def _create(
        self, request_payload: dict[str, object], reasoning_effort: str | None
    ) -> str:
        if self.client is None:
            raise RuntimeError("OpenAI API key is not configured")
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}
        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text
