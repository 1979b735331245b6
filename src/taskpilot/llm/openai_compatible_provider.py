"""
OpenAI-Compatible LLM Provider

Universal provider for any API that follows the OpenAI chat completion format:
OpenRouter, local models (Ollama, LM Studio) and other compatible services.
"""

from typing import Any, Optional

import httpx
from httpx import TimeoutException

from .provider import LLMConfig, LLMProvider, LLMResponse, Message


def to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert chat messages to OpenAI format, images as data-URL parts."""
    converted = []
    for msg in messages:
        if not msg.images:
            converted.append({"role": msg.role, "content": msg.content})
            continue

        parts: list[dict[str, Any]] = [{"type": "text", "text": msg.content}]
        for image in msg.images:
            parts.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/jpeg;base64,{image}"},
            })
        converted.append({"role": msg.role, "content": parts})
    return converted


class OpenAICompatibleProvider(LLMProvider):
    """
    OpenAI-compatible API provider over plain httpx.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout,
            )

    async def complete(
        self,
        messages: list[Message],
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion using an OpenAI-compatible API.

        Raises:
            TimeoutError: When the request exceeds the configured timeout
            RuntimeError: On non-2xx responses or an unexpected payload
        """
        await self.initialize()

        model_name = self.resolve_model(model)
        payload = {
            "model": model_name,
            "messages": to_openai_messages(messages),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "temperature": kwargs.get("temperature", self.config.temperature),
        }

        try:
            response = await self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except TimeoutException:
            raise TimeoutError(f"LLM request timed out after {self.config.timeout}s")
        except httpx.HTTPStatusError as e:
            raise RuntimeError(f"LLM API error: {e.response.status_code} - {e.response.text}")

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            raise RuntimeError(f"Unexpected LLM response payload: {str(data)[:200]}")

        usage = data.get("usage") or {}
        return LLMResponse(
            content=content,
            model=data.get("model", model_name),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            stop_reason=choice.get("finish_reason"),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
