"""
Anthropic Claude LLM Provider

Native implementation for Anthropic's Claude API using the official SDK.
Screenshots attached to a message are sent as base64 image blocks.
"""

from typing import Any, Optional

from anthropic import AsyncAnthropic
from anthropic.types import Message as AnthropicMessage

from .provider import LLMConfig, LLMProvider, LLMResponse, Message


def to_anthropic_messages(messages: list[Message]) -> tuple[Optional[str], list[dict[str, Any]]]:
    """
    Convert chat messages to Anthropic's request format.

    System messages are pulled out (Anthropic takes them as a separate
    parameter); several system messages are joined in order.

    Returns:
        Tuple of (system prompt or None, message list)
    """
    system_parts: list[str] = []
    converted: list[dict[str, Any]] = []

    for msg in messages:
        if msg.role == "system":
            system_parts.append(msg.content)
            continue

        if not msg.images:
            converted.append({"role": msg.role, "content": msg.content})
            continue

        blocks: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/jpeg",
                    "data": image,
                },
            }
            for image in msg.images
        ]
        blocks.append({"type": "text", "text": msg.content})
        converted.append({"role": msg.role, "content": blocks})

    system = "\n\n".join(system_parts) if system_parts else None
    return system, converted


class AnthropicProvider(LLMProvider):
    """
    Anthropic Claude API provider.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client: Optional[AsyncAnthropic] = None

    async def initialize(self) -> None:
        """Initialize the Anthropic async client."""
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self.config.api_key,
                base_url=self.config.base_url,  # Can override for proxy
                timeout=self.config.timeout,
            )

    async def complete(
        self,
        messages: list[Message],
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion using Anthropic's API.

        Args:
            messages: List of chat messages
            model: Model name override
            **kwargs: max_tokens / temperature overrides

        Returns:
            LLMResponse with generated content
        """
        await self.initialize()

        system_message, anthropic_messages = to_anthropic_messages(messages)

        params: dict[str, Any] = {
            "model": self.resolve_model(model),
            "messages": anthropic_messages,
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "temperature": kwargs.get("temperature", self.config.temperature),
        }
        if system_message:
            params["system"] = system_message

        response: AnthropicMessage = await self._client.messages.create(**params)

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            },
            stop_reason=response.stop_reason,
        )
