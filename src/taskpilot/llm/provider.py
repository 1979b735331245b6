"""
Base LLM Provider Interface and Configuration

Defines the provider abstraction the agents talk to and the ``ChatModel``
handle each agent is constructed with. The execution engine never looks
past ``ChatModel.invoke``; which vendor answers is a factory concern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AgentName(str, Enum):
    """LLM-backed roles that can be bound to a model."""

    NAVIGATOR = "navigator"
    PLANNER = "planner"
    VALIDATOR = "validator"


@dataclass
class LLMConfig:
    """
    Connection settings for one LLM provider.

    Supports both Anthropic native and OpenAI-compatible APIs.
    """

    api_key: str
    base_url: Optional[str] = None  # None for Anthropic native, URL for OpenAI-compatible
    model: str = "claude-sonnet-4-20250514"

    max_tokens: int = 4096
    temperature: float = 0.0
    timeout: int = 60

    provider_type: str = "anthropic"  # "anthropic" or "openai-compatible"


class Message(BaseModel):
    """
    Chat message representation.

    ``images`` holds base64-encoded JPEG screenshots attached to the turn;
    providers translate them into their own content-block format.
    """

    role: str  # "user", "assistant", "system"
    content: str
    images: list[str] = Field(default_factory=list)


class LLMResponse(BaseModel):
    """Response from LLM provider."""

    content: str
    model: str
    usage: dict[str, int] = {}
    stop_reason: Optional[str] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All providers must implement this interface.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client = None

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the provider client."""
        pass

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion for the given messages.

        Args:
            messages: List of chat messages
            model: Model name (defaults to config.model)
            **kwargs: temperature / max_tokens overrides

        Returns:
            LLMResponse with generated content and metadata
        """
        pass

    def resolve_model(self, model: Optional[str]) -> str:
        return model or self.config.model

    async def close(self) -> None:
        """Close the provider connection."""
        if self._client:
            await self._client.close()
            self._client = None


@dataclass
class ChatModel:
    """
    Opaque chat-model handle bound to one agent role.

    Pairs a provider with the model name and sampling temperature the role
    should use. Several handles may share one provider.
    """

    provider: LLMProvider
    model: str
    temperature: Optional[float] = None

    async def invoke(self, messages: list[Message]) -> LLMResponse:
        """Send a prompt and return the raw model response."""
        kwargs: dict[str, Any] = {}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        return await self.provider.complete(messages, model=self.model, **kwargs)

    def __str__(self) -> str:
        return f"{self.provider.config.provider_type}:{self.model}"
