"""
LLM Provider Abstraction

Supports multiple LLM providers through a unified interface:
- Anthropic Claude (native SDK)
- OpenAI-compatible APIs (OpenRouter, local models, etc.)

Agents only ever see a ``ChatModel`` handle.
"""

from .provider import AgentName, ChatModel, LLMConfig, LLMProvider, LLMResponse, Message
from .anthropic_provider import AnthropicProvider
from .openai_compatible_provider import OpenAICompatibleProvider
from .factory import (
    AgentModels,
    ConfigurationError,
    create_agent_models_from_env,
    create_provider,
    create_provider_from_env,
)

__all__ = [
    "AgentName",
    "ChatModel",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "Message",
    "AnthropicProvider",
    "OpenAICompatibleProvider",
    "AgentModels",
    "ConfigurationError",
    "create_agent_models_from_env",
    "create_provider",
    "create_provider_from_env",
]
