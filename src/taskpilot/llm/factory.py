"""
LLM Provider Factory

Builds providers and the per-role ``ChatModel`` handles from configuration.
All misconfiguration surfaces here, before any task starts running.
"""

import os
from dataclasses import dataclass
from typing import Optional

from ..config import ConfigurationError, env_float, load_environment
from .anthropic_provider import AnthropicProvider
from .openai_compatible_provider import OpenAICompatibleProvider
from .provider import AgentName, ChatModel, LLMConfig, LLMProvider


@dataclass
class AgentModels:
    """
    Chat models bound to each role.

    The navigator is mandatory; planner and validator are optional and the
    executor runs without them when they are None.
    """

    navigator: ChatModel
    planner: Optional[ChatModel] = None
    validator: Optional[ChatModel] = None

    async def close(self) -> None:
        """Close every distinct provider behind the handles."""
        seen: set[int] = set()
        for handle in (self.navigator, self.planner, self.validator):
            if handle is None or id(handle.provider) in seen:
                continue
            seen.add(id(handle.provider))
            await handle.provider.close()


def create_provider_from_env() -> LLMProvider:
    """
    Create an LLM provider instance from environment variables.

    Reads:
    - OPENAI_API_BASE + OPENAI_API_KEY: OpenAI-compatible endpoint (preferred when set)
    - ANTHROPIC_API_KEY (+ optional ANTHROPIC_BASE_URL): Anthropic Claude
    - LLM_TIMEOUT, LLM_MAX_TOKENS: request limits

    Raises:
        ConfigurationError: If no provider is configured
    """
    load_environment()

    timeout = int(env_float("LLM_TIMEOUT", 60))
    max_tokens = int(env_float("LLM_MAX_TOKENS", 4096))

    base_url = os.getenv("OPENAI_API_BASE")
    api_key = os.getenv("OPENAI_API_KEY")
    if base_url and api_key:
        return OpenAICompatibleProvider(LLMConfig(
            api_key=api_key,
            base_url=base_url,
            provider_type="openai-compatible",
            timeout=timeout,
            max_tokens=max_tokens,
        ))

    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "No LLM provider configured. Set either:\n"
            "  - ANTHROPIC_API_KEY for Anthropic Claude\n"
            "  - OPENAI_API_BASE + OPENAI_API_KEY for an OpenAI-compatible provider"
        )

    return AnthropicProvider(LLMConfig(
        api_key=api_key,
        base_url=os.getenv("ANTHROPIC_BASE_URL"),
        provider_type="anthropic",
        timeout=timeout,
        max_tokens=max_tokens,
    ))


def create_provider(
    provider_type: str = "anthropic",
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs,
) -> LLMProvider:
    """
    Create an LLM provider with explicit configuration.

    Args:
        provider_type: "anthropic" or "openai-compatible"
        api_key: API key for the provider
        base_url: Base URL (proxy, or the OpenAI-compatible endpoint)
        **kwargs: Additional LLMConfig parameters

    Raises:
        ConfigurationError: On a missing key or unknown provider type
    """
    if not api_key:
        raise ConfigurationError(f"An API key is required for provider '{provider_type}'")

    config = LLMConfig(
        api_key=api_key,
        base_url=base_url,
        provider_type=provider_type,
        **kwargs,
    )

    if provider_type == "openai-compatible":
        if not base_url:
            raise ConfigurationError("OpenAI-compatible providers need a base_url")
        return OpenAICompatibleProvider(config)
    if provider_type == "anthropic":
        return AnthropicProvider(config)
    raise ConfigurationError(f"Unknown provider type: {provider_type}")


def _model_env(agent: AgentName) -> str:
    return f"{agent.name}_MODEL"


def _temperature_env(agent: AgentName) -> str:
    return f"{agent.name}_TEMPERATURE"


def create_agent_models_from_env(
    provider: Optional[LLMProvider] = None,
    enable_planner: bool = True,
    enable_validator: bool = True,
) -> AgentModels:
    """
    Bind a chat model to every enabled role.

    NAVIGATOR_MODEL is required. PLANNER_MODEL and VALIDATOR_MODEL fall back
    to the navigator's model when unset. ``<ROLE>_TEMPERATURE`` optionally
    overrides sampling temperature per role.

    Args:
        provider: Provider to share between roles (created from env if None)
        enable_planner: Bind a planner model
        enable_validator: Bind a validator model

    Raises:
        ConfigurationError: If no provider or no navigator model is configured
    """
    load_environment()

    navigator_model = os.getenv(_model_env(AgentName.NAVIGATOR))
    if not navigator_model:
        raise ConfigurationError(
            f"Please choose a model for the navigator first ({_model_env(AgentName.NAVIGATOR)})"
        )

    provider = provider or create_provider_from_env()

    def bind(agent: AgentName) -> ChatModel:
        return ChatModel(
            provider=provider,
            model=os.getenv(_model_env(agent)) or navigator_model,
            temperature=env_float(_temperature_env(agent), None),
        )

    return AgentModels(
        navigator=bind(AgentName.NAVIGATOR),
        planner=bind(AgentName.PLANNER) if enable_planner else None,
        validator=bind(AgentName.VALIDATOR) if enable_validator else None,
    )
