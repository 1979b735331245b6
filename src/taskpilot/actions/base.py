"""
Action Infrastructure

Provides the foundation for navigator actions:
- ``action`` decorator for registration into the default set
- ActionResult for standardized responses
- ActionRegistry for validation, dispatch and prompt rendering
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeout
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ActionErrorKind(str, Enum):
    """Typed failure categories for action execution."""

    INVALID_ARGUMENT = "invalid_argument"
    EXECUTION_ERROR = "execution_error"
    TIMEOUT = "timeout"


@dataclass
class ActionResult:
    """
    Standardized result from action execution.

    Attributes:
        success: Whether the action executed successfully
        content: Human/LLM-readable outcome (extracted text, new URL, ...)
        error: Error message if failed
        error_kind: Failure category if failed
        is_done: The action completes the task (only ``done`` sets this)
    """

    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ActionErrorKind] = None
    is_done: bool = False

    @classmethod
    def failure(cls, error: str, kind: ActionErrorKind = ActionErrorKind.EXECUTION_ERROR) -> "ActionResult":
        return cls(success=False, error=error, error_kind=kind)

    def __str__(self) -> str:
        if self.success:
            return f"Success: {self.content}"
        return f"Error ({self.error_kind.value if self.error_kind else 'unknown'}): {self.error}"


class NoParams(BaseModel):
    """Parameter model for actions that take no arguments."""


ActionHandler = Callable[[Any, BaseModel], Awaitable[Any]]


@dataclass
class RegisteredAction:
    name: str
    description: str
    params_model: type[BaseModel]
    handler: ActionHandler


# Actions registered with the @action decorator
_DEFAULT_ACTIONS: dict[str, RegisteredAction] = {}


def action(name: str, description: str, params_model: type[BaseModel] = NoParams):
    """
    Decorator to register a coroutine as a navigator action.

    The handler receives the BrowserContext and a validated instance of
    ``params_model``. It may return an ActionResult, or any value that is
    rendered into a successful result's content.

    Example:
        >>> class GoToUrl(BaseModel):
        ...     url: str
        ...
        >>> @action("go_to_url", "Navigate the current tab to a URL", GoToUrl)
        ... async def go_to_url(browser, params: GoToUrl):
        ...     page = await browser.navigate_to(params.url)
        ...     return f"Navigated to {page.url}"
    """

    def decorator(func: ActionHandler) -> ActionHandler:
        _DEFAULT_ACTIONS[name] = RegisteredAction(name, description, params_model, func)
        func.action_name = name
        return func

    return decorator


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _render_content(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class ActionRegistry:
    """
    Closed set of actions the navigator may request.

    Usage:
        >>> registry = ActionRegistry.default()
        >>> result = await registry.execute("go_to_url", {"url": "example.com"}, browser)
    """

    def __init__(self, actions: Optional[dict[str, RegisteredAction]] = None):
        self._actions: dict[str, RegisteredAction] = dict(actions or {})

    @classmethod
    def default(cls) -> "ActionRegistry":
        """Registry over every action registered with ``@action``."""
        return cls(_DEFAULT_ACTIONS)

    def register(
        self,
        name: str,
        description: str,
        handler: ActionHandler,
        params_model: type[BaseModel] = NoParams,
    ) -> None:
        self._actions[name] = RegisteredAction(name, description, params_model, handler)

    @property
    def names(self) -> list[str]:
        return list(self._actions)

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    async def execute(self, name: str, args: Optional[dict[str, Any]], browser: Any) -> ActionResult:
        """
        Validate arguments and run an action.

        Never raises for action-level problems; unknown names and bad
        arguments come back as INVALID_ARGUMENT, timeouts as TIMEOUT and any
        other handler exception as EXECUTION_ERROR.
        """
        entry = self._actions.get(name)
        if entry is None:
            return ActionResult.failure(f"Unknown action: {name}", ActionErrorKind.INVALID_ARGUMENT)

        if args is None:
            args = {}
        if not isinstance(args, dict):
            return ActionResult.failure(
                f"Arguments for {name} must be an object, got {type(args).__name__}",
                ActionErrorKind.INVALID_ARGUMENT,
            )

        try:
            params = entry.params_model.model_validate(args)
        except ValidationError as e:
            return ActionResult.failure(
                f"Invalid arguments for {name}: {_format_validation_error(e)}",
                ActionErrorKind.INVALID_ARGUMENT,
            )

        try:
            result = await entry.handler(browser, params)
        except (PlaywrightTimeout, asyncio.TimeoutError) as e:
            logger.warning(f"Action {name} timed out: {e}")
            return ActionResult.failure(f"{name} timed out: {e}", ActionErrorKind.TIMEOUT)
        except Exception as e:
            logger.warning(f"Action {name} failed: {e}")
            return ActionResult.failure(f"{name} failed: {e}", ActionErrorKind.EXECUTION_ERROR)

        if isinstance(result, ActionResult):
            return result
        return ActionResult(success=True, content=_render_content(result))

    def describe(self) -> str:
        """Render every action with its argument schema for the navigator prompt."""
        lines = []
        for entry in self._actions.values():
            schema = entry.params_model.model_json_schema()
            required = set(schema.get("required", []))
            args = {}
            for field_name, field_schema in schema.get("properties", {}).items():
                kind = field_schema.get("type")
                if kind is None:
                    # Optional[...] fields render as anyOf [T, null]
                    types = [s.get("type") for s in field_schema.get("anyOf", []) if s.get("type") != "null"]
                    kind = types[0] if types and types[0] else "any"
                if "enum" in field_schema:
                    kind = "|".join(str(v) for v in field_schema["enum"])
                args[field_name if field_name in required else f"{field_name}?"] = kind
            lines.append(f"- {entry.name}: {entry.description}")
            lines.append(f"  args: {json.dumps(args)}")
        return "\n".join(lines)
