"""
Navigator Agent

Decides the next browser actions for the current step and runs them
through the ActionRegistry, emitting ACT_START / ACT_OK / ACT_FAIL for
each one.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..actions import ActionRegistry
from ..browser.page import PageState
from ..llm import ChatModel, Message
from .base import BaseAgent, format_history, format_tasks
from .events import Actor, ExecutionState
from .prompts import NAVIGATOR_SYSTEM_PROMPT
from .types import ActionRecord, AgentContext

logger = logging.getLogger(__name__)


class NavigatorState(BaseModel):
    evaluation_previous_goal: str = ""
    memory: str = ""
    next_goal: str = ""


class NavigatorOutput(BaseModel):
    """Parsed navigator reply: its reasoning plus the actions to run."""

    current_state: NavigatorState = Field(default_factory=NavigatorState)
    action: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("action")
    @classmethod
    def single_key_actions(cls, value: list[dict[str, Any]]) -> list[dict[str, Any]]:
        for item in value:
            if len(item) != 1:
                raise ValueError(f"each action must have exactly one key, got {sorted(item)}")
            args = next(iter(item.values()))
            if args is not None and not isinstance(args, dict):
                raise ValueError(f"arguments of {next(iter(item))} must be an object")
        return value

    @property
    def actions(self) -> list[tuple[str, dict[str, Any]]]:
        return [(name, args or {}) for item in self.action for name, args in item.items()]


@dataclass
class NavigationResult:
    """Outcome of running one step's actions."""

    success: bool
    is_done: bool = False
    final_answer: Optional[str] = None
    error: Optional[str] = None
    records: list[ActionRecord] = field(default_factory=list)


def _format_args(args: dict[str, Any]) -> str:
    return json.dumps(args, ensure_ascii=False, default=str)


class NavigatorAgent(BaseAgent):
    """
    Chooses and executes browser actions.

    Its step stays open after ``run()``; the executor closes it once the
    actions (and any validation of a ``done`` claim) have finished.
    """

    actor = Actor.NAVIGATOR
    output_model = NavigatorOutput
    closes_own_step = False
    include_page_text = False

    def __init__(self, llm: ChatModel, registry: Optional[ActionRegistry] = None):
        super().__init__(llm)
        self.registry = registry or ActionRegistry.default()

    def build_messages(
        self,
        context: AgentContext,
        state: PageState,
        screenshot: Optional[str],
    ) -> list[Message]:
        system = NAVIGATOR_SYSTEM_PROMPT.format(
            max_actions=context.options.max_actions_per_step,
            actions=self.registry.describe(),
        )

        parts = [
            format_tasks(context),
            f"\nStep: {context.step + 1} of {context.options.max_steps}",
        ]
        if context.plan:
            parts.append(f"\nPlan:\n{context.plan}")
        parts.append(f"\nPrevious steps:\n{format_history(context)}")
        parts.append(f"\nCurrent page:\n{state.to_prompt()}")

        return [
            Message(role="system", content=system),
            Message(role="user", content="\n".join(parts), images=[screenshot] if screenshot else []),
        ]

    async def execute_actions(self, context: AgentContext, output: NavigatorOutput) -> NavigationResult:
        """
        Run the proposed actions in order.

        Stops after a ``done`` action or at the first failure. Proposals
        beyond ``max_actions_per_step`` are dropped.
        """
        actions = output.actions
        limit = context.options.max_actions_per_step
        if len(actions) > limit:
            logger.warning(f"Navigator proposed {len(actions)} actions, running the first {limit}")
            actions = actions[:limit]

        result = NavigationResult(success=True)
        for name, args in actions:
            await context.control.checkpoint()
            await self.emit(context, ExecutionState.ACT_START, f"{name} {_format_args(args)}")

            outcome = await self.registry.execute(name, args, context.browser_context)
            result.records.append(ActionRecord(
                name=name,
                args=args,
                success=outcome.success,
                content=outcome.content,
                error=outcome.error,
            ))

            if not outcome.success:
                await self.emit(context, ExecutionState.ACT_FAIL, outcome.error or f"{name} failed")
                result.success = False
                result.error = outcome.error
                break

            await self.emit(context, ExecutionState.ACT_OK, outcome.content or name)
            if outcome.is_done:
                result.is_done = True
                result.final_answer = outcome.content
                break

            await context.control.checkpoint()

        return result
