"""
Planner Agent

Periodically reviews progress and either keeps the navigator going with a
fresh plan, declares the task done, or reports that it is blocked.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..browser.page import PageState
from ..llm import Message
from .base import BaseAgent, format_history, format_tasks
from .events import Actor
from .prompts import PLANNER_SYSTEM_PROMPT
from .types import AgentContext, AgentOutput


class PlanStatus(str, Enum):
    CONTINUE = "continue"
    DONE = "done"
    BLOCKED = "blocked"


class PlannerOutput(BaseModel):
    observation: str = ""
    status: PlanStatus
    reasoning: str = ""
    next_steps: str = ""
    final_answer: str = ""


class PlannerAgent(BaseAgent):
    """Plans the next high-level steps from the progress so far."""

    actor = Actor.PLANNER
    output_model = PlannerOutput

    def uses_vision(self, context: AgentContext) -> bool:
        return context.options.use_vision_for_planner

    def step_outcome(self, output: AgentOutput) -> tuple[bool, str]:
        if not output.ok:
            return False, output.error or ""
        plan: PlannerOutput = output.result
        if plan.status == PlanStatus.BLOCKED:
            return False, plan.reasoning or plan.observation or "Planner is blocked"
        if plan.status == PlanStatus.DONE:
            return True, plan.final_answer
        return True, plan.next_steps or plan.observation

    def build_messages(
        self,
        context: AgentContext,
        state: PageState,
        screenshot: Optional[str],
    ) -> list[Message]:
        parts = [
            format_tasks(context),
            f"\nSteps used: {context.step} of {context.options.max_steps}",
        ]
        if context.plan:
            parts.append(f"\nCurrent plan:\n{context.plan}")
        parts.append(f"\nPrevious steps:\n{format_history(context)}")
        parts.append(f"\nCurrent page:\n{state.to_prompt()}")

        return [
            Message(role="system", content=PLANNER_SYSTEM_PROMPT),
            Message(role="user", content="\n".join(parts), images=[screenshot] if screenshot else []),
        ]
