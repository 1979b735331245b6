"""
Validator Agent

Checks a navigator's "done" claim against the task and the current page
before the executor reports success.
"""

from typing import Optional

from pydantic import BaseModel

from ..browser.page import PageState
from ..llm import Message
from .base import BaseAgent, format_tasks
from .events import Actor
from .prompts import VALIDATOR_SYSTEM_PROMPT
from .types import AgentContext, AgentOutput


class ValidatorOutput(BaseModel):
    is_valid: bool
    reason: str = ""
    answer: str = ""


class ValidatorAgent(BaseAgent):
    """
    Accepts or rejects the navigator's final answer.

    The claimed answer is read from ``context.final_answer``, which the
    executor sets before running validation.
    """

    actor = Actor.VALIDATOR
    output_model = ValidatorOutput

    def step_outcome(self, output: AgentOutput) -> tuple[bool, str]:
        if not output.ok:
            return False, output.error or ""
        verdict: ValidatorOutput = output.result
        return verdict.is_valid, verdict.reason

    def build_messages(
        self,
        context: AgentContext,
        state: PageState,
        screenshot: Optional[str],
    ) -> list[Message]:
        parts = [
            format_tasks(context),
            f"\nClaimed answer:\n{context.final_answer or '(none)'}",
            f"\nCurrent page:\n{state.to_prompt()}",
        ]
        return [
            Message(role="system", content=VALIDATOR_SYSTEM_PROMPT),
            Message(role="user", content="\n".join(parts), images=[screenshot] if screenshot else []),
        ]
