"""
Base Agent

Shared run protocol of the planner, navigator and validator: observe the
browser, build a prompt, make exactly one LLM call, parse the reply into
the role's pydantic model. Transport and parse failures come back as an
error AgentOutput so the executor can count them.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from ..browser.page import PageState
from ..llm import ChatModel, Message
from .events import Actor, ExecutionState
from .types import AgentContext, AgentOutput, StepRecord

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json(text: str) -> dict[str, Any]:
    """
    Pull the first JSON object out of a model reply.

    Handles ```json fences and prose around the object.

    Raises:
        ValueError: If no valid JSON object is present
    """
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object found in response")

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


def parse_model_output(text: str, model: type[BaseModel]) -> BaseModel:
    """
    Parse a model reply into a role schema.

    Raises:
        ValueError: On malformed JSON or a schema violation
    """
    data = extract_json(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Response does not match {model.__name__}: {e.error_count()} error(s): {e}")


def format_tasks(context: AgentContext) -> str:
    first, *follow_ups = context.tasks
    parts = [f"Task: {first.text}"]
    for i, task in enumerate(follow_ups, 1):
        parts.append(f"Follow-up task {i}: {task.text}")
    return "\n".join(parts)


def format_history(context: AgentContext) -> str:
    records = context.recent_history()
    if not records:
        return "No previous steps."
    return "\n".join(record.summary() for record in records)


class BaseAgent(ABC):
    """
    One LLM-backed role.

    Subclasses set ``actor`` and ``output_model`` and implement
    ``build_messages``. Agents whose step outcome is known as soon as their
    reply is parsed (planner, validator) close their own step; the
    navigator's step is closed by the executor once its actions ran.
    """

    actor: Actor
    output_model: type[BaseModel]
    closes_own_step = True
    include_page_text = True

    def __init__(self, llm: ChatModel):
        self.llm = llm
        self.step_open = False

    @abstractmethod
    def build_messages(
        self,
        context: AgentContext,
        state: PageState,
        screenshot: Optional[str],
    ) -> list[Message]:
        """Build the prompt for this run; same inputs give the same prompt."""

    def uses_vision(self, context: AgentContext) -> bool:
        return context.options.use_vision

    def step_outcome(self, output: AgentOutput) -> tuple[bool, str]:
        """Map a run's output to (step ok, details) for STEP_OK / STEP_FAIL."""
        return output.ok, output.error or ""

    async def emit(self, context: AgentContext, state: ExecutionState, details: str = "") -> None:
        await context.emit(self.actor, state, details)

    async def start_step(self, context: AgentContext, details: str = "") -> None:
        self.step_open = True
        await self.emit(context, ExecutionState.STEP_START, details)

    async def end_step(self, context: AgentContext, ok: bool, details: str = "") -> None:
        if not self.step_open:
            return
        self.step_open = False
        await self.emit(context, ExecutionState.STEP_OK if ok else ExecutionState.STEP_FAIL, details)

    async def cancel_step(self, context: AgentContext) -> None:
        if not self.step_open:
            return
        self.step_open = False
        await self.emit(context, ExecutionState.STEP_CANCEL, "Cancelled by user")

    def record(self, context: AgentContext, outcome: str, details: str = "", actions=None) -> StepRecord:
        record = StepRecord(
            step_index=context.step,
            actor=self.actor,
            outcome=outcome,
            details=details,
            actions=actions or [],
        )
        context.history.append(record)
        return record

    async def observe(self, context: AgentContext) -> tuple[PageState, Optional[str]]:
        browser = context.browser_context
        state = await browser.get_state(include_text=self.include_page_text)
        screenshot = await browser.take_screenshot() if self.uses_vision(context) else None
        return state, screenshot

    async def run(self, context: AgentContext) -> AgentOutput:
        """
        Run this agent for the current step.

        Returns:
            AgentOutput with the parsed role model, or with ``error`` set
        """
        await context.control.checkpoint()
        await self.start_step(context)

        output = await self._invoke(context)

        if self.closes_own_step:
            ok, details = self.step_outcome(output)
            await self.end_step(context, ok, details)
        return output

    async def _invoke(self, context: AgentContext) -> AgentOutput:
        try:
            state, screenshot = await self.observe(context)
        except Exception as e:
            logger.warning(f"{self.actor.value}: could not read browser state: {e}")
            return AgentOutput(self.actor, error=f"Could not read browser state: {e}")

        messages = self.build_messages(context, state, screenshot)

        await context.control.checkpoint()
        try:
            response = await self.llm.invoke(messages)
        except Exception as e:
            logger.warning(f"{self.actor.value}: LLM call failed: {e}")
            return AgentOutput(self.actor, error=f"LLM call failed: {e}")
        await context.control.checkpoint()

        try:
            result = parse_model_output(response.content, self.output_model)
        except ValueError as e:
            logger.warning(f"{self.actor.value}: {e}")
            return AgentOutput(self.actor, error=f"Could not parse {self.actor.value} output: {e}")

        return AgentOutput(self.actor, result=result)
