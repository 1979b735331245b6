"""
Execution Data Model

Tasks, step history, run options and the shared context handed to each
agent invocation.
"""

import asyncio
import time
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from ..config import ConfigurationError, env_bool, env_int, load_environment
from .events import Actor, EventManager, ExecutionEvent, ExecutionState


@dataclass(frozen=True)
class Task:
    """
    A user-issued objective.

    A follow-up task carries the same id as the task it continues.
    """

    id: str
    text: str
    created_at: float = field(default_factory=time.time)


@dataclass
class ActionRecord:
    name: str
    args: dict[str, Any]
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None


@dataclass
class StepRecord:
    """What one agent did during one step, as fed back into later prompts."""

    step_index: int
    actor: Actor
    outcome: str  # "ok", "fail", or a planner status
    details: str = ""
    actions: list[ActionRecord] = field(default_factory=list)

    def summary(self) -> str:
        line = f"Step {self.step_index} [{self.actor.value}] {self.outcome}"
        if self.details:
            line += f": {self.details}"
        for record in self.actions:
            status = "ok" if record.success else "failed"
            result = record.content if record.success else record.error
            line += f"\n  - {record.name}({record.args}) {status}"
            if result:
                line += f": {result[:300]}"
        return line


@dataclass(frozen=True)
class AgentOptions:
    """
    Settings for one execute() run.

    Validated on construction; an invalid combination raises
    ConfigurationError before any run starts.
    """

    max_steps: int = 100
    max_failures: int = 3
    max_actions_per_step: int = 5
    use_vision: bool = False
    use_vision_for_planner: bool = False
    planning_interval: int = 3
    max_replan_attempts: int = 3
    enable_planner: bool = True
    enable_validator: bool = True
    history_window: int = 10

    def __post_init__(self):
        minimums = {
            "max_steps": 1,
            "max_failures": 0,
            "max_actions_per_step": 1,
            "planning_interval": 1,
            "max_replan_attempts": 0,
            "history_window": 1,
        }
        for name, minimum in minimums.items():
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
                raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")

    @classmethod
    def from_env(cls, **overrides: Any) -> "AgentOptions":
        """
        Create AgentOptions from environment variables.

        Each field reads the upper-cased variable of the same name
        (MAX_STEPS, USE_VISION, PLANNING_INTERVAL, ...). Keyword overrides
        win over the environment.

        Raises:
            ConfigurationError: If a variable is malformed or out of range
        """
        load_environment()

        values: dict[str, Any] = {}
        for f in fields(cls):
            env_name = f.name.upper()
            try:
                if f.type in (bool, "bool"):
                    values[f.name] = env_bool(env_name, f.default)
                else:
                    values[f.name] = env_int(env_name, f.default)
            except ValueError as e:
                raise ConfigurationError(str(e))

        values.update(overrides)
        return cls(**values)


@dataclass
class AgentOutput:
    """Result of one agent invocation: a parsed role model, or an error."""

    actor: Actor
    result: Optional[Any] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ExecutionCancelled(Exception):
    """Raised at a checkpoint once the run has been cancelled."""


class ExecutionControl:
    """
    Cooperative pause/cancel flags shared by the executor and its agents.

    ``checkpoint()`` is awaited at every safe point: it blocks while paused
    and raises ExecutionCancelled once cancelled.
    """

    def __init__(self):
        self.cancelled = False
        self._resume = asyncio.Event()
        self._resume.set()

    @property
    def paused(self) -> bool:
        return not self._resume.is_set()

    def pause(self) -> bool:
        """Returns True if this call changed the state."""
        if self.paused or self.cancelled:
            return False
        self._resume.clear()
        return True

    def resume(self) -> bool:
        if not self.paused:
            return False
        self._resume.set()
        return True

    def cancel(self) -> None:
        self.cancelled = True
        # Wake a paused loop so it can observe the cancel
        self._resume.set()

    def reset(self) -> None:
        self.cancelled = False
        self._resume.set()

    async def checkpoint(self) -> None:
        if self.cancelled:
            raise ExecutionCancelled()
        if self.paused:
            await self._resume.wait()
        if self.cancelled:
            raise ExecutionCancelled()


@dataclass
class AgentContext:
    """
    Everything an agent needs for one run: the task list, the step history,
    the current plan and the browser, plus the event and control channels.
    """

    task_id: str
    browser_context: Any
    event_manager: EventManager
    options: AgentOptions
    control: ExecutionControl = field(default_factory=ExecutionControl)
    tasks: list[Task] = field(default_factory=list)
    history: list[StepRecord] = field(default_factory=list)
    step: int = 0
    plan: Optional[str] = None
    final_answer: Optional[str] = None

    @property
    def current_task(self) -> Task:
        return self.tasks[-1]

    def recent_history(self) -> list[StepRecord]:
        return self.history[-self.options.history_window:]

    async def emit(self, actor: Actor, state: ExecutionState, details: str = "") -> ExecutionEvent:
        event = ExecutionEvent.create(
            actor=actor,
            state=state,
            task_id=self.task_id,
            step=self.step,
            max_steps=self.options.max_steps,
            details=details,
        )
        await self.event_manager.emit(event)
        return event
