"""
Execution Events

The unit of observable progress. Every state transition of a run is
published as one ExecutionEvent, in order, to the single subscribed
listener (typically the UI channel).
"""

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    """Logical role that produced an event."""

    SYSTEM = "system"
    PLANNER = "planner"
    NAVIGATOR = "navigator"
    VALIDATOR = "validator"
    USER = "user"


class ExecutionState(str, Enum):
    """
    Lifecycle transitions.

    TASK_* events come from the executor with actor SYSTEM; STEP_* and ACT_*
    events come from the agent that owns the step.
    """

    TASK_START = "task.start"
    TASK_OK = "task.ok"
    TASK_FAIL = "task.fail"
    TASK_CANCEL = "task.cancel"
    TASK_PAUSE = "task.pause"
    TASK_RESUME = "task.resume"

    STEP_START = "step.start"
    STEP_OK = "step.ok"
    STEP_FAIL = "step.fail"
    STEP_CANCEL = "step.cancel"

    ACT_START = "act.start"
    ACT_OK = "act.ok"
    ACT_FAIL = "act.fail"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    ExecutionState.TASK_OK,
    ExecutionState.TASK_FAIL,
    ExecutionState.TASK_CANCEL,
})


class EventData(BaseModel):
    task_id: str
    step: int
    max_steps: int
    details: str = ""


def _now_ms() -> int:
    return int(time.time() * 1000)


class ExecutionEvent(BaseModel):
    """A single observable transition of a task run."""

    type: str = "execution"
    actor: Actor
    state: ExecutionState
    timestamp: int = Field(default_factory=_now_ms)
    data: EventData

    @classmethod
    def create(
        cls,
        actor: Actor,
        state: ExecutionState,
        task_id: str,
        step: int,
        max_steps: int,
        details: str = "",
    ) -> "ExecutionEvent":
        return cls(
            actor=actor,
            state=state,
            data=EventData(task_id=task_id, step=step, max_steps=max_steps, details=details),
        )

    def to_message(self) -> dict[str, Any]:
        """JSON-ready dict as posted to the UI channel."""
        return self.model_dump(mode="json")


EventListener = Callable[[ExecutionEvent], Awaitable[None]]


class EventManager:
    """
    Publishes events to at most one listener.

    Subscribing replaces the previous listener. A listener that raises is
    logged and the run carries on.
    """

    def __init__(self):
        self._listener: Optional[EventListener] = None

    @property
    def has_listener(self) -> bool:
        return self._listener is not None

    def subscribe(self, listener: EventListener) -> None:
        self._listener = listener

    def clear(self) -> None:
        self._listener = None

    async def emit(self, event: ExecutionEvent) -> None:
        logger.debug(f"{event.actor.value} {event.state.value} step={event.data.step}: {event.data.details}")
        listener = self._listener
        if listener is None:
            return
        try:
            await listener(event)
        except Exception:
            logger.exception(f"Event listener failed on {event.state.value}")
