"""
Execution Event Rendering

Turns the executor's event stream into terminal output. Rendering is a
table lookup on (actor, state); pairs without an entry are ignored.
"""

import logging
from typing import Callable, Optional

from ..agents.events import Actor, ExecutionEvent, ExecutionState
from .console import AgentConsole, BlockType, get_console
from .progress import StepSpinner

logger = logging.getLogger(__name__)

Handler = Callable[["EventRenderer", ExecutionEvent], None]

STEP_LABELS = {
    Actor.PLANNER: "Planning",
    Actor.NAVIGATOR: "Navigating",
    Actor.VALIDATOR: "Validating",
}


def _block(actor: Actor) -> BlockType:
    return actor.value


def _task_start(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.console.print_block(event.data.details, "system", title=f"[TASK {event.data.task_id}]")


def _task_ok(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    renderer.console.print_block(event.data.details or "Task completed", "system", title="[TASK COMPLETE]")


def _task_fail(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    renderer.console.print_block(event.data.details or "Task failed", "error", title="[TASK FAILED]")


def _task_cancel(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    renderer.console.print_block(event.data.details or "Task cancelled", "system", title="[TASK CANCELLED]")


def _task_pause(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    renderer.console.print_line("Paused. Use /resume to continue.", "system")


def _task_resume(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.console.print_line("Resumed.", "system")


def _step_start(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    label = STEP_LABELS.get(event.actor, "Working")
    renderer.spinner.start(
        f"{label} (step {event.data.step + 1}/{event.data.max_steps})...",
        _block(event.actor),
    )


def _step_ok(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    if event.data.details:
        renderer.console.print_block(event.data.details, _block(event.actor))


def _step_fail(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    renderer.console.print_block(
        event.data.details or "Step failed",
        "error",
        title=f"[{event.actor.value.upper()} STEP FAILED]",
    )


def _step_cancel(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()


def _act_start(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.spinner.stop()
    renderer.console.print_line(f"-> {event.data.details}", "navigator")


def _act_ok(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.console.print_line(f"   ok: {event.data.details}", "navigator")


def _act_fail(renderer: "EventRenderer", event: ExecutionEvent) -> None:
    renderer.console.print_line(f"   failed: {event.data.details}", "error")


def _build_handlers() -> dict[tuple[Actor, ExecutionState], Handler]:
    handlers: dict[tuple[Actor, ExecutionState], Handler] = {
        (Actor.SYSTEM, ExecutionState.TASK_START): _task_start,
        (Actor.SYSTEM, ExecutionState.TASK_OK): _task_ok,
        (Actor.SYSTEM, ExecutionState.TASK_FAIL): _task_fail,
        (Actor.SYSTEM, ExecutionState.TASK_CANCEL): _task_cancel,
        (Actor.SYSTEM, ExecutionState.TASK_PAUSE): _task_pause,
        (Actor.SYSTEM, ExecutionState.TASK_RESUME): _task_resume,
        (Actor.NAVIGATOR, ExecutionState.ACT_START): _act_start,
        (Actor.NAVIGATOR, ExecutionState.ACT_OK): _act_ok,
        (Actor.NAVIGATOR, ExecutionState.ACT_FAIL): _act_fail,
    }
    for actor in STEP_LABELS:
        handlers[(actor, ExecutionState.STEP_START)] = _step_start
        handlers[(actor, ExecutionState.STEP_OK)] = _step_ok
        handlers[(actor, ExecutionState.STEP_FAIL)] = _step_fail
        handlers[(actor, ExecutionState.STEP_CANCEL)] = _step_cancel
    return handlers


DEFAULT_HANDLERS = _build_handlers()


class EventRenderer:
    """
    Renders execution events to an AgentConsole.

    An instance is an async event listener, so it can be passed straight to
    ``Executor.subscribe_execution_events``.

    Usage:
        >>> renderer = EventRenderer()
        >>> executor.subscribe_execution_events(renderer)
    """

    def __init__(
        self,
        console: Optional[AgentConsole] = None,
        show_spinner: bool = True,
        handlers: Optional[dict[tuple[Actor, ExecutionState], Handler]] = None,
    ):
        self.console = console or get_console()
        self.spinner = StepSpinner(self.console, enabled=show_spinner)
        self.handlers = dict(DEFAULT_HANDLERS if handlers is None else handlers)

    def render(self, event: ExecutionEvent) -> bool:
        """Render one event; returns False when no handler is registered for it."""
        handler = self.handlers.get((event.actor, event.state))
        if handler is None:
            logger.debug(f"No renderer for {event.actor.value}/{event.state.value}")
            return False
        handler(self, event)
        return True

    async def __call__(self, event: ExecutionEvent) -> None:
        self.render(event)

    def close(self) -> None:
        self.spinner.stop()
