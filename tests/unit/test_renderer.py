"""
Unit tests for terminal rendering of execution events.
"""

import io

import pytest
from rich.console import Console

from taskpilot.agents import Actor, ExecutionEvent, ExecutionState
from taskpilot.tui import AgentConsole, EventRenderer, TUIConfig


@pytest.fixture
def console() -> AgentConsole:
    rich_console = Console(file=io.StringIO(), width=100, record=True, color_system=None)
    return AgentConsole(TUIConfig(show_timestamps=False), console=rich_console)


def output(console: AgentConsole) -> str:
    return console.console.export_text()


def event(actor: Actor, state: ExecutionState, details: str = "") -> ExecutionEvent:
    return ExecutionEvent.create(actor, state, task_id="t-1", step=0, max_steps=5, details=details)


class TestEventRenderer:
    """Lookup-table rendering."""

    def test_task_lifecycle(self, console):
        renderer = EventRenderer(console, show_spinner=False)

        renderer.render(event(Actor.SYSTEM, ExecutionState.TASK_START, "find the title"))
        renderer.render(event(Actor.SYSTEM, ExecutionState.TASK_OK, "Example Domain"))

        text = output(console)
        assert "[TASK t-1]" in text
        assert "find the title" in text
        assert "[TASK COMPLETE]" in text
        assert "Example Domain" in text

    def test_actions_and_failures(self, console):
        renderer = EventRenderer(console, show_spinner=False)

        renderer.render(event(Actor.NAVIGATOR, ExecutionState.ACT_START, 'click_element {"element_description": "[Sign in]"}'))
        renderer.render(event(Actor.NAVIGATOR, ExecutionState.ACT_FAIL, "No element matching '[Sign in]'"))
        renderer.render(event(Actor.NAVIGATOR, ExecutionState.STEP_FAIL, "Action failed"))

        text = output(console)
        assert '-> click_element {"element_description": "[Sign in]"}' in text
        assert "failed: No element matching '[Sign in]'" in text
        assert "[NAVIGATOR STEP FAILED]" in text

    def test_unknown_pair_is_ignored(self, console):
        renderer = EventRenderer(console, show_spinner=False)

        assert renderer.render(event(Actor.SYSTEM, ExecutionState.ACT_OK)) is False
        assert output(console) == ""

    def test_custom_handlers(self, console):
        seen = []
        renderer = EventRenderer(
            console,
            show_spinner=False,
            handlers={(Actor.SYSTEM, ExecutionState.TASK_OK): lambda r, e: seen.append(e.data.details)},
        )

        assert renderer.render(event(Actor.SYSTEM, ExecutionState.TASK_OK, "done"))
        assert not renderer.render(event(Actor.SYSTEM, ExecutionState.TASK_START))
        assert seen == ["done"]

    @pytest.mark.asyncio
    async def test_renderer_is_an_event_listener(self, console):
        renderer = EventRenderer(console, show_spinner=False)

        await renderer(event(Actor.SYSTEM, ExecutionState.TASK_PAUSE))

        assert "Paused" in output(console)

    def test_spinner_disabled_never_starts(self, console):
        renderer = EventRenderer(console, show_spinner=False)

        renderer.render(event(Actor.PLANNER, ExecutionState.STEP_START))

        assert not renderer.spinner.active


class TestTUIConfig:
    """Colors per block type."""

    def test_color_for(self):
        config = TUIConfig(color_validator="cyan")

        assert config.color_for("validator") == "cyan"
        assert config.color_for("error") == "red"
