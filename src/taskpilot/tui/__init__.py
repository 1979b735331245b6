"""
Rich TUI Interface Module

Terminal rendering of execution events for the task execution agent.
Uses the Rich library for formatted, colorful output.

Components:
- AgentConsole: Main console wrapper with per-actor themed panels
- TUIConfig: Configuration for colors and display options
- StepSpinner: Spinner shown while an agent step is in progress
- EventRenderer: (actor, state) dispatch table over ExecutionEvents
"""

from .console import (
    AgentConsole,
    BlockType,
    TUIConfig,
    create_console,
    get_console,
)
from .progress import StepSpinner
from .events import DEFAULT_HANDLERS, EventRenderer

__all__ = [
    "AgentConsole",
    "BlockType",
    "TUIConfig",
    "create_console",
    "get_console",
    "StepSpinner",
    "DEFAULT_HANDLERS",
    "EventRenderer",
]
