"""
Rich TUI Console Setup

Provides the core console infrastructure for rendering execution events.
Each actor gets its own panel color, configurable via environment variables.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.text import Text
from rich.theme import Theme

from ..config import env_bool, load_environment

# Block types for agent output, one per actor plus errors
BlockType = Literal["system", "planner", "navigator", "validator", "user", "error"]


@dataclass
class TUIConfig:
    """
    TUI configuration loaded from environment variables.

    Attributes:
        color_system: Color for task lifecycle blocks
        color_planner: Color for planner blocks
        color_navigator: Color for navigator and action blocks
        color_validator: Color for validator blocks
        color_error: Color for failures
        show_timestamps: Whether to display timestamps
    """

    color_system: str = "magenta"
    color_planner: str = "blue"
    color_navigator: str = "green"
    color_validator: str = "yellow"
    color_user: str = "white"
    color_error: str = "red"
    show_timestamps: bool = True

    @classmethod
    def from_env(cls) -> "TUIConfig":
        """Load configuration from environment variables."""
        load_environment()
        return cls(
            color_system=os.getenv("COLOR_SYSTEM", "magenta"),
            color_planner=os.getenv("COLOR_PLANNER", "blue"),
            color_navigator=os.getenv("COLOR_NAVIGATOR", "green"),
            color_validator=os.getenv("COLOR_VALIDATOR", "yellow"),
            color_user=os.getenv("COLOR_USER", "white"),
            color_error=os.getenv("COLOR_ERROR", "red"),
            show_timestamps=env_bool("SHOW_TIMESTAMPS", True),
        )

    def color_for(self, block_type: BlockType) -> str:
        return getattr(self, f"color_{block_type}")


def create_theme(config: TUIConfig) -> Theme:
    """Create a Rich theme from TUI configuration."""
    styles = {"timestamp": Style(dim=True), "label": Style(bold=True)}
    for block_type in ("system", "planner", "navigator", "validator", "user", "error"):
        color = config.color_for(block_type)
        styles[block_type] = Style(color=color, bold=True)
        styles[f"{block_type}.text"] = Style(color=color)
    return Theme(styles)


class AgentConsole:
    """
    Rich console wrapper for execution event output.

    Provides formatted panels per actor with consistent styling and
    optional timestamps.
    """

    def __init__(self, config: Optional[TUIConfig] = None, console: Optional[Console] = None):
        """
        Initialize the agent console.

        Args:
            config: TUI configuration. If None, loads from environment.
            console: Underlying Rich console (e.g. a recording console in tests)
        """
        self.config = config or TUIConfig.from_env()
        self._theme = create_theme(self.config)
        self.console = console or Console(theme=self._theme)
        if console is not None:
            self.console.push_theme(self._theme)

    def _get_timestamp(self) -> str:
        if self.config.show_timestamps:
            return datetime.now().strftime("%H:%M:%S")
        return ""

    def print_block(self, content: str, block_type: BlockType, title: Optional[str] = None) -> None:
        """
        Print a styled block to the console.

        Args:
            content: The text content to display
            block_type: Actor (or error) the block belongs to
            title: Optional title to override the default label
        """
        block_title = title or f"[{block_type.upper()}]"

        timestamp = self._get_timestamp()
        if timestamp:
            block_title = f"{timestamp} {block_title}"

        # Plain text: page content and model output may contain [brackets]
        panel = Panel(
            Text(content),
            title=block_title,
            title_align="left",
            border_style=self.config.color_for(block_type),
            padding=(0, 1),
        )
        self.console.print(panel)

    def print_line(self, content: str, block_type: BlockType) -> None:
        """Print a single un-boxed line in the block type's color."""
        self.console.print(content, style=f"{block_type}.text", markup=False)

    def print(self, *args, **kwargs) -> None:
        """Passthrough to underlying Rich console."""
        self.console.print(*args, **kwargs)

    def status(self, message: str, spinner: str = "dots"):
        """Create a status spinner for progress indication."""
        return self.console.status(message, spinner=spinner)


# Global console instance
_console: Optional[AgentConsole] = None


def get_console() -> AgentConsole:
    """Get or create the global console instance."""
    global _console
    if _console is None:
        _console = AgentConsole()
    return _console


def create_console(config: Optional[TUIConfig] = None, console: Optional[Console] = None) -> AgentConsole:
    """
    Create a new console instance with optional configuration.

    Args:
        config: TUI configuration. If None, loads from environment.
        console: Underlying Rich console to write to
    """
    return AgentConsole(config, console)
