"""
Step progress indicator.

Shows a spinner between a STEP_START event and the event that closes the
step, so the user can see that an agent is working.
"""

from typing import Optional

from rich.status import Status

from .console import AgentConsole, BlockType, get_console


class StepSpinner:
    """
    Spinner that is started and stopped by events rather than a ``with``
    block, since a step opens and closes in separate event callbacks.
    """

    def __init__(self, console: Optional[AgentConsole] = None, enabled: bool = True, spinner: str = "dots"):
        self.console = console or get_console()
        self.enabled = enabled
        self.spinner = spinner
        self._status: Optional[Status] = None

    @property
    def active(self) -> bool:
        return self._status is not None

    def start(self, message: str, block_type: BlockType = "navigator") -> None:
        """Show (or retitle) the spinner."""
        if not self.enabled:
            return
        text = f"[{self.console.config.color_for(block_type)}]{message}[/]"
        if self._status is not None:
            self._status.update(text)
            return
        self._status = self.console.status(text, spinner=self.spinner)
        self._status.start()

    def stop(self) -> None:
        if self._status is None:
            return
        self._status.stop()
        self._status = None
