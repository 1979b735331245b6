#!/usr/bin/env python
"""
Follow-up Session Example

Keeps one executor across several tasks: each follow-up sees the history
of the earlier ones and continues in the same browser tab.

Usage:
    python examples/follow_up_session.py

Requirements:
    - NAVIGATOR_MODEL and ANTHROPIC_API_KEY (or OPENAI_API_BASE + OPENAI_API_KEY) set
    - taskpilot installed: pip install -e .
"""

import asyncio
import uuid

from taskpilot.agents import create_executor
from taskpilot.browser import create_browser_context
from taskpilot.llm import create_agent_models_from_env
from taskpilot.tui import EventRenderer, get_console


async def main():
    """Run a task, then feed follow-ups typed by the user."""
    console = get_console()
    models = create_agent_models_from_env()
    browser = create_browser_context()

    console.print("[bold]taskpilot - follow-up session[/bold]")
    console.print("Each line continues the previous task. Type 'quit' to exit.\n")

    executor = None
    try:
        while True:
            text = console.console.input("[bold green]>[/bold green] ").strip()
            if not text:
                continue
            if text.lower() in ("quit", "exit", "q"):
                break

            if executor is None:
                executor = create_executor(text, uuid.uuid4().hex, browser, models)
                executor.subscribe_execution_events(EventRenderer(console))
            else:
                executor.add_follow_up_task(text)

            await executor.execute()
            console.print()
    finally:
        if executor is not None:
            await executor.cleanup()
        await browser.close()
        await models.close()


if __name__ == "__main__":
    asyncio.run(main())
