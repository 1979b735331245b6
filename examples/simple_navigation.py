#!/usr/bin/env python
"""
Simple Navigation Example

Runs one task with the navigator, planner and validator, rendering the
execution events to the terminal.

Usage:
    python examples/simple_navigation.py

Requirements:
    - NAVIGATOR_MODEL and ANTHROPIC_API_KEY (or OPENAI_API_BASE + OPENAI_API_KEY) set
    - taskpilot installed: pip install -e .
"""

import asyncio
import uuid

from taskpilot.agents import AgentOptions, create_executor
from taskpilot.browser import BrowserConfig, create_browser_context
from taskpilot.llm import create_agent_models_from_env
from taskpilot.tui import EventRenderer


async def main():
    """Run simple navigation task."""
    models = create_agent_models_from_env()
    browser = create_browser_context(BrowserConfig(headless=False))

    task = "Navigate to https://example.com and tell me the page title"
    executor = create_executor(task, uuid.uuid4().hex, browser, models, options=AgentOptions(max_steps=10))
    executor.subscribe_execution_events(EventRenderer())

    try:
        event = await executor.execute()
        print(f"\n{event.state.value}: {event.data.details}")
    finally:
        await executor.cleanup()
        await browser.close()
        await models.close()


if __name__ == "__main__":
    asyncio.run(main())
