#!/usr/bin/env python
"""
URL Analysis Example

Opens a page in a headless browser, answers a question about it and shuts
the browser down again.

Usage:
    python examples/url_analysis.py https://example.com "Who maintains this domain?"
"""

import asyncio
import sys

from taskpilot.agents import AgentOptions
from taskpilot.browser import BrowserConfig, create_browser_context
from taskpilot.llm import create_agent_models_from_env
from taskpilot.session import make_executor_factory, run_task_on_url


async def main(url: str, question: str) -> int:
    models = create_agent_models_from_env(enable_planner=False)
    browser = create_browser_context(BrowserConfig(headless=True))
    factory = make_executor_factory(models, AgentOptions(max_steps=15, enable_planner=False))

    try:
        outcome = await run_task_on_url(factory, browser, question, url)
    finally:
        await browser.close()
        await models.close()

    if outcome["success"]:
        print(outcome["content"])
        return 0
    print(f"Failed: {outcome['error']}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1], sys.argv[2])))
