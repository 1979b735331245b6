"""
taskpilot CLI Entry Point

Provides the command-line interface for running browser tasks with the
planner / navigator / validator agents.

Usage:
    python -m taskpilot.main "Your task description"
    python -m taskpilot.main "Your task" --start-url https://example.com --headless
    python -m taskpilot.main            # interactive session
"""

import argparse
import asyncio
import base64
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .agents import AgentOptions, ExecutionEvent, ExecutionState
from .browser import BrowserConfig, BrowserContext
from .config import ConfigurationError, configure_logging, load_environment
from .llm import AgentModels, create_agent_models_from_env
from .session import Session, make_executor_factory, run_task_on_url
from .tui import EventRenderer, get_console

logger = logging.getLogger(__name__)

SCREENSHOT_DIR = Path("screenshots")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Browser task agent with planner, navigator and validator roles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    taskpilot "Find the title of example.com"
    taskpilot "Summarize the pricing page" --start-url https://example.com/pricing --headless
    taskpilot --no-planner --max-steps 20
        """,
    )

    parser.add_argument(
        "task",
        nargs="?",
        help="Natural language task description (omit for an interactive session)",
    )

    parser.add_argument(
        "--start-url", "-u",
        type=str,
        default=None,
        help="URL to open before running the task",
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run browser in headless mode (closed when the task ends)",
    )

    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Maximum steps per task (default: MAX_STEPS or 100)",
    )

    parser.add_argument(
        "--no-planner",
        action="store_true",
        help="Run without the planner agent",
    )

    parser.add_argument(
        "--no-validator",
        action="store_true",
        help="Run without the validator agent",
    )

    parser.add_argument(
        "--vision",
        action="store_true",
        help="Send screenshots to the navigator and planner",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging with timestamps",
    )

    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> AgentOptions:
    overrides: dict[str, Any] = {}
    if args.max_steps is not None:
        overrides["max_steps"] = args.max_steps
    if args.no_planner:
        overrides["enable_planner"] = False
    if args.no_validator:
        overrides["enable_validator"] = False
    if args.vision:
        overrides["use_vision"] = True
        overrides["use_vision_for_planner"] = True
    return AgentOptions.from_env(**overrides)


def build_browser(args: argparse.Namespace) -> BrowserContext:
    config = BrowserConfig.from_env()
    if args.headless:
        config.headless = True
    if not args.task:
        # Follow-ups in an interactive session continue on the same pages
        config.keep_alive = True
    return BrowserContext(config)


async def run_task(
    task: str,
    models: AgentModels,
    options: AgentOptions,
    browser: BrowserContext,
    start_url: Optional[str] = None,
) -> bool:
    """
    Run a single task to completion.

    Returns:
        True if the task completed successfully, False otherwise
    """
    renderer = EventRenderer()
    factory = make_executor_factory(models, options)
    task_id = uuid.uuid4().hex[:8]

    try:
        if start_url:
            events: list[ExecutionEvent] = []

            async def listener(event: ExecutionEvent) -> None:
                events.append(event)
                renderer.render(event)

            outcome = await run_task_on_url(factory, browser, task, start_url, task_id=task_id, listener=listener)
            # No events means the start page never loaded
            if not outcome["success"] and not events:
                get_console().print_block(outcome["error"], "error")
            return outcome["success"]

        executor = factory(task, task_id, browser)
        executor.subscribe_execution_events(renderer)
        try:
            event = await executor.execute()
        finally:
            await executor.cleanup()
        return event.state == ExecutionState.TASK_OK
    finally:
        renderer.close()


def _save_screenshot(data: str) -> Path:
    SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
    path = SCREENSHOT_DIR / f"screenshot_{datetime.now():%Y%m%d_%H%M%S}.jpg"
    path.write_bytes(base64.b64decode(data))
    return path


async def run_interactive_session(
    models: AgentModels,
    options: AgentOptions,
    browser: BrowserContext,
    start_url: Optional[str] = None,
) -> None:
    """
    Run an interactive session.

    The first line starts a task; later lines become follow-up tasks that
    keep the previous history. Control commands work while a task runs.
    """
    console = get_console()
    renderer = EventRenderer()

    async def post(message: dict[str, Any]) -> None:
        kind = message.get("type")
        if kind == "execution":
            renderer.render(ExecutionEvent.model_validate(message))
        elif kind == "error":
            console.print_block(message["error"], "error")
        elif kind == "success" and "screenshot" in message:
            console.print_line(f"Screenshot saved to {_save_screenshot(message['screenshot'])}", "system")

    session = Session(make_executor_factory(models, options), browser, post)

    console.print("[bold]taskpilot[/bold] interactive session")
    console.print("Enter a task; later lines are follow-ups to it.")
    console.print("Commands: /pause /resume /cancel /screenshot, 'new' for a fresh task, 'quit' to exit\n")

    if start_url:
        await browser.navigate_to(start_url)

    commands = {
        "/pause": {"type": "pause_task"},
        "/resume": {"type": "resume_task"},
        "/cancel": {"type": "cancel_task"},
    }

    try:
        while True:
            line = (await asyncio.to_thread(console.console.input, "[bold green]>[/bold green] ")).strip()
            if not line:
                continue
            if line.lower() in ("quit", "exit", "q"):
                break

            if line in commands:
                await session.handle_message(commands[line])
                continue

            tab_id = (await browser.get_current_page()).tab_id
            if line == "/screenshot":
                await session.handle_message({"type": "screenshot", "tabId": tab_id})
                continue
            if line.lower() == "new":
                if session.is_running:
                    console.print_line("A task is running; /cancel it first.", "error")
                elif session.executor is not None:
                    await session.executor.cleanup()
                    session.executor = None
                continue

            kind = "follow_up_task" if session.executor is not None else "new_task"
            await session.handle_message({"type": kind, "task": line, "taskId": uuid.uuid4().hex[:8], "tabId": tab_id})
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Goodbye![/dim]")
    finally:
        await session.close()
        renderer.close()


async def _main_async(args: argparse.Namespace) -> int:
    try:
        options = build_options(args)
        models = create_agent_models_from_env(
            enable_planner=options.enable_planner,
            enable_validator=options.enable_validator,
        )
    except ConfigurationError as e:
        get_console().print_block(str(e), "error", title="[CONFIGURATION ERROR]")
        return 2

    browser = build_browser(args)
    try:
        if not args.task:
            await run_interactive_session(models, options, browser, args.start_url)
            return 0
        success = await run_task(args.task, models, options, browser, args.start_url)
        return 0 if success else 1
    finally:
        await browser.close()
        await models.close()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    load_environment()
    configure_logging(level=logging.DEBUG if args.verbose else None, verbose=args.verbose)

    try:
        return asyncio.run(_main_async(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
