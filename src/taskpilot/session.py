"""
UI Session

Transport-side owner of the current executor. A front end (the CLI, or a
socket/port bridge) feeds control messages to ``handle_message`` and
receives replies and execution events through ``post_message``.

Message vocabulary:
    heartbeat                          -> {type: heartbeat_ack}
    new_task {task, taskId, tabId}     -> execution events
    follow_up_task {task, taskId, tabId} -> execution events
    cancel_task / pause_task / resume_task -> {type: success}
    screenshot {tabId}                 -> {type: success, screenshot}
    anything else                      -> {type: error, error: "Unknown message type"}
"""

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional

from .agents import (
    AgentOptions,
    ExecutionEvent,
    ExecutionState,
    Executor,
    ExecutorStateError,
    create_executor,
)
from .actions import ActionRegistry
from .config import ConfigurationError
from .llm import AgentModels

logger = logging.getLogger(__name__)

PostMessage = Callable[[dict[str, Any]], Awaitable[None]]
ExecutorFactory = Callable[[str, str, Any], Executor]
MessageHandler = Callable[[dict[str, Any]], Awaitable[Optional[dict[str, Any]]]]


def error_reply(message: str) -> dict[str, Any]:
    return {"type": "error", "error": message}


def success_reply(**fields: Any) -> dict[str, Any]:
    return {"type": "success", **fields}


def make_executor_factory(
    models: AgentModels,
    options: Optional[AgentOptions] = None,
    registry: Optional[ActionRegistry] = None,
) -> ExecutorFactory:
    """
    Bind models and options into a ``(task, task_id, browser_context)`` factory.

    Args:
        models: Chat models per role
        options: Run options shared by every executor the factory builds
        registry: Action set (defaults to every registered action)
    """

    def factory(task: str, task_id: str, browser_context: Any) -> Executor:
        return create_executor(task, task_id, browser_context, models, options=options, registry=registry)

    return factory


class Session:
    """
    One UI connection and at most one current executor.

    Runs are spawned as asyncio tasks so control messages (pause, cancel)
    are handled while a task executes. Messages posted while no transport
    is attached are dropped.
    """

    def __init__(
        self,
        executor_factory: ExecutorFactory,
        browser_context: Any,
        post_message: Optional[PostMessage] = None,
    ):
        self.executor_factory = executor_factory
        self.browser_context = browser_context
        self.executor: Optional[Executor] = None
        self._post = post_message
        self._run_task: Optional[asyncio.Task] = None

        self._handlers: dict[str, MessageHandler] = {
            "heartbeat": self._on_heartbeat,
            "new_task": self._on_new_task,
            "follow_up_task": self._on_follow_up_task,
            "cancel_task": self._on_cancel_task,
            "pause_task": self._on_pause_task,
            "resume_task": self._on_resume_task,
            "screenshot": self._on_screenshot,
        }

    # Transport

    def attach(self, post_message: PostMessage) -> None:
        self._post = post_message

    def detach(self) -> None:
        self._post = None

    @property
    def is_attached(self) -> bool:
        return self._post is not None

    @property
    def is_running(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    async def post(self, message: dict[str, Any]) -> None:
        post = self._post
        if post is None:
            logger.debug(f"No transport attached, dropping {message.get('type')} message")
            return
        try:
            await post(message)
        except Exception:
            logger.exception("Failed to post message to UI")

    async def handle_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Dispatch one control message and post its reply, if any.

        Returns:
            The reply that was posted, or None when the request answers
            through execution events
        """
        handler = self._handlers.get(message.get("type"))
        if handler is None:
            reply = error_reply("Unknown message type")
        else:
            try:
                reply = await handler(message)
            except Exception as e:
                logger.exception(f"Error handling {message.get('type')} message")
                reply = error_reply(str(e) or "Unknown error")

        if reply is not None:
            await self.post(reply)
        return reply

    # Handlers

    async def _on_heartbeat(self, message: dict[str, Any]) -> dict[str, Any]:
        return {"type": "heartbeat_ack"}

    async def _on_new_task(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        task = message.get("task")
        if not task:
            return error_reply("No task provided")
        tab_id = message.get("tabId")
        if tab_id is None:
            return error_reply("No tab ID provided")
        if self.is_running:
            return error_reply("A task is already running, cancel it first")

        if self.executor is not None:
            await self.executor.cleanup()
            self.executor = None

        await self.browser_context.switch_tab(tab_id)
        task_id = message.get("taskId") or uuid.uuid4().hex
        try:
            executor = self.executor_factory(task, task_id, self.browser_context)
        except ConfigurationError as e:
            return error_reply(str(e))

        self.executor = executor
        self._start(executor)
        return None

    async def _on_follow_up_task(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        task = message.get("task")
        if not task:
            return error_reply("No follow up task provided")
        tab_id = message.get("tabId")
        if tab_id is None:
            return error_reply("No tab ID provided")
        if self.executor is None:
            return error_reply("Executor was cleaned up, can not add follow-up task")
        if self.is_running:
            return error_reply("Task is still running, can not add follow-up task")

        try:
            self.executor.add_follow_up_task(task)
        except ExecutorStateError as e:
            return error_reply(str(e))

        await self.browser_context.switch_tab(tab_id)
        self._start(self.executor)
        return None

    async def _on_cancel_task(self, message: dict[str, Any]) -> dict[str, Any]:
        if self.executor is None:
            return error_reply("No task to cancel")
        await self.executor.cancel()
        return success_reply()

    async def _on_pause_task(self, message: dict[str, Any]) -> dict[str, Any]:
        if self.executor is None:
            return error_reply("No task to pause")
        await self.executor.pause()
        return success_reply()

    async def _on_resume_task(self, message: dict[str, Any]) -> dict[str, Any]:
        if self.executor is None:
            return error_reply("No task to resume")
        await self.executor.resume()
        return success_reply()

    async def _on_screenshot(self, message: dict[str, Any]) -> dict[str, Any]:
        tab_id = message.get("tabId")
        if tab_id is None:
            return error_reply("No tab ID provided")
        page = await self.browser_context.switch_tab(tab_id)
        screenshot = await page.take_screenshot()
        return success_reply(screenshot=screenshot)

    # Runs

    def _subscribe(self, executor: Executor) -> None:
        executor.clear_execution_events()

        async def forward(event: ExecutionEvent) -> None:
            await self.post(event.to_message())
            if event.state.is_terminal:
                await executor.cleanup()

        executor.subscribe_execution_events(forward)

    def _start(self, executor: Executor) -> None:
        self._subscribe(executor)
        self._run_task = asyncio.create_task(self._run(executor))

    async def _run(self, executor: Executor) -> Optional[ExecutionEvent]:
        try:
            return await executor.execute()
        except ExecutorStateError as e:
            await self.post(error_reply(str(e)))
            return None

    async def wait_idle(self) -> Optional[ExecutionEvent]:
        """Wait for the current run (if any) and return its terminal event."""
        if self._run_task is None:
            return None
        return await self._run_task

    async def close(self) -> None:
        """Cancel any run, release the executor and drop the transport."""
        if self.executor is not None:
            await self.executor.cancel()
        if self._run_task is not None:
            await self._run_task
        if self.executor is not None:
            await self.executor.cleanup()
            self.executor = None
        self.detach()


async def run_task_on_url(
    executor_factory: ExecutorFactory,
    browser_context: Any,
    task: str,
    url: str,
    task_id: Optional[str] = None,
    listener: Optional[Callable[[ExecutionEvent], Awaitable[None]]] = None,
) -> dict[str, Any]:
    """
    Open ``url``, run ``task`` against it and report the outcome.

    Intended for unattended scans, typically on a headless BrowserContext,
    which is fully released afterwards.

    Returns:
        ``{"success": True, "content": answer}`` or ``{"success": False, "error": reason}``
    """
    try:
        await browser_context.navigate_to(url)
    except Exception as e:
        logger.warning(f"Could not open {url}: {e}")
        await browser_context.cleanup()
        return {"success": False, "error": f"Could not open {url}: {e}"}

    executor = executor_factory(task, task_id or uuid.uuid4().hex, browser_context)
    if listener is not None:
        executor.subscribe_execution_events(listener)
    try:
        event = await executor.execute()
    finally:
        await executor.cleanup()

    if event.state == ExecutionState.TASK_OK:
        return {"success": True, "content": event.data.details}
    return {"success": False, "error": event.data.details or "Task did not complete"}
