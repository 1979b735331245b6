"""
Executor

Drives one task through the planner / navigator / validator step loop and
reports every transition as an ExecutionEvent. Budgets, cooperative
pause/cancel and follow-up tasks are handled here; nothing but the
pre-run ExecutorStateError escapes ``execute()``.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from ..actions import ActionRegistry
from ..llm import AgentModels, ChatModel
from .base import BaseAgent
from .events import Actor, EventListener, EventManager, ExecutionEvent, ExecutionState
from .navigator import NavigationResult, NavigatorAgent, NavigatorOutput
from .planner import PlannerAgent, PlannerOutput, PlanStatus
from .types import (
    AgentContext,
    AgentOptions,
    AgentOutput,
    ExecutionCancelled,
    ExecutionControl,
    StepRecord,
    Task,
)
from .validator import ValidatorAgent

logger = logging.getLogger(__name__)


class ExecutorStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({ExecutorStatus.DONE, ExecutorStatus.FAILED, ExecutorStatus.CANCELLED})

_STATUS_FOR_OUTCOME = {
    ExecutionState.TASK_OK: ExecutorStatus.DONE,
    ExecutionState.TASK_FAIL: ExecutorStatus.FAILED,
    ExecutionState.TASK_CANCEL: ExecutorStatus.CANCELLED,
}


class ExecutorStateError(RuntimeError):
    """Raised when the executor is used out of lifecycle order."""


class Executor:
    """
    Runs one task (and its follow-ups) against one BrowserContext.

    Lifecycle: IDLE -> RUNNING <-> PAUSED -> DONE | FAILED | CANCELLED.
    After DONE or FAILED a follow-up task may be added, which returns the
    executor to IDLE with its history intact.

    Usage:
        >>> executor = Executor("find the title of example.com", "task-1", browser, navigator_llm)
        >>> executor.subscribe_execution_events(on_event)
        >>> final = await executor.execute()
        >>> await executor.cleanup()
    """

    def __init__(
        self,
        task: str,
        task_id: str,
        browser_context: Any,
        navigator_llm: ChatModel,
        *,
        planner_llm: Optional[ChatModel] = None,
        validator_llm: Optional[ChatModel] = None,
        options: Optional[AgentOptions] = None,
        registry: Optional[ActionRegistry] = None,
    ):
        self.options = options or AgentOptions()
        self.browser_context = browser_context
        self.event_manager = EventManager()
        self.status = ExecutorStatus.IDLE

        self.context = AgentContext(
            task_id=task_id,
            browser_context=browser_context,
            event_manager=self.event_manager,
            options=self.options,
            control=ExecutionControl(),
            tasks=[Task(id=task_id, text=task)],
        )

        self.navigator = NavigatorAgent(navigator_llm, registry)
        self.planner: Optional[PlannerAgent] = None
        self.validator: Optional[ValidatorAgent] = None
        if planner_llm is not None and self.options.enable_planner:
            self.planner = PlannerAgent(planner_llm)
        if validator_llm is not None and self.options.enable_validator:
            self.validator = ValidatorAgent(validator_llm)

        self._cleaned_up = False
        self._cleanup_pending = False

    @property
    def task_id(self) -> str:
        return self.context.task_id

    @property
    def tasks(self) -> list[Task]:
        return list(self.context.tasks)

    @property
    def history(self) -> list[StepRecord]:
        return list(self.context.history)

    @property
    def final_answer(self) -> Optional[str]:
        return self.context.final_answer

    @property
    def is_running(self) -> bool:
        return self.status in (ExecutorStatus.RUNNING, ExecutorStatus.PAUSED)

    # Event subscription

    def subscribe_execution_events(self, listener: EventListener) -> None:
        """Route events to ``listener``, replacing any previous one."""
        self.event_manager.subscribe(listener)

    def clear_execution_events(self) -> None:
        self.event_manager.clear()

    async def _emit_system(self, state: ExecutionState, details: str = "") -> ExecutionEvent:
        return await self.context.emit(Actor.SYSTEM, state, details)

    # Lifecycle

    async def execute(self) -> ExecutionEvent:
        """
        Run the step loop until the task succeeds, fails or is cancelled.

        Returns:
            The terminal TASK_OK / TASK_FAIL / TASK_CANCEL event

        Raises:
            ExecutorStateError: If a run is already in flight, or the last
                run finished and no follow-up task was added
        """
        if self.is_running:
            raise ExecutorStateError(f"Task {self.task_id} is already running")
        if self.status != ExecutorStatus.IDLE:
            raise ExecutorStateError(
                f"Task {self.task_id} already finished ({self.status.value}); add a follow-up task first"
            )

        ctx = self.context
        self.status = ExecutorStatus.RUNNING
        self._cleaned_up = False
        ctx.step = 0
        ctx.plan = None
        ctx.final_answer = None

        logger.info(f"Task {self.task_id} started: {ctx.current_task.text}")
        try:
            await self._emit_system(ExecutionState.TASK_START, ctx.current_task.text)

            try:
                state, details = await self._run_steps()
            except ExecutionCancelled:
                await self._close_open_steps(cancelled=True)
                state, details = ExecutionState.TASK_CANCEL, "Task cancelled"
            except asyncio.CancelledError:
                self.status = ExecutorStatus.CANCELLED
                raise
            except Exception as e:
                logger.exception(f"Task {self.task_id} crashed")
                await self._close_open_steps(cancelled=False, details=str(e))
                state, details = ExecutionState.TASK_FAIL, f"Unexpected error: {e}"

            self.status = _STATUS_FOR_OUTCOME[state]
            if state == ExecutionState.TASK_OK:
                ctx.final_answer = details
            logger.info(f"Task {self.task_id} finished: {self.status.value}")
            return await self._emit_system(state, details)
        finally:
            # cleanup() requested mid-run is deferred until no browser action is in flight
            if self._cleanup_pending:
                self._cleanup_pending = False
                await self._release_browser()

    def add_follow_up_task(self, text: str) -> None:
        """
        Append a follow-up task that continues the current session.

        Raises:
            ExecutorStateError: Unless the last run ended in success or failure
        """
        if self.status not in (ExecutorStatus.DONE, ExecutorStatus.FAILED):
            raise ExecutorStateError(
                f"Follow-up tasks can only be added after a task finishes (status: {self.status.value})"
            )
        self.context.tasks.append(Task(id=self.task_id, text=text))
        self.context.control.reset()
        self.status = ExecutorStatus.IDLE
        logger.info(f"Follow-up added to task {self.task_id}: {text}")

    async def cancel(self) -> None:
        """Request cancellation; the loop stops at its next checkpoint."""
        if self.status in TERMINAL_STATUSES:
            return
        self.context.control.cancel()
        if self.status == ExecutorStatus.PAUSED:
            self.status = ExecutorStatus.RUNNING

    async def pause(self) -> None:
        if self.status != ExecutorStatus.RUNNING:
            return
        if self.context.control.pause():
            self.status = ExecutorStatus.PAUSED
            await self._emit_system(ExecutionState.TASK_PAUSE, "Task paused")

    async def resume(self) -> None:
        if self.status != ExecutorStatus.PAUSED:
            return
        if self.context.control.resume():
            self.status = ExecutorStatus.RUNNING
            await self._emit_system(ExecutionState.TASK_RESUME, "Task resumed")

    async def cleanup(self) -> None:
        """
        Release the browser resources held for this task (idempotent).

        During a run this only cancels it; the browser is released once
        the loop has stopped, never under an in-flight action.
        """
        if self._cleaned_up:
            return
        self._cleaned_up = True
        if self.is_running:
            self._cleanup_pending = True
            self.context.control.cancel()
            return
        await self._release_browser()

    async def _release_browser(self) -> None:
        try:
            await self.browser_context.cleanup()
        except Exception as e:
            logger.warning(f"Browser cleanup failed for task {self.task_id}: {e}")

    # Step loop

    async def _run_steps(self) -> tuple[ExecutionState, str]:
        ctx = self.context
        options = self.options
        failures = 0
        replans = 0
        last_error: Optional[str] = None

        while ctx.step < options.max_steps:
            await ctx.control.checkpoint()

            if self.planner is not None and ctx.step % options.planning_interval == 0:
                output = await self.planner.run(ctx)
                plan: Optional[PlannerOutput] = output.result
                if not output.ok:
                    failures += 1
                    last_error = output.error
                    self.planner.record(ctx, "fail", output.error)
                elif plan.status == PlanStatus.DONE:
                    self.planner.record(ctx, plan.status.value, plan.final_answer)
                    return ExecutionState.TASK_OK, plan.final_answer or plan.observation
                elif plan.status == PlanStatus.BLOCKED:
                    failures += 1
                    replans += 1
                    last_error = f"Planner is blocked: {plan.reasoning or plan.observation}"
                    self.planner.record(ctx, plan.status.value, last_error)
                    if replans > options.max_replan_attempts:
                        return ExecutionState.TASK_FAIL, (
                            f"Gave up after {replans} blocked plans. {last_error}"
                        )
                else:
                    replans = 0
                    ctx.plan = plan.next_steps or None
                    self.planner.record(ctx, plan.status.value, plan.next_steps)

                if failures > options.max_failures:
                    return ExecutionState.TASK_FAIL, self._failure_details(failures, last_error)

            ok, answer, error = await self._navigate()
            if not ok:
                failures += 1
                last_error = error
                if failures > options.max_failures:
                    return ExecutionState.TASK_FAIL, self._failure_details(failures, last_error)
            elif answer is not None:
                return ExecutionState.TASK_OK, answer
            else:
                failures = 0

            ctx.step += 1

        details = f"Reached the step limit ({options.max_steps}) without completing the task"
        if last_error:
            details += f". Last error: {last_error}"
        return ExecutionState.TASK_FAIL, details

    def _failure_details(self, failures: int, last_error: Optional[str]) -> str:
        return f"Stopped after {failures} consecutive failures. Last error: {last_error}"

    async def _navigate(self) -> tuple[bool, Optional[str], Optional[str]]:
        """
        Run one navigator step.

        Returns:
            (ok, final answer if the task is done, error if not ok)
        """
        ctx = self.context
        navigator = self.navigator

        output = await navigator.run(ctx)
        if not output.ok:
            return await self._fail_navigation(output.error, None)

        proposal: NavigatorOutput = output.result
        if not proposal.actions:
            return await self._fail_navigation("Navigator proposed no actions", None)

        result = await navigator.execute_actions(ctx, proposal)
        if not result.success:
            return await self._fail_navigation(result.error or "Action failed", result)

        if not result.is_done:
            details = proposal.current_state.next_goal
            navigator.record(ctx, "ok", details, result.records)
            await navigator.end_step(ctx, True, details)
            return True, None, None

        answer = result.final_answer or ""
        if self.validator is not None:
            verdict = await self._validate(answer)
            if not verdict.ok or not verdict.result.is_valid:
                reason = verdict.error or f"Validator rejected the answer: {verdict.result.reason}"
                return await self._fail_navigation(reason, result)
            answer = verdict.result.answer or answer

        navigator.record(ctx, "ok", answer, result.records)
        await navigator.end_step(ctx, True, answer)
        return True, answer, None

    async def _validate(self, answer: str) -> AgentOutput:
        ctx = self.context
        ctx.final_answer = answer
        verdict = await self.validator.run(ctx)
        if verdict.ok and verdict.result.is_valid:
            self.validator.record(ctx, "ok", verdict.result.reason)
        else:
            ctx.final_answer = None
            self.validator.record(ctx, "fail", verdict.error or verdict.result.reason)
        return verdict

    async def _fail_navigation(
        self,
        error: str,
        result: Optional[NavigationResult],
    ) -> tuple[bool, None, str]:
        records = result.records if result else []
        self.navigator.record(self.context, "fail", error, records)
        await self.navigator.end_step(self.context, False, error)
        return False, None, error

    def _agents_innermost_first(self) -> list[BaseAgent]:
        return [a for a in (self.validator, self.navigator, self.planner) if a is not None]

    async def _close_open_steps(self, cancelled: bool, details: str = "") -> None:
        for agent in self._agents_innermost_first():
            if cancelled:
                await agent.cancel_step(self.context)
            else:
                await agent.end_step(self.context, False, details)


def create_executor(
    task: str,
    task_id: str,
    browser_context: Any,
    models: AgentModels,
    options: Optional[AgentOptions] = None,
    registry: Optional[ActionRegistry] = None,
) -> Executor:
    """
    Factory function to build an executor from bound agent models.

    Args:
        task: Natural-language task
        task_id: Identifier shared by the task and its follow-ups
        browser_context: BrowserContext owned by this executor
        models: Navigator (required) and optional planner/validator models
        options: Run options (defaults to AgentOptions())
        registry: Action set (defaults to every registered action)
    """
    return Executor(
        task,
        task_id,
        browser_context,
        models.navigator,
        planner_llm=models.planner,
        validator_llm=models.validator,
        options=options,
        registry=registry,
    )
