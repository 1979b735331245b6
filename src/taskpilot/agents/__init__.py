"""
Agent Execution Engine

Implements the 3-agent step loop for browser automation:
- Planner: periodic progress review and high-level plan (optional)
- Navigator: chooses and executes browser actions each step
- Validator: checks "done" claims before success is reported (optional)

The Executor orchestrates them and publishes every transition as an
ExecutionEvent.
"""

from .events import (
    Actor,
    EventData,
    EventListener,
    EventManager,
    ExecutionEvent,
    ExecutionState,
    TERMINAL_STATES,
)
from .types import (
    ActionRecord,
    AgentContext,
    AgentOptions,
    AgentOutput,
    ExecutionCancelled,
    ExecutionControl,
    StepRecord,
    Task,
)
from .base import BaseAgent, extract_json, parse_model_output
from .navigator import NavigationResult, NavigatorAgent, NavigatorOutput, NavigatorState
from .planner import PlannerAgent, PlannerOutput, PlanStatus
from .validator import ValidatorAgent, ValidatorOutput
from .executor import (
    Executor,
    ExecutorStateError,
    ExecutorStatus,
    create_executor,
)

__all__ = [
    # Events
    "Actor",
    "EventData",
    "EventListener",
    "EventManager",
    "ExecutionEvent",
    "ExecutionState",
    "TERMINAL_STATES",
    # Data model
    "ActionRecord",
    "AgentContext",
    "AgentOptions",
    "AgentOutput",
    "ExecutionCancelled",
    "ExecutionControl",
    "StepRecord",
    "Task",
    # Agents
    "BaseAgent",
    "extract_json",
    "parse_model_output",
    "NavigationResult",
    "NavigatorAgent",
    "NavigatorOutput",
    "NavigatorState",
    "PlannerAgent",
    "PlannerOutput",
    "PlanStatus",
    "ValidatorAgent",
    "ValidatorOutput",
    # Executor
    "Executor",
    "ExecutorStateError",
    "ExecutorStatus",
    "create_executor",
]
