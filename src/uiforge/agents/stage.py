"""
Stage State Machine
Drives one generation stage to a trusted result.

States are ATTEMPT -> RETRY -> FALLBACK, ending in DONE or FAILED. Every
transition is chosen from the ``ErrorCode`` of the failure, never from the
exception type, and is recorded in the run's trace.
"""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

from ..core.errors import ErrorCode, StageError
from ..core.logging_config import get_logger
from ..core.tracing import trace_operation_async
from ..monitoring import metrics_collector

logger = get_logger(__name__)

T = TypeVar("T")


class StageState(str, Enum):
    ATTEMPT = "attempt"
    RETRY = "retry"
    FALLBACK = "fallback"
    FAILED = "failed"
    DONE = "done"


@dataclass(frozen=True)
class StagePolicy:
    """
    Transition rules for one stage.

    Args:
        retry_on: Codes that move ATTEMPT to RETRY
        fallback_on: Codes that move to FALLBACK when no retry applies
    """

    retry_on: frozenset[ErrorCode] = frozenset()
    fallback_on: frozenset[ErrorCode] = frozenset()

    def next_state(self, state: StageState, code: ErrorCode, has_fallback: bool) -> StageState:
        if state is StageState.ATTEMPT and code in self.retry_on:
            return StageState.RETRY
        if has_fallback and code in self.fallback_on:
            return StageState.FALLBACK
        return StageState.FAILED


@dataclass
class Transition:
    state: StageState
    code: ErrorCode | None = None


@dataclass
class StageRun(Generic[T]):
    """Result of a stage plus the path taken to reach it."""

    stage: str
    value: T
    trace: list[Transition] = field(default_factory=list)

    @property
    def final_state(self) -> StageState:
        return self.trace[-1].state

    @property
    def used_fallback(self) -> bool:
        return any(step.state is StageState.FALLBACK for step in self.trace)

    @property
    def attempts(self) -> int:
        return sum(1 for step in self.trace if step.state in (StageState.ATTEMPT, StageState.RETRY))


Attempt = Callable[[StageState], Awaitable[T]]
Fallback = Callable[[StageError], T | Awaitable[T]]


class StageMachine(Generic[T]):
    """Runs an attempt function under a StagePolicy."""

    def __init__(self, stage: str, policy: StagePolicy) -> None:
        self.stage = stage
        self.policy = policy

    async def run(self, attempt: Attempt[T], fallback: Fallback[T] | None = None) -> StageRun[T]:
        """
        Run the stage.

        Args:
            attempt: Called with the current state (ATTEMPT or RETRY)
            fallback: Called with the last error when the policy allows

        Raises:
            StageError: The policy reached FAILED
        """
        trace = [Transition(StageState.ATTEMPT)]
        state = StageState.ATTEMPT

        while True:
            try:
                async with trace_operation_async(f"stage.{self.stage}", state=state.value):
                    value = await attempt(state)
            except StageError as error:
                next_state = self.policy.next_state(state, error.code, fallback is not None)
                trace.append(Transition(next_state, error.code))
                metrics_collector.record_stage_outcome(self.stage, next_state.value)
                logger.info(
                    "stage_transition",
                    stage=self.stage,
                    from_state=state.value,
                    to_state=next_state.value,
                    code=error.code.value,
                    error=str(error),
                )

                if next_state is StageState.RETRY:
                    state = next_state
                    continue
                if next_state is StageState.FALLBACK:
                    result = fallback(error)
                    if inspect.isawaitable(result):
                        result = await result
                    trace.append(Transition(StageState.DONE))
                    return StageRun(stage=self.stage, value=result, trace=trace)
                raise

            trace.append(Transition(StageState.DONE))
            metrics_collector.record_stage_outcome(self.stage, "success")
            return StageRun(stage=self.stage, value=value, trace=trace)
