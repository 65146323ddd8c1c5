"""Fallback orchestration across a ranked list of inference backends.

Traversal: primary first, then each fallback in order.
  Success           -> stop, return it
  RetryableFailure  -> with a delay hint: wait, retry the same backend once,
                       then move on whatever happens; without a hint: move on
  HardFailure       -> move on immediately

Always returns a result, never raises.
"""

import time
from collections.abc import Callable

from pr_checker.inference.invoker import BackendInvoker
from pr_checker.inference.outcomes import (
    AttemptRecord,
    Exhausted,
    InvocationOutcome,
    OrchestrationResult,
    OrchestrationSuccess,
    RetryableFailure,
    Success,
    TaskSpec,
    outcome_kind,
)
from pr_checker.inference.registry import BackendDescriptor


class FallbackOrchestrator:
    """Drives the invoker across candidates until one succeeds or all fail."""

    def __init__(
        self,
        invoker: BackendInvoker,
        sleep: Callable[[float], None] | None = None,
        max_retry_delay_seconds: int | None = None,
    ):
        self._invoker = invoker
        self._sleep = sleep or time.sleep
        self._max_retry_delay = max_retry_delay_seconds

    def run(
        self,
        primary: BackendDescriptor,
        fallbacks: list[BackendDescriptor],
        task: TaskSpec,
    ) -> OrchestrationResult:
        """Try primary then fallbacks; first success wins."""
        candidates = [primary, *fallbacks]
        attempts: list[AttemptRecord] = []
        last_reason = "No backends attempted"

        for backend in candidates:
            outcome = self._attempt(backend, task, attempts)

            if isinstance(outcome, RetryableFailure):
                delay = self._usable_delay(outcome)
                if delay is not None:
                    print(f"   ⏳ {backend} rate limited, retrying in {delay}s")
                    self._sleep(delay)
                    outcome = self._attempt(backend, task, attempts)

            if isinstance(outcome, Success):
                print(f"   ✓ {task.task_name}: answered by {outcome.backend_used}")
                return OrchestrationSuccess(
                    content=outcome.content,
                    backend_used=outcome.backend_used,
                    token_usage=outcome.token_usage,
                    attempts=attempts,
                )

            last_reason = outcome.reason
            print(f"   ✗ {backend} failed: {last_reason}")

        print(f"   ✗ {task.task_name}: all {len(candidates)} backends failed")
        return Exhausted(last_reason=last_reason, attempts=attempts)

    def _usable_delay(self, outcome: RetryableFailure) -> int | None:
        """Delay to wait before the single retry, or None to move on.

        Hints are honoured at any size unless max_retry_delay_seconds is set.
        """
        delay = outcome.retry_after_seconds
        if delay is None:
            return None
        if self._max_retry_delay is not None and delay > self._max_retry_delay:
            return None
        return max(delay, 0)

    def _attempt(
        self,
        backend: BackendDescriptor,
        task: TaskSpec,
        attempts: list[AttemptRecord],
    ) -> InvocationOutcome:
        print(f"   Attempt with {backend}...")
        start_time = time.monotonic()
        outcome = self._invoker.invoke(backend, task)
        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        attempts.append(AttemptRecord(
            attempt_number=len(attempts) + 1,
            backend=backend.identifier,
            outcome=outcome_kind(outcome),
            latency_ms=elapsed_ms,
            reason=None if isinstance(outcome, Success) else outcome.reason,
        ))
        return outcome
