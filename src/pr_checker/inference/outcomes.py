"""Value types passed between the invoker, the orchestrator and persistence."""

from dataclasses import dataclass, field

from pr_checker.metrics.token_tracker import TokenUsage


@dataclass(frozen=True)
class TaskSpec:
    """One unit of work: instructions, payload and the task name used for results."""

    system_instructions: str
    user_payload: str
    task_name: str


@dataclass(frozen=True)
class Success:
    """Backend returned usable content."""

    content: str
    backend_used: str
    token_usage: TokenUsage | None = None


@dataclass(frozen=True)
class RetryableFailure:
    """Transient failure (rate limiting).

    retry_after_seconds is None when the provider gave no delay hint,
    which is not the same as a hint of zero seconds.
    """

    reason: str
    retry_after_seconds: int | None = None


@dataclass(frozen=True)
class HardFailure:
    """Failure that should not be retried on the same backend."""

    reason: str


InvocationOutcome = Success | RetryableFailure | HardFailure


def outcome_kind(outcome: InvocationOutcome) -> str:
    """Short label for an outcome, used in attempt records and reports."""
    if isinstance(outcome, Success):
        return "success"
    if isinstance(outcome, RetryableFailure):
        return "retryable_failure"
    return "hard_failure"


@dataclass(frozen=True)
class AttemptRecord:
    """Record of a single backend attempt for observability."""

    attempt_number: int
    backend: str
    outcome: str
    latency_ms: int = 0
    reason: str | None = None


@dataclass(frozen=True)
class OrchestrationSuccess:
    """Some backend in the chain answered."""

    content: str
    backend_used: str
    token_usage: TokenUsage | None = None
    attempts: list[AttemptRecord] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Exhausted:
    """Every candidate in the chain failed."""

    last_reason: str
    attempts: list[AttemptRecord] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return False


OrchestrationResult = OrchestrationSuccess | Exhausted
