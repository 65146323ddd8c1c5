"""Inference module: backend registry, invoker and provider adapters."""

from pr_checker.inference.invoker import BackendInvoker, InferenceProvider, parse_retry_after
from pr_checker.inference.outcomes import (
    AttemptRecord,
    Exhausted,
    HardFailure,
    InvocationOutcome,
    OrchestrationResult,
    OrchestrationSuccess,
    RetryableFailure,
    Success,
    TaskSpec,
)
from pr_checker.inference.providers import AnthropicProvider, OpenRouterProvider, build_provider
from pr_checker.inference.registry import (
    BackendDescriptor,
    ModelRegistry,
    TaskCategory,
    UnknownTaskCategoryError,
)

__all__ = [
    "BackendInvoker", "InferenceProvider", "parse_retry_after",
    "AttemptRecord", "Exhausted", "HardFailure", "InvocationOutcome",
    "OrchestrationResult", "OrchestrationSuccess", "RetryableFailure", "Success", "TaskSpec",
    "AnthropicProvider", "OpenRouterProvider", "build_provider",
    "BackendDescriptor", "ModelRegistry", "TaskCategory", "UnknownTaskCategoryError",
]
