"""Single-backend invocation and failure classification.

Every provider response is normalized into one of three outcomes:
Success, RetryableFailure (rate limited, with an optional delay hint) or
HardFailure (network error, billing, malformed or empty response).
"""

import math
import re
from collections.abc import Mapping
from typing import Protocol

from pr_checker.inference.outcomes import (
    HardFailure,
    InvocationOutcome,
    RetryableFailure,
    TaskSpec,
)
from pr_checker.inference.registry import FREE_TIER_SUFFIX, BackendDescriptor

TOO_MANY_REQUESTS = 429
PAYMENT_REQUIRED = 402

# Body hints, tolerant of JSON embedded as an escaped string
_RETRY_FIELD_RE = re.compile(
    r'\\?"(?:retry_after|retryAfter|retry_after_seconds)\\?"\s*:\s*\\?"?(\d+(?:\.\d+)?)',
)
_RETRY_DELAY_RE = re.compile(r'\\?"retryDelay\\?"\s*:\s*\\?"(\d+(?:\.\d+)?)s\\?"')
_RETRY_TEXT_RE = re.compile(
    r"(?:retry|try again)\s+(?:after|in)\s+(\d+(?:\.\d+)?)\s*(?:s\b|sec|second)",
    re.IGNORECASE,
)

MAX_ERROR_SNIPPET = 500


class InferenceProvider(Protocol):
    """Protocol implemented by provider adapters."""

    def complete(self, backend: BackendDescriptor, task: TaskSpec) -> InvocationOutcome:
        """Run one request/response cycle and classify the result."""


def _to_seconds(value: str) -> int:
    return math.ceil(float(value))


def parse_retry_after(body: str, headers: Mapping[str, str] | None = None) -> int | None:
    """Extract a provider-supplied retry delay in whole seconds.

    The error body is checked first; the Retry-After header is only used when
    the body carries no hint. Returns None when there is no hint at all.
    """
    for pattern in (_RETRY_DELAY_RE, _RETRY_FIELD_RE, _RETRY_TEXT_RE):
        match = pattern.search(body or "")
        if match:
            return _to_seconds(match.group(1))

    if headers:
        header = headers.get("Retry-After") or headers.get("retry-after")
        if header:
            try:
                return _to_seconds(header.strip())
            except ValueError:
                # HTTP-date form is not supported
                return None
    return None


def payment_required_reason(backend: BackendDescriptor) -> str:
    """Diagnostic for HTTP 402, pointing at the free-tier identifier."""
    base = backend.identifier.removesuffix(FREE_TIER_SUFFIX)
    if backend.is_free:
        return (
            f"Payment required (402) for {backend.identifier}. The '{FREE_TIER_SUFFIX}' "
            f"suffix is already present; the free tier may be unavailable for this model."
        )
    return (
        f"Payment required (402) for {backend.identifier}. "
        f"If the model has a free tier, use the '{FREE_TIER_SUFFIX}' suffix: "
        f"{base}{FREE_TIER_SUFFIX}"
    )


def _snippet(text: str) -> str:
    text = (text or "").strip()
    if len(text) > MAX_ERROR_SNIPPET:
        return text[:MAX_ERROR_SNIPPET] + "..."
    return text


def classify_error_status(
    status_code: int,
    body: str,
    backend: BackendDescriptor,
    headers: Mapping[str, str] | None = None,
) -> RetryableFailure | HardFailure:
    """Classify a non-success status code from any provider."""
    if status_code == TOO_MANY_REQUESTS:
        return RetryableFailure(
            reason=f"Rate limited (429) by {backend.identifier}: {_snippet(body)}",
            retry_after_seconds=parse_retry_after(body, headers),
        )
    if status_code == PAYMENT_REQUIRED:
        return HardFailure(reason=payment_required_reason(backend))
    return HardFailure(
        reason=f"API error ({status_code}) from {backend.identifier}: {_snippet(body)}"
    )


class BackendInvoker:
    """Executes exactly one attempt against one backend."""

    def __init__(self, provider: InferenceProvider):
        self._provider = provider

    def invoke(self, backend: BackendDescriptor, task: TaskSpec) -> InvocationOutcome:
        """Invoke the backend; never raises.

        Provider adapters classify the failures they know about. Anything
        that still escapes is reported as a HardFailure so the caller only
        ever sees the three outcome types.
        """
        try:
            return self._provider.complete(backend, task)
        except Exception as e:
            return HardFailure(reason=f"Unexpected error from {backend.identifier}: {e}")
