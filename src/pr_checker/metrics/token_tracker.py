"""Token usage tracking across orchestrated tasks."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported for a single API call."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


def usage_from_counts(
    prompt_tokens: Any,
    completion_tokens: Any,
    total_tokens: Any = None,
) -> TokenUsage | None:
    """Build TokenUsage from provider counts, or None if they are not integers."""
    if not isinstance(prompt_tokens, int) or not isinstance(completion_tokens, int):
        return None
    if not isinstance(total_tokens, int):
        total_tokens = prompt_tokens + completion_tokens
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


def total_usage(usages: Iterable[TokenUsage | None]) -> TokenUsage:
    """Sum usage records, skipping calls that reported none."""
    total = TokenUsage(prompt_tokens=0, completion_tokens=0, total_tokens=0)
    for usage in usages:
        if usage is not None:
            total = total + usage
    return total
