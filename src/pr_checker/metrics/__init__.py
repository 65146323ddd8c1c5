"""Metrics module for token usage accounting."""

from pr_checker.metrics.token_tracker import TokenUsage, total_usage, usage_from_counts

__all__ = ["TokenUsage", "total_usage", "usage_from_counts"]
