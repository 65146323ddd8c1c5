"""Console output formatting."""

from pathlib import Path

from pr_checker.inference.outcomes import OrchestrationResult, OrchestrationSuccess
from pr_checker.metrics.token_tracker import total_usage


def format_run_summary(
    results: dict[str, OrchestrationResult],
    run_dir: Path,
) -> str:
    """Format the outcome of every task in a run."""
    lines = []

    lines.append("=" * 60)
    lines.append("PR Checker Run Summary")
    lines.append(f"Results: {run_dir}")
    lines.append("=" * 60)
    lines.append("")

    for task_name, result in results.items():
        lines.append(f"## {task_name}")
        if isinstance(result, OrchestrationSuccess):
            lines.append(f"✓ Answered by {result.backend_used}")
        else:
            lines.append(f"✗ EXHAUSTED: {result.last_reason}")
        for attempt in result.attempts:
            detail = f" ({attempt.reason})" if attempt.reason else ""
            lines.append(
                f"  {attempt.attempt_number}. {attempt.backend} "
                f"[{attempt.outcome}] {attempt.latency_ms}ms{detail}"
            )
        lines.append("")

    usage = total_usage(
        r.token_usage for r in results.values() if isinstance(r, OrchestrationSuccess)
    )
    lines.append(
        f"Tokens: {usage.total_tokens} "
        f"({usage.prompt_tokens} prompt, {usage.completion_tokens} completion)"
    )
    lines.append("=" * 60)
    return "\n".join(lines)


def print_run_summary(results: dict[str, OrchestrationResult], run_dir: Path) -> None:
    """Print formatted run results to console."""
    print(format_run_summary(results, run_dir))
