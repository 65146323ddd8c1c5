"""Result files written for each orchestrated task."""

from datetime import datetime
from pathlib import Path

from pr_checker.inference.outcomes import (
    Exhausted,
    InvocationOutcome,
    OrchestrationResult,
    OrchestrationSuccess,
    Success,
)
from pr_checker.inference.registry import short_name


class ResultStoreError(Exception):
    """Raised when the results directory cannot be written."""


def create_run_directory(base_dir: Path) -> Path:
    """Create a fresh timestamped directory for one analysis run."""
    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
    run_dir = base_dir / timestamp
    try:
        run_dir.mkdir(parents=True, exist_ok=False)
    except OSError as e:
        raise ResultStoreError(f"Cannot create results directory {run_dir}: {e}") from e
    print(f"📁 Created output directory: {run_dir}")
    return run_dir


def format_error_document(name: str, result: OrchestrationResult | InvocationOutcome) -> str:
    """Human-readable markdown for a failed task."""
    reason = result.last_reason if isinstance(result, Exhausted) else result.reason
    lines = [f"# Error with {name}", "", reason, ""]

    attempts = getattr(result, "attempts", None)
    if attempts:
        lines.append("## Attempts")
        lines.append("")
        for attempt in attempts:
            line = f"{attempt.attempt_number}. `{attempt.backend}` - {attempt.outcome}"
            if attempt.reason:
                line += f": {attempt.reason}"
            lines.append(line)
        lines.append("")

    return "\n".join(lines)


class ResultStore:
    """Writes one markdown file per (label, task name) into a run directory."""

    def __init__(self, run_dir: Path):
        self.run_dir = run_dir

    def path_for(self, label: str, task_name: str) -> Path:
        return self.run_dir / f"{short_name(label)}-{task_name}.md"

    def record(
        self,
        label: str,
        task_name: str,
        result: OrchestrationResult | InvocationOutcome,
    ) -> Path:
        """Persist content on success, an error document otherwise.

        Raises:
            ResultStoreError: If the file cannot be written.
        """
        name = short_name(label)
        if isinstance(result, (OrchestrationSuccess, Success)):
            content = result.content
        else:
            content = format_error_document(name, result)

        path = self.path_for(label, task_name)
        try:
            self.run_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ResultStoreError(f"Cannot write result file {path}: {e}") from e

        if isinstance(result, (OrchestrationSuccess, Success)):
            print(f"   ✓ Saved {task_name} from {name} to {path}")
        else:
            print(f"   ✗ Failed to get {task_name} from {name}, error saved to {path}")
        return path
