"""GitHub comment formatting and posting."""

from pr_checker.github_client import GitHubClient
from pr_checker.inference.outcomes import Exhausted, OrchestrationResult, OrchestrationSuccess

COMMENT_TITLES = {
    "code-review": "AI Code Review Analysis",
    "schema": "AI Schema Visualization",
    "sequence": "AI Sequence Diagram",
}


def _footer(result: OrchestrationResult) -> list[str]:
    lines = ["---"]
    attempts = len(result.attempts)
    if isinstance(result, OrchestrationSuccess):
        footer = f"<sub>Model: `{result.backend_used}` | Attempts: {attempts}"
        if result.token_usage:
            usage = result.token_usage
            footer += (
                f" | Tokens: {usage.prompt_tokens} in / {usage.completion_tokens} out"
            )
        lines.append(footer + "</sub>")
    else:
        lines.append(f"<sub>All models failed after {attempts} attempt(s).</sub>")
    return lines


def format_task_comment(
    task_name: str,
    result: OrchestrationResult,
    body: str | None = None,
) -> str:
    """Format one task's result as GitHub-flavored markdown.

    Args:
        task_name: Task name, used to pick the comment title.
        result: Orchestration result for the task.
        body: Content to show instead of the raw model output, e.g. markdown
            with rendered diagram images embedded.
    """
    title = COMMENT_TITLES.get(task_name, task_name)
    lines = [f"## {title}", ""]

    if isinstance(result, Exhausted):
        lines.append("> **Analysis unavailable**")
        lines.append(f"> {result.last_reason}")
        lines.append("")
        lines.append("No model in the fallback chain produced a response. ")
        lines.append("Please retry or request a manual review.")
        lines.append("")
    else:
        lines.append(body if body is not None else result.content)
        lines.append("")

    lines.extend(_footer(result))
    return "\n".join(lines)


class CommentPoster:
    """Posts comments to one PR; a missing client means dry-run mode."""

    def __init__(
        self,
        client: GitHubClient | None,
        owner: str | None = None,
        repo: str | None = None,
        pr_number: int | None = None,
    ):
        self.client = client
        self.owner = owner
        self.repo = repo
        self.pr_number = pr_number

    @property
    def enabled(self) -> bool:
        return bool(self.client and self.owner and self.repo and self.pr_number)

    def post(self, body: str) -> str | None:
        """Post a comment. Returns the comment URL, or None in dry-run mode."""
        if not self.enabled:
            print("   ⊘ No GitHub credentials or PR target, skipping comment (dry run)")
            return None
        url = self.client.post_comment(self.owner, self.repo, self.pr_number, body)
        print(f"   💬 Comment posted: {url}")
        return url
