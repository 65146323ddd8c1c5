"""Instructions and payloads for each task category."""

from pr_checker.analysis.changed_files import ChangedFile
from pr_checker.inference.registry import TaskCategory

MAX_FILE_CHARS = 6000

SYSTEM_PROMPTS = {
    TaskCategory.CODE_REVIEW: (
        "You are a senior software developer who specializes in code review. "
        "Provide a well-formatted markdown response with headings, bullet points "
        "and code examples where appropriate."
    ),
    TaskCategory.SCHEMA: (
        "You are a software architect who visualizes system components. "
        "Answer with a Mermaid flowchart or class diagram in a ```mermaid block, "
        "followed by a short explanation."
    ),
    TaskCategory.SEQUENCE: (
        "You are a software architect who documents runtime behaviour. "
        "Answer with a Mermaid sequenceDiagram in a ```mermaid block, "
        "followed by a short explanation."
    ),
}

_TASK_REQUESTS = {
    TaskCategory.CODE_REVIEW: (
        "Review these changes. Cover what the code does, potential bugs, "
        "and suggestions for improvement."
    ),
    TaskCategory.SCHEMA: "Show how the changed files relate to each other.",
    TaskCategory.SEQUENCE: "Show the main interaction flow introduced or changed here.",
}


def _truncate(text: str) -> str:
    if len(text) <= MAX_FILE_CHARS:
        return text
    return text[:MAX_FILE_CHARS] + "\n... (truncated)"


def format_changed_files(files: list[ChangedFile]) -> str:
    """Render changed files as markdown sections with before/after code."""
    sections = []
    for f in files:
        status = "new" if f.is_new else ("deleted" if f.is_deleted else "modified")
        section = [f"### {f.path} ({status})"]
        if f.before_content and not f.is_deleted:
            section.append(f"Before:\n```{f.extension}\n{_truncate(f.before_content)}\n```")
        content = f.before_content if f.is_deleted else f.after_content
        label = "Removed" if f.is_deleted else "After"
        section.append(f"{label}:\n```{f.extension}\n{_truncate(content)}\n```")
        sections.append("\n".join(section))
    return "\n\n".join(sections)


def build_user_payload(
    category: TaskCategory,
    files: list[ChangedFile],
    title: str = "",
    description: str = "",
) -> str:
    """Build the user message for one task category."""
    parts = []
    if title:
        parts.append(f"## PR: {title}")
    if description:
        parts.append(f"## Description\n{description}")
    parts.append(f"## Changed files\n\n{format_changed_files(files)}")
    parts.append(_TASK_REQUESTS[category])
    return "\n\n".join(parts)
