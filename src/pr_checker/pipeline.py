"""PR analysis pipeline: orchestrated tasks, diagrams and comments."""

import time
from pathlib import Path
from typing import Any

from pr_checker.analysis.changed_files import ChangedFile
from pr_checker.config import Config
from pr_checker.execution.service import OrchestrationService, TaskRequest
from pr_checker.inference.outcomes import OrchestrationSuccess
from pr_checker.inference.registry import TaskCategory
from pr_checker.output.console import print_run_summary
from pr_checker.output.github_comment import CommentPoster, format_task_comment
from pr_checker.prompts import SYSTEM_PROMPTS, build_user_payload
from pr_checker.visual.image_host import ImgBBUploader
from pr_checker.visual.mermaid import MermaidRenderer, embed_images, extract_mermaid_blocks

DIAGRAM_TASKS = (TaskCategory.SCHEMA, TaskCategory.SEQUENCE)


def render_diagrams(
    markdown: str,
    task_name: str,
    run_dir: Path,
    renderer: MermaidRenderer,
    uploader: ImgBBUploader | None = None,
) -> tuple[str, int]:
    """Render every mermaid block and embed the images.

    Images are linked by their hosted URL when an uploader is configured,
    otherwise by file name relative to the run directory.

    Returns:
        The processed markdown and the number of diagrams embedded.
    """
    diagrams = extract_mermaid_blocks(markdown)
    if not diagrams:
        print(f"   ⚠ No Mermaid diagrams found in the {task_name} response")
        return markdown, 0

    images = []
    for i, diagram in enumerate(diagrams, start=1):
        name = f"{task_name}-{i}"
        (run_dir / f"{name}.mmd").write_text(diagram, encoding="utf-8")

        render = renderer.render(diagram, run_dir / f"{name}.png")
        if not render.success:
            print(f"   ✗ Failed to render {name}: {render.error}")
            continue

        if uploader is None:
            images.append((diagram, render.image_path.name))
            continue

        upload = uploader.upload(render.image_path, name)
        if upload.success:
            images.append((diagram, upload.url))
        else:
            print(f"   ✗ Failed to upload {name}: {upload.error}")

    return embed_images(markdown, images), len(images)


def run_pr_analysis(
    files: list[ChangedFile],
    service: OrchestrationService,
    config: Config,
    poster: CommentPoster | None = None,
    renderer: MermaidRenderer | None = None,
    uploader: ImgBBUploader | None = None,
    title: str = "",
    description: str = "",
) -> dict[str, Any]:
    """Run code review, schema and sequence tasks for a set of changed files.

    Returns dict with per-task results for reporting.
    """
    start_time = time.time()
    run_dir = service.store.run_dir

    result: dict[str, Any] = {
        "files_analyzed": len(files),
        "run_dir": str(run_dir),
        "tasks": {},
        "comments_posted": 0,
    }

    if not files:
        print("⊘ No changed files to analyze")
        result["duration_ms"] = int((time.time() - start_time) * 1000)
        return result

    print(f"\n🔍 Analyzing {len(files)} changed file(s)...")
    requests = [
        TaskRequest(
            category=category,
            system_instructions=SYSTEM_PROMPTS[category],
            user_payload=build_user_payload(category, files, title, description),
        )
        for category in TaskCategory
    ]
    outcomes = service.run_many(requests)

    for category, outcome in outcomes.items():
        task_name = category.value
        body = None
        diagrams = 0

        if (
            category in DIAGRAM_TASKS
            and isinstance(outcome, OrchestrationSuccess)
            and renderer is not None
            and config.comment.render_diagrams
        ):
            print(f"🎨 Rendering {task_name} diagrams...")
            body, diagrams = render_diagrams(
                outcome.content, task_name, run_dir, renderer, uploader
            )
            (run_dir / f"processed-{task_name}.md").write_text(body, encoding="utf-8")

        task_result: dict[str, Any] = {
            "success": outcome.success,
            "backend_used": outcome.backend_used if outcome.success else None,
            "attempts": len(outcome.attempts),
            "result_file": str(service.result_path(category)),
            "diagrams_rendered": diagrams,
        }

        if config.comment.enabled and poster is not None:
            comment_url = poster.post(format_task_comment(task_name, outcome, body))
            task_result["comment_url"] = comment_url
            if comment_url:
                result["comments_posted"] += 1

        result["tasks"][task_name] = task_result

    print_run_summary({c.value: o for c, o in outcomes.items()}, run_dir)
    result["duration_ms"] = int((time.time() - start_time) * 1000)
    return result
