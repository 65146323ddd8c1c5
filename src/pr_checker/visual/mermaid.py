"""Mermaid diagram extraction and rendering via the mermaid CLI."""

import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

_MERMAID_BLOCK_RE = re.compile(r"```mermaid\s+(.*?)\s*```", re.DOTALL)


@dataclass
class RenderResult:
    """Outcome of rendering one diagram."""

    success: bool
    image_path: Path | None = None
    error: str | None = None


def extract_mermaid_blocks(markdown: str) -> list[str]:
    """Return the source of every ```mermaid fenced block."""
    return [match.strip() for match in _MERMAID_BLOCK_RE.findall(markdown or "")]


def embed_images(markdown: str, images: list[tuple[str, str]]) -> str:
    """Replace mermaid blocks with image links, keeping the source collapsible.

    Args:
        markdown: Model output containing mermaid blocks.
        images: (diagram source, image URL) pairs for diagrams that rendered.
    """
    urls = dict(images)
    counter = 0

    def replace(match: re.Match) -> str:
        nonlocal counter
        diagram = match.group(1).strip()
        url = urls.get(diagram)
        if url is None:
            return match.group(0)
        counter += 1
        return (
            f"![diagram-{counter}]({url})\n\n"
            "<details>\n<summary>View Mermaid Code</summary>\n\n"
            f"```mermaid\n{diagram}\n```\n</details>"
        )

    return _MERMAID_BLOCK_RE.sub(replace, markdown)


class MermaidRenderer:
    """Renders mermaid markup to PNG with mmdc (headless Chromium)."""

    def __init__(self, command: str = "mmdc", timeout: int = 60):
        self.command = command
        self.timeout = timeout

    def render(self, markup: str, output_path: Path) -> RenderResult:
        """Render markup to output_path. Failures are returned, not raised."""
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            "w", suffix=".mmd", dir=output_path.parent, delete=False, encoding="utf-8"
        ) as source:
            source.write(markup)
            source_path = Path(source.name)

        try:
            result = subprocess.run(
                [
                    self.command,
                    "--input", str(source_path),
                    "--output", str(output_path),
                    "--backgroundColor", "white",
                ],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return RenderResult(
                success=False,
                error=f"{self.command} not installed (npm install -g @mermaid-js/mermaid-cli)",
            )
        except subprocess.TimeoutExpired:
            return RenderResult(success=False, error=f"Rendering timed out after {self.timeout}s")
        finally:
            source_path.unlink(missing_ok=True)

        if result.returncode != 0 or not output_path.exists():
            error = (result.stderr or result.stdout or "").strip()
            return RenderResult(success=False, error=error or f"exit code {result.returncode}")

        return RenderResult(success=True, image_path=output_path)
