"""Changed-file listing for a local project directory."""

import fnmatch
import subprocess
from dataclasses import dataclass
from pathlib import Path

IGNORED_DIRECTORIES = {
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    ".next",
    ".nuxt",
    ".cache",
    "__pycache__",
    ".venv",
}

IGNORED_EXTENSIONS = {
    "lock", "log", "png", "jpg", "jpeg", "gif", "svg", "ico", "woff",
    "woff2", "ttf", "eot", "mp4", "webm", "mp3", "wav", "pdf", "pyc",
}


@dataclass
class ChangedFile:
    """A file touched by the change, with contents before and after."""

    path: str
    before_content: str
    after_content: str
    extension: str

    @property
    def is_new(self) -> bool:
        return self.before_content == "" and self.after_content != ""

    @property
    def is_deleted(self) -> bool:
        return self.after_content == "" and self.before_content != ""


def extension_of(path: str) -> str:
    return Path(path).suffix.lstrip(".").lower()


def is_relevant_file(path: str, ignore: list[str] | None = None) -> bool:
    """Skip binaries, lock files, vendored directories and ignore patterns."""
    if extension_of(path) in IGNORED_EXTENSIONS:
        return False
    if any(part in IGNORED_DIRECTORIES for part in Path(path).parts):
        return False
    return not any(fnmatch.fnmatch(path, pattern) for pattern in ignore or [])


def _git(project_path: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=project_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def _git_changed_paths(project_path: Path) -> list[str]:
    """Files changed against HEAD, then unstaged, then staged."""
    for args in (
        ("diff", "--name-only", "HEAD"),
        ("diff", "--name-only"),
        ("diff", "--name-only", "--staged"),
    ):
        paths = [line for line in _git(project_path, *args).splitlines() if line.strip()]
        if paths:
            return paths
    return []


def _previous_content(project_path: Path, path: str) -> str:
    try:
        return _git(project_path, "show", f"HEAD:{path}")
    except subprocess.CalledProcessError:
        # New file, no previous version
        return ""


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _all_project_files(project_path: Path, ignore: list[str]) -> list[ChangedFile]:
    files = []
    for full_path in sorted(project_path.rglob("*")):
        if not full_path.is_file():
            continue
        relative = full_path.relative_to(project_path).as_posix()
        if not is_relevant_file(relative, ignore):
            continue
        content = _read_text(full_path)
        if content is None:
            print(f"   ⚠ Could not read {relative}, skipping")
            continue
        files.append(ChangedFile(
            path=relative,
            before_content="",
            after_content=content,
            extension=extension_of(relative),
        ))
    return files


def list_changed_files(project_path: Path, ignore: list[str] | None = None) -> list[ChangedFile]:
    """List changed files in a project.

    Git repositories report files changed against HEAD. Directories without
    git, or where git fails, report every relevant file as new.
    """
    ignore = ignore or []

    if not (project_path / ".git").exists():
        return _all_project_files(project_path, ignore)

    try:
        changed_paths = _git_changed_paths(project_path)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        print(f"   ⚠ Could not get git diff ({e}), falling back to all files")
        return _all_project_files(project_path, ignore)

    files = []
    for path in changed_paths:
        if not is_relevant_file(path, ignore):
            continue
        full_path = project_path / path
        after = _read_text(full_path) if full_path.exists() else ""
        if after is None:
            print(f"   ⚠ Could not read {path}, skipping")
            continue
        files.append(ChangedFile(
            path=path,
            before_content=_previous_content(project_path, path),
            after_content=after,
            extension=extension_of(path),
        ))
    return files
