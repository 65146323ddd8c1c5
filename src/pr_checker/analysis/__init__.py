"""Analysis module for collecting the files a change touches."""

from pr_checker.analysis.changed_files import ChangedFile, is_relevant_file, list_changed_files

__all__ = ["ChangedFile", "is_relevant_file", "list_changed_files"]
