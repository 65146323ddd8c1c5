"""PR Checker: multi-model PR review with diagram rendering."""

__version__ = "2.1.0"
