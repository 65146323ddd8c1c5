"""Output module for result files, console summaries and PR comments."""
