"""Command-line viewer for rdbg."""
