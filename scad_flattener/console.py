"""Shared Rich console instances for CLI output."""

from rich.console import Console

console = Console()

# Diagnostics and log records, kept off stdout
err_console = Console(stderr=True)

__all__ = ["console", "err_console"]
