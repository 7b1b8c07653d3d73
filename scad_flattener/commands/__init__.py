"""CLI commands for scad-flatten."""

from .flatten import flatten_cmd
from .inspect import inspect_cmd

__all__ = ["flatten_cmd", "inspect_cmd"]
