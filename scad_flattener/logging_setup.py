"""
Logging bootstrap for the CLI.
Diagnostics go to a human-readable Rich handler on stderr; an optional
JSONL sink keeps a structured copy for later inspection.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

from .console import err_console

DEFAULT_PATH = os.environ.get("SCAD_FLATTEN_LOG_PATH")
DEFAULT_LEVEL = os.environ.get("SCAD_FLATTEN_LOG_LEVEL", "INFO").upper()

# LogRecord attributes that are not structured extras
_RECORD_FIELDS = frozenset(
    {
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    }
)


class JsonlHandler(logging.Handler):
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            base = {
                "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
                "lvl": record.levelname,
                "schema": {"name": "scad-flatten.log", "ver": "1.0.0"},
                "logger": record.name,
                "event": getattr(record, "event", None),
                "message": record.getMessage(),
            }
            for k, v in record.__dict__.items():
                if k in _RECORD_FIELDS:
                    continue
                base.setdefault(k, v)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(base, ensure_ascii=False, default=str) + "\n")
        except Exception:
            self.handleError(record)


def init_logging(verbose: bool = False, log_file: str | None = None, level: str | None = None) -> None:
    """Configure the root logger for a CLI run.

    Args:
        verbose: Show debug records on the console
        log_file: Optional JSONL sink path (default: SCAD_FLATTEN_LOG_PATH)
        level: Root level name (default: SCAD_FLATTEN_LOG_LEVEL or INFO)
    """
    level = "DEBUG" if verbose else (level or DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Remove handlers installed by a previous call
    for h in list(root.handlers):
        if isinstance(h, (JsonlHandler, RichHandler)):
            root.removeHandler(h)

    console_handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.addHandler(console_handler)

    path = log_file or DEFAULT_PATH
    if path:
        root.addHandler(JsonlHandler(path))
