"""Per-run tracking state for one root file."""

import logging
from pathlib import Path

from .models import Diagnostic
from .models import DiagnosticKind

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


class MergeContext:
    """State shared by the recursive classify/merge calls of a single run.

    Holds the processed-set (each file is classified at most once), the
    customizer section claims used for duplicate reconciliation, and the
    diagnostics collected along the way. A new context is created for every
    root file so batch runs never leak state into each other.
    """

    def __init__(self, root: Path, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.root = root.resolve()
        self.max_depth = max_depth
        self.depth = 0
        self.processed: set[Path] = set()
        self.section_owners: dict[str, Path] = {}
        self.diagnostics: list[Diagnostic] = []

    @property
    def base_dir(self) -> Path:
        return self.root.parent

    def is_processed(self, path: Path) -> bool:
        return path.resolve() in self.processed

    def mark_processed(self, path: Path) -> None:
        self.processed.add(path.resolve())

    def claim_section(self, name: str, owner: Path) -> bool:
        """Claim a section name for a file; the first claimer keeps it.

        Returns:
            True if ``owner`` holds the claim after the call
        """
        current = self.section_owners.setdefault(name, owner)
        return current == owner

    def owns_section(self, name: str, path: Path) -> bool:
        return self.section_owners.get(name) == path

    def report(
        self,
        kind: DiagnosticKind,
        message: str,
        path: Path | None = None,
        line: int | None = None,
    ) -> Diagnostic:
        """Record a diagnostic and log it at the matching level."""
        diagnostic = Diagnostic(kind=kind, message=message, path=path, line=line)
        self.diagnostics.append(diagnostic)
        if diagnostic.is_warning:
            logger.warning(message, extra={"event": kind.value})
        else:
            logger.info(message, extra={"event": kind.value})
        return diagnostic

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_warning]
