"""Path resolution for include/use references with library search path support."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def openscad_library_paths() -> list[Path]:
    """Library directories listed in the OPENSCADPATH environment variable."""
    raw = os.environ.get("OPENSCADPATH", "")
    return [Path(p).expanduser() for p in raw.split(os.pathsep) if p.strip()]


class ReferenceResolver:
    """Resolves directive references to absolute file paths.

    Lookup order:
    1. Relative to the directory of the file holding the directive
    2. Each configured library directory, in order
    3. Absolute references are used as-is

    Missing files are skipped gracefully (returns None).
    """

    def __init__(self, library_paths: list[Path] | None = None):
        """Initialize resolver with library search paths.

        Args:
            library_paths: Extra directories searched after the including
                file's directory (default: OPENSCADPATH entries)
        """
        if library_paths is None:
            library_paths = openscad_library_paths()
        self.library_paths = [p.expanduser() for p in library_paths]

    def resolve(self, reference: str, relative_to: Path) -> Path | None:
        """Resolve a reference to an existing file.

        Args:
            reference: The text between ``<`` and ``>`` of a directive
            relative_to: Directory of the file holding the directive

        Returns:
            Absolute Path if the file exists, None if not found (graceful skip)
        """
        reference = reference.strip()
        if not reference:
            return None

        ref_path = Path(reference).expanduser()
        if ref_path.is_absolute():
            if ref_path.is_file():
                return ref_path.resolve()
            logger.debug(f"Absolute reference not found: {ref_path}")
            return None

        candidate = relative_to / ref_path
        if candidate.is_file():
            return candidate.resolve()

        for library_dir in self.library_paths:
            candidate = library_dir / ref_path
            if candidate.is_file():
                logger.debug(f"Reference {reference} found in library path {library_dir}")
                return candidate.resolve()

        logger.debug(f"Reference not found: {reference} (tried {relative_to} and {len(self.library_paths)} library paths)")
        return None
