"""Discovery of root source files from the paths given on the command line.

Directories are searched recursively for files with a source suffix.
Glob exclusion patterns are matched against absolute paths and against
every parent directory, so ``**/vendor/**`` style patterns work.

Example patterns:
- "*/test-*" - Any file or directory starting with "test-"
- "**/vendor/**" - Anything below a vendor directory
- "~/scad/scratch/*" - A specific scratch directory
"""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path

logger = logging.getLogger(__name__)


class ExclusionFilter:
    """Glob-pattern based path exclusion.

    Example usage:
        exclusions = ExclusionFilter(["**/vendor/**", "*/draft-*"])
        if exclusions.should_exclude(path):
            continue
    """

    def __init__(self, exclusion_patterns: list[str], excluded_dirs: list[Path] | None = None) -> None:
        """Initialize with exclusion patterns.

        Args:
            exclusion_patterns: List of glob patterns. Supports ~ expansion.
            excluded_dirs: Directories skipped entirely (e.g. the output directory)
        """
        self.patterns = self._normalize_patterns(exclusion_patterns)
        self.excluded_dirs = [d.resolve() for d in excluded_dirs or []]
        if self.patterns:
            logger.debug(f"ExclusionFilter initialized with {len(self.patterns)} patterns")

    def _normalize_patterns(self, patterns: list[str]) -> list[str]:
        """Expand ~ and normalize separators."""
        normalized = []
        for pattern in patterns:
            if pattern.startswith("~"):
                pattern = str(Path.home()) + pattern[1:]
            normalized.append(pattern.replace("\\", "/"))
        return normalized

    def should_exclude(self, path: Path) -> bool:
        """Check if a path or any of its parents matches an exclusion."""
        resolved = path.resolve()

        for excluded in self.excluded_dirs:
            if resolved == excluded or resolved.is_relative_to(excluded):
                return True

        if not self.patterns:
            return False

        candidates = [resolved, *resolved.parents]
        for pattern in self.patterns:
            for candidate in candidates:
                if fnmatch(candidate.as_posix(), pattern):
                    logger.debug(f"{resolved} excluded by pattern: {pattern}")
                    return True
        return False

    def __repr__(self) -> str:
        return f"ExclusionFilter(patterns={self.patterns})"


def discover_sources(
    paths: list[Path],
    extensions: list[str] | None = None,
    exclusions: ExclusionFilter | None = None,
) -> list[Path]:
    """Expand files and directories into an ordered, duplicate-free list of source files.

    Explicitly named files are always kept; files found inside directories
    must carry one of ``extensions`` and survive ``exclusions``.

    Args:
        paths: Files or directories given by the user
        extensions: Accepted suffixes (default: [".scad"])
        exclusions: Filter applied to files found inside directories

    Returns:
        Absolute file paths, directory contents sorted by path
    """
    suffixes = {s.lower() for s in (extensions or [".scad"])}
    found: list[Path] = []
    seen: set[Path] = set()

    def add(candidate: Path) -> None:
        resolved = candidate.resolve()
        if resolved not in seen:
            seen.add(resolved)
            found.append(resolved)

    for path in paths:
        if path.is_dir():
            for candidate in sorted(path.rglob("*")):
                if not candidate.is_file() or candidate.suffix.lower() not in suffixes:
                    continue
                if exclusions is not None and exclusions.should_exclude(candidate):
                    continue
                add(candidate)
        elif path.is_file():
            add(path)
        else:
            logger.warning(f"Input path does not exist: {path}")

    return found
