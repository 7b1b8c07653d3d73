"""Data models for source flattening."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class EntryKind(str, Enum):
    """Structural unit kinds produced by the classifier."""

    COMMENT = "comment"
    VARIABLE = "variable"
    INCLUDE = "include"
    USE = "use"
    FUNCTION = "function"
    MODULE = "module"
    CUSTOMIZER_SECTION = "customizer_section"
    EMPTY = "empty"
    STATEMENT = "statement"

    @property
    def is_directive(self) -> bool:
        return self in (EntryKind.INCLUDE, EntryKind.USE)

    @property
    def is_declaration(self) -> bool:
        return self in (EntryKind.VARIABLE, EntryKind.MODULE, EntryKind.FUNCTION)


class Entry(BaseModel):
    """One classified structural unit of source text.

    Attributes:
        kind: What the text is
        content: Verbatim text, possibly multi-line, indentation included
        value: Secondary payload (assignment value, section/module/function name, directive reference)
        section: Customizer section this entry belongs to
        source_file: Absolute path of the originating file
        source_name: Short display name of the originating file
        line_number: 1-based first line of the entry in its origin
        leading_whitespace: Exact indentation of the first line
        doc: Comment run directly preceding a declaration
        synthetic: True for engine-generated provenance markers
        resolved: For directives, whether the target was inlined
    """

    model_config = ConfigDict(frozen=True)

    kind: EntryKind
    content: str
    value: str | None = None
    section: str | None = None
    source_file: Path
    source_name: str
    line_number: int = Field(..., ge=1)
    leading_whitespace: str = ""
    doc: str | None = None
    synthetic: bool = False
    resolved: bool = True


class DiagnosticKind(str, Enum):
    UNRESOLVED_REFERENCE = "unresolved_reference"
    UNREADABLE_FILE = "unreadable_file"
    DUPLICATE_SECTION = "duplicate_section"
    UNTERMINATED_BLOCK = "unterminated_block"
    RECURSION_LIMIT = "recursion_limit"


class Diagnostic(BaseModel):
    """A non-fatal condition found while flattening.

    Attributes:
        kind: Condition category
        message: Human-readable description
        path: File the condition was found in
        line: 1-based line, when known
    """

    kind: DiagnosticKind
    message: str
    path: Path | None = None
    line: int | None = None

    @property
    def is_warning(self) -> bool:
        return self.kind != DiagnosticKind.DUPLICATE_SECTION


@dataclass
class SourceFile:
    """A loaded source file and the entries classified from it.

    Identity is the absolute path. ``entries`` is assigned once when
    classification finishes.
    """

    path: Path
    text: str
    name: str
    entries: list[Entry] = field(default_factory=list)
    visited: bool = False

    @classmethod
    def load(cls, path: Path, encoding: str = "utf-8", relative_to: Path | None = None) -> SourceFile:
        """Read a file from disk.

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the content is not valid for ``encoding``
        """
        resolved = path.resolve()
        text = resolved.read_text(encoding=encoding)
        return cls(path=resolved, text=text, name=short_name(resolved, relative_to))

    @property
    def lines(self) -> list[str]:
        return self.text.splitlines()

    def __hash__(self) -> int:
        return hash(self.path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SourceFile):
            return NotImplemented
        return self.path == other.path


def short_name(path: Path, relative_to: Path | None = None) -> str:
    """Display name for a file: relative to ``relative_to`` when inside it, else the base name."""
    if relative_to is not None:
        try:
            return path.relative_to(relative_to).as_posix()
        except ValueError:
            pass
    return path.name
