"""Single-pass line classifier producing typed entries for one source file."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import TYPE_CHECKING

from ...utils.directives import brace_delta
from ...utils.directives import comment_close_index
from ...utils.directives import ends_statement
from ...utils.directives import is_customizer_terminator
from ...utils.directives import is_line_comment
from ...utils.directives import leading_whitespace
from ...utils.directives import opens_block_comment
from ...utils.directives import parse_assignment
from ...utils.directives import parse_customizer_header
from ...utils.directives import parse_declaration
from ...utils.directives import parse_directive
from ...utils.directives import remove_line_comment
from ...utils.directives import split_block_comment
from ...utils.directives import starts_assignment
from .context import MergeContext
from .models import DiagnosticKind
from .models import Entry
from .models import EntryKind
from .models import SourceFile

if TYPE_CHECKING:
    from .merger import Merger

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    """Mutually exclusive scanner states."""

    TOP = "top"
    BLOCK_COMMENT = "block_comment"
    CUSTOMIZER = "customizer"
    FUNCTION = "function"
    MODULE = "module"
    STATEMENT = "statement"


_BLOCK_KINDS = {
    ScanState.BLOCK_COMMENT: EntryKind.COMMENT,
    ScanState.CUSTOMIZER: EntryKind.CUSTOMIZER_SECTION,
    ScanState.FUNCTION: EntryKind.FUNCTION,
    ScanState.MODULE: EntryKind.MODULE,
}


@dataclass
class _Block:
    """Lines buffered while a multi-line construct is open."""

    state: ScanState
    kind: EntryKind
    start: int
    lines: list[str]
    name: str | None = None
    doc: str | None = None
    section: str | None = None
    depth: int = 0
    saw_brace: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class _Scan:
    """Mutable state of one classify() call."""

    source: SourceFile
    entries: list[Entry] = field(default_factory=list)
    pending_comments: list[Entry] = field(default_factory=list)
    block: _Block | None = None
    current_section: str | None = None

    @property
    def state(self) -> ScanState:
        return self.block.state if self.block else ScanState.TOP

    def take_doc(self) -> str | None:
        doc = "\n".join(c.content for c in self.pending_comments) or None
        self.pending_comments = []
        return doc


Rule = tuple[Callable[[str], bool], Callable[[_Scan, str, int], None]]


class Classifier:
    """Scans a file's lines into an ordered list of entries.

    Top-level lines are matched against an ordered rule list; the first
    matching rule handles the line. Multi-line constructs (block comments,
    customizer sections, module and function bodies, continued statements)
    are buffered until they close. Directive lines call into the merger,
    whose entries are spliced right after the directive entry before the
    next line is scanned.
    """

    def __init__(self, context: MergeContext, merger: Merger | None = None):
        self.context = context
        self.merger = merger
        self._rules: list[Rule] = [
            (lambda line: not line.strip(), self._handle_blank),
            (lambda line: parse_directive(line) is not None, self._handle_directive),
            (lambda line: parse_customizer_header(line) is not None, self._open_customizer),
            (opens_block_comment, self._open_block_comment),
            (is_line_comment, self._handle_line_comment),
            (lambda line: parse_declaration(line) is not None, self._open_declaration),
            (starts_assignment, self._handle_assignment),
            (lambda line: True, self._handle_statement),
        ]

    def classify(self, source: SourceFile) -> list[Entry]:
        """Classify every line of a source file.

        Args:
            source: Loaded source file

        Returns:
            Entries in file order, with inlined directive targets spliced in
        """
        scan = _Scan(source=source)

        for number, line in enumerate(source.lines, start=1):
            if scan.block is not None:
                self._continue_block(scan, line, number)
            else:
                self._dispatch(scan, line, number)

        if scan.block is not None:
            block = scan.block
            self.context.report(
                DiagnosticKind.UNTERMINATED_BLOCK,
                f"Unterminated {block.state.value.replace('_', ' ')} starting at {source.name}:{block.start}",
                path=source.path,
                line=block.start,
            )
            self._close_block(scan)

        source.entries = list(scan.entries)
        source.visited = True
        logger.debug(f"Classified {source.name}: {len(scan.entries)} entries")
        return list(scan.entries)

    # ----- Top-level rules -----

    def _dispatch(self, scan: _Scan, line: str, number: int) -> None:
        for predicate, handler in self._rules:
            if predicate(line):
                handler(scan, line, number)
                return

    def _handle_blank(self, scan: _Scan, line: str, number: int) -> None:
        scan.pending_comments = []
        self._emit(scan, EntryKind.EMPTY, [line], number)

    def _handle_directive(self, scan: _Scan, line: str, number: int) -> None:
        keyword, reference = parse_directive(line)  # type: ignore[misc]
        kind = EntryKind(keyword)
        scan.pending_comments = []

        inlined = None
        if self.merger is not None:
            inlined = self.merger.resolve(reference, scan.source, kind, number)

        self._emit(scan, kind, [line], number, value=reference, resolved=inlined is not None)
        if inlined:
            scan.entries.extend(inlined)

    def _open_customizer(self, scan: _Scan, line: str, number: int) -> None:
        name = parse_customizer_header(line)
        scan.pending_comments = []
        scan.current_section = name
        scan.block = _Block(
            state=ScanState.CUSTOMIZER,
            kind=EntryKind.CUSTOMIZER_SECTION,
            start=number,
            lines=[line],
            name=name,
            section=name,
        )

    def _open_block_comment(self, scan: _Scan, line: str, number: int) -> None:
        split = split_block_comment(line)
        if split is None:
            scan.block = _Block(state=ScanState.BLOCK_COMMENT, kind=EntryKind.COMMENT, start=number, lines=[line])
            return

        comment, code = split
        if not code.strip():
            entry = self._emit(scan, EntryKind.COMMENT, [line], number)
            scan.pending_comments.append(entry)
            return

        # "/* [Name] */ code;" declares the section and starts it in one line
        name = parse_customizer_header(comment)
        if name is not None:
            scan.pending_comments = []
            scan.current_section = name
            self._emit(scan, EntryKind.CUSTOMIZER_SECTION, [comment], number, value=name, section=name)
        else:
            entry = self._emit(scan, EntryKind.COMMENT, [comment], number)
            scan.pending_comments.append(entry)
        self._dispatch(scan, leading_whitespace(line) + code.lstrip(), number)

    def _handle_line_comment(self, scan: _Scan, line: str, number: int) -> None:
        entry = self._emit(scan, EntryKind.COMMENT, [line], number)
        scan.pending_comments.append(entry)

    def _open_declaration(self, scan: _Scan, line: str, number: int) -> None:
        keyword, name = parse_declaration(line)  # type: ignore[misc]
        state = ScanState.MODULE if keyword == "module" else ScanState.FUNCTION
        scan.block = _Block(
            state=state,
            kind=_BLOCK_KINDS[state],
            start=number,
            lines=[],
            name=name,
            doc=scan.take_doc(),
        )
        self._continue_block(scan, line, number)

    def _handle_assignment(self, scan: _Scan, line: str, number: int) -> None:
        doc = scan.take_doc()
        parsed = parse_assignment(line)
        if parsed is not None:
            _, value = parsed
            self._emit(scan, EntryKind.VARIABLE, [line], number, value=value, section=scan.current_section, doc=doc)
            return
        scan.block = _Block(
            state=ScanState.STATEMENT,
            kind=EntryKind.VARIABLE,
            start=number,
            lines=[line],
            doc=doc,
            section=scan.current_section,
        )

    def _handle_statement(self, scan: _Scan, line: str, number: int) -> None:
        scan.pending_comments = []
        if ends_statement(line):
            self._emit(scan, EntryKind.STATEMENT, [line], number)
            return
        scan.block = _Block(state=ScanState.STATEMENT, kind=EntryKind.STATEMENT, start=number, lines=[line])

    # ----- Open blocks -----

    def _continue_block(self, scan: _Scan, line: str, number: int) -> None:
        block = scan.block
        assert block is not None

        if block.state == ScanState.CUSTOMIZER:
            if parse_customizer_header(line) is not None:
                self._close_block(scan)
                self._open_customizer(scan, line, number)
            elif is_customizer_terminator(line):
                self._close_block(scan)
                if not line.strip():
                    self._handle_blank(scan, line, number)
            else:
                block.lines.append(line)
            return

        if block.state == ScanState.BLOCK_COMMENT:
            end = comment_close_index(line)
            if end < 0:
                block.lines.append(line)
                return
            block.lines.append(line[:end])
            self._close_block(scan)
            code = line[end:]
            if code.strip():
                self._dispatch(scan, leading_whitespace(line) + code.lstrip(), number)
            return

        block.lines.append(line)

        if block.state in (ScanState.MODULE, ScanState.FUNCTION):
            delta, has_braces = brace_delta(line)
            block.depth += delta
            block.saw_brace = block.saw_brace or has_braces
            if block.saw_brace:
                if block.depth <= 0:
                    self._close_block(scan)
            elif ends_statement(block.text):
                self._close_block(scan)
            return

        # continued variable or statement
        if ends_statement(block.text):
            self._close_block(scan)

    def _close_block(self, scan: _Scan) -> None:
        block = scan.block
        assert block is not None
        scan.block = None

        value = block.name
        if block.kind == EntryKind.VARIABLE:
            value = _assignment_value(block.text)

        entry = self._emit(
            scan,
            block.kind,
            block.lines,
            block.start,
            value=value,
            section=block.section,
            doc=block.doc,
        )
        if block.state == ScanState.BLOCK_COMMENT:
            scan.pending_comments.append(entry)

    # ----- Helpers -----

    def _emit(self, scan: _Scan, kind: EntryKind, lines: list[str], number: int, **fields) -> Entry:
        entry = Entry(
            kind=kind,
            content="\n".join(lines),
            source_file=scan.source.path,
            source_name=scan.source.name,
            line_number=number,
            leading_whitespace=leading_whitespace(lines[0]) if lines else "",
            **fields,
        )
        scan.entries.append(entry)
        return entry


def _assignment_value(text: str) -> str:
    """Right-hand side of a (possibly multi-line) assignment without the final ``;``."""
    code = "\n".join(remove_line_comment(line).rstrip() for line in text.splitlines())
    _, _, rhs = code.partition("=")
    rhs = rhs.strip()
    if rhs.endswith(";"):
        rhs = rhs[:-1].rstrip()
    return rhs
