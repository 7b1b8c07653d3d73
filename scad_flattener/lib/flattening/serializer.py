"""Reconciliation and rendering of a flattened entry sequence into output text."""

import logging
from enum import Enum
from pathlib import Path

from .models import Entry
from .models import EntryKind

logger = logging.getLogger(__name__)

GENERATED_MARKER = "// Flattened from {root} by scad-flatten. Do not edit; edit the sources instead."

HIDDEN_SECTION = "Hidden"


class Layout(str, Enum):
    """Output arrangement.

    - GROUPED: canonical groups (sections, variables, modules, functions, statements)
    - INLINE: encounter order, directives replaced by their content
    """

    GROUPED = "grouped"
    INLINE = "inline"


def reconcile_sections(entries: list[Entry]) -> list[Entry]:
    """Keep one customizer section per name, in encounter order.

    A later section with the same name from the same file is folded into
    the first one (its body lines are appended); one from another file is
    dropped.
    """
    kept: dict[str, Entry] = {}
    for entry in entries:
        if entry.kind != EntryKind.CUSTOMIZER_SECTION:
            continue
        name = entry.section or entry.value or ""
        first = kept.get(name)
        if first is None:
            kept[name] = entry
            continue
        if first.source_file == entry.source_file:
            body = entry.content.split("\n")[1:]
            if body:
                kept[name] = first.model_copy(update={"content": "\n".join([first.content, *body])})
            logger.debug(f"Folded repeated section [{name}] at {entry.source_name}:{entry.line_number}")
        else:
            logger.debug(f"Dropped section [{name}] from {entry.source_name}: already emitted from {first.source_name}")
    return list(kept.values())


def unresolved_directives(entries: list[Entry]) -> list[Entry]:
    """Directives that were not inlined, deduplicated by kind and reference."""
    seen: set[tuple[EntryKind, str]] = set()
    result = []
    for entry in entries:
        if not entry.kind.is_directive or entry.resolved:
            continue
        key = (entry.kind, entry.value or "")
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result


def _leading_comment(entries: list[Entry], root: Path) -> Entry | None:
    """The root file's first comment, unless it is rendered as a declaration's doc."""
    for index, entry in enumerate(entries):
        if entry.kind == EntryKind.COMMENT and not entry.synthetic and entry.source_file == root:
            return None if _is_doc_comment(entries, index) else entry
    return None


def _is_doc_comment(entries: list[Entry], index: int) -> bool:
    """True when the comment run holding ``entries[index]`` is the doc of the entry after it."""
    comment = entries[index]
    for entry in entries[index + 1 :]:
        if entry.source_file != comment.source_file:
            return False
        if entry.kind == EntryKind.COMMENT and not entry.synthetic:
            continue
        return entry.doc is not None
    return False


def _render_entry(entry: Entry) -> str:
    if entry.doc:
        return f"{entry.doc}\n{entry.content}"
    return entry.content


def _render_group(entries: list[Entry], spaced: bool) -> list[str]:
    """Render one group, adding a provenance comment whenever the origin changes."""
    lines: list[str] = []
    origin = None
    for entry in entries:
        if entry.source_file != origin:
            if lines:
                lines.append("")
            lines.append(f"// from {entry.source_name}")
            origin = entry.source_file
        elif spaced:
            lines.append("")
        lines.append(_render_entry(entry))
    return lines


def _render_variables(variables: list[Entry], sections: list[Entry], hide_free_variables: bool) -> list[str]:
    """Render section members under a repeated section header, then free variables.

    Free variables get a Hidden header when a section header precedes them,
    so they do not join the last customizer tab.
    """
    members: dict[str, list[Entry]] = {}
    free: list[Entry] = []
    for entry in variables:
        if entry.section:
            members.setdefault(entry.section, []).append(entry)
        else:
            free.append(entry)

    lines: list[str] = []
    last_header = sections[-1].value if sections else None
    for name, group in members.items():
        if lines:
            lines.append("")
        lines.append(f"/* [{name}] */")
        lines.extend(_render_group(group, spaced=False))
        last_header = name

    if free:
        if lines:
            lines.append("")
        if hide_free_variables and last_header is not None and last_header != HIDDEN_SECTION:
            lines.append(f"/* [{HIDDEN_SECTION}] */")
        lines.extend(_render_group(free, spaced=False))
    return lines


def render(
    entries: list[Entry],
    root: Path,
    layout: Layout = Layout.GROUPED,
    *,
    root_name: str | None = None,
    hide_free_variables: bool = True,
) -> str:
    """Render a flattened entry sequence as one self-contained source text.

    Args:
        entries: The root file's fully flattened entries
        root: Absolute path of the root file
        layout: Output arrangement
        root_name: Name used in the generated marker (default: root's base name)
        hide_free_variables: Put a Hidden header before free variables when
            customizer sections precede them

    Returns:
        Output text ending with a newline
    """
    root = root.resolve()
    banner = GENERATED_MARKER.format(root=root_name or root.name)
    if layout == Layout.INLINE:
        return _render_inline(entries, banner)

    groups: list[list[str]] = []

    leading = _leading_comment(entries, root)
    if leading is not None:
        groups.append([leading.content])
    groups.append([banner])

    directives = unresolved_directives(entries)
    if directives:
        groups.append([d.content.strip() for d in directives])

    sections = reconcile_sections(entries)
    if sections:
        groups.append(_render_group(sections, spaced=True))

    variables = [e for e in entries if e.kind == EntryKind.VARIABLE]
    if variables:
        groups.append(_render_variables(variables, sections, hide_free_variables))

    for kind in (EntryKind.MODULE, EntryKind.FUNCTION, EntryKind.STATEMENT):
        group = [e for e in entries if e.kind == kind]
        if group:
            groups.append(_render_group(group, spaced=True))

    return "\n\n".join("\n".join(lines) for lines in groups) + "\n"


def _render_inline(entries: list[Entry], banner: str) -> str:
    kept_sections = {(e.source_file, e.line_number): e for e in reconcile_sections(entries)}
    lines = [banner]
    for entry in entries:
        if entry.kind.is_directive and entry.resolved:
            continue
        if entry.kind == EntryKind.CUSTOMIZER_SECTION:
            kept = kept_sections.get((entry.source_file, entry.line_number))
            if kept is not None:
                lines.append(kept.content)
            continue
        lines.append(entry.content)
    return "\n".join(lines) + "\n"
