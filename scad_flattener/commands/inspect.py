"""The inspect command: show how a file is classified."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from ..console import console
from ..lib.flattening import EntryKind
from ..lib.flattening import Flattener
from ..lib.flattening.resolver import openscad_library_paths
from ..settings import get_settings
from ..utils.error_format import escape_markup
from ..utils.error_format import format_diagnostic
from ..utils.error_format import format_error_message


def _preview(text: str, width: int = 60) -> str:
    first = text.strip().splitlines()[0] if text.strip() else ""
    return first if len(first) <= width else first[: width - 1] + "…"


@click.command("inspect")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--library-path",
    "-L",
    "library_paths",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Extra directory searched for include/use targets (repeatable)",
)
@click.option(
    "--kind",
    "kinds",
    multiple=True,
    type=click.Choice([kind.value for kind in EntryKind]),
    help="Only show entries of this kind (repeatable)",
)
def inspect_cmd(file: Path, library_paths: tuple[Path, ...], kinds: tuple[str, ...]):
    """Classify FILE with its references resolved and list the entries."""
    settings = get_settings().load()
    flattener = Flattener(
        library_paths=[*library_paths, *settings.library_paths, *openscad_library_paths()],
        encoding=settings.encoding,
        max_depth=settings.max_depth,
    )
    try:
        entries, context = flattener.classify(file)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
        raise SystemExit(1) from e

    wanted = {EntryKind(k) for k in kinds}

    table = Table(title=f"Entries of {escape_markup(file.name)}")
    table.add_column("Origin", style="cyan")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Kind", style="green")
    table.add_column("Value")
    table.add_column("Section", style="dim")
    table.add_column("Content")

    for entry in entries:
        if wanted and entry.kind not in wanted:
            continue
        kind = entry.kind.value
        if entry.kind.is_directive and not entry.resolved:
            kind += " (unresolved)"
        elif entry.synthetic:
            kind += " (marker)"
        table.add_row(
            escape_markup(entry.source_name),
            str(entry.line_number),
            kind,
            escape_markup(entry.value or ""),
            escape_markup(entry.section or ""),
            escape_markup(_preview(entry.content)),
        )

    console.print(table)
    for diagnostic in context.diagnostics:
        style = "yellow" if diagnostic.is_warning else "dim"
        console.print(f"[{style}]{escape_markup(format_diagnostic(diagnostic))}[/{style}]")
    console.print(
        f"[bold]{len(entries)}[/bold] entries from {len(context.processed)} files, "
        f"{len(context.warnings())} warnings"
    )
