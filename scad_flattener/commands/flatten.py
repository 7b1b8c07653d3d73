"""The flatten command: merge each root file and its references into one file."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.table import Table

from ..console import console
from ..lib.flattening import DiagnosticKind
from ..lib.flattening import Flattener
from ..lib.flattening import Layout
from ..lib.flattening.resolver import openscad_library_paths
from ..settings import get_settings
from ..utils.discovery import ExclusionFilter
from ..utils.discovery import discover_sources
from ..utils.error_format import escape_markup
from ..utils.error_format import format_diagnostic
from ..utils.error_format import format_error_message

logger = logging.getLogger(__name__)


class NoInputPathsError(click.UsageError):
    """Raised when flatten is called without any input path."""

    def __init__(self, ctx: click.Context | None = None):
        super().__init__("No input paths given. Pass at least one .scad file or directory.", ctx=ctx)


@click.command("flatten")
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for merged files (created if absent)",
)
@click.option(
    "--layout",
    type=click.Choice([layout.value for layout in Layout]),
    default=None,
    help="Grouped canonical output or encounter-order inline output",
)
@click.option(
    "--library-path",
    "-L",
    "library_paths",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Extra directory searched for include/use targets (repeatable)",
)
@click.option("--exclude", "excludes", multiple=True, help="Glob pattern skipped in directories (repeatable)")
@click.pass_context
def flatten_cmd(
    ctx: click.Context,
    paths: tuple[Path, ...],
    output_dir: Path | None,
    layout: str | None,
    library_paths: tuple[Path, ...],
    excludes: tuple[str, ...],
):
    """Flatten OpenSCAD files into self-contained single files.

    PATHS are .scad files or directories searched recursively. Each root
    file produces one output named after it in the output directory.
    """
    if not paths:
        raise NoInputPathsError(ctx)

    settings = get_settings().load(output_dir=output_dir, layout=layout)
    output_root = settings.output_dir.resolve()

    exclusions = ExclusionFilter([*settings.exclude, *excludes], excluded_dirs=[output_root])
    roots = discover_sources(list(paths), settings.extensions, exclusions)
    if not roots:
        console.print("[yellow]No source files found.[/yellow]")
        return

    flattener = Flattener(
        library_paths=[*library_paths, *settings.library_paths, *openscad_library_paths()],
        layout=settings.layout,
        encoding=settings.encoding,
        max_depth=settings.max_depth,
        hide_free_variables=settings.hide_free_variables,
    )

    table = Table(title="Flattened")
    table.add_column("Root", style="cyan")
    table.add_column("Output", style="green")
    table.add_column("Files", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Duplicates", justify="right", style="dim")

    written: dict[str, Path] = {}
    failures = 0
    for root in roots:
        try:
            result = flattener.flatten(root)
            target = flattener.write(result, output_root)
        except Exception as e:
            failures += 1
            logger.error(f"Failed to flatten {root}: {format_error_message(e)}")
            table.add_row(escape_markup(root.name), "[red]failed[/red]", "-", "-", "-")
            continue

        previous = written.get(target.name)
        if previous is not None and previous != root:
            logger.warning(f"{target} from {root} overwrote the output of {previous}")
        written[target.name] = root

        duplicates = [d for d in result.diagnostics if d.kind == DiagnosticKind.DUPLICATE_SECTION]
        for diagnostic in duplicates:
            console.print(f"[dim]{escape_markup(format_diagnostic(diagnostic))}[/dim]")

        warnings = len(result.warnings)
        table.add_row(
            escape_markup(root.name),
            escape_markup(target),
            str(len(result.files)),
            f"[yellow]{warnings}[/yellow]" if warnings else "0",
            str(len(duplicates)),
        )

    console.print(table)
    summary = f"{len(roots) - failures} of {len(roots)} files flattened into {escape_markup(output_root)}"
    console.print(f"[green]{summary}[/green]" if not failures else f"[yellow]{summary}[/yellow]")
