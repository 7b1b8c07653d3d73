"""Directive resolution with recursive classification and section reconciliation."""

import logging
from pathlib import Path

from ...utils.directives import scan_section_names
from .classifier import Classifier
from .context import MergeContext
from .models import DiagnosticKind
from .models import Entry
from .models import EntryKind
from .models import SourceFile
from .resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def claim_sections(source: SourceFile, context: MergeContext) -> None:
    """Claim every customizer section name declared in a file for that file.

    Names already claimed by an earlier file stay with it.
    """
    for name in scan_section_names(source.lines):
        if not context.claim_section(name, source.path):
            logger.debug(f"Section [{name}] in {source.name} already claimed by {context.section_owners[name]}")


def provenance_marker(text: str, origin: SourceFile, line_number: int) -> Entry:
    return Entry(
        kind=EntryKind.COMMENT,
        content=f"// {text}",
        source_file=origin.path,
        source_name=origin.name,
        line_number=line_number,
        synthetic=True,
    )


class Merger:
    """Inlines the files referenced by include/use directives.

    Features:
    - Recursive classification (directives inside referenced files are followed)
    - Idempotence (each file is classified at most once per run, so diamond
      and cyclic reference graphs terminate)
    - Section reconciliation (a duplicate customizer section is dropped in
      favour of the file that claimed the name first)
    - Silent skip on missing files, with a warning diagnostic
    """

    def __init__(
        self,
        context: MergeContext,
        resolver: ReferenceResolver | None = None,
        encoding: str = "utf-8",
    ):
        self.context = context
        self.resolver = resolver or ReferenceResolver()
        self.encoding = encoding
        self.classifier = Classifier(context, self)

    def resolve(
        self,
        reference: str,
        origin: SourceFile,
        kind: EntryKind = EntryKind.INCLUDE,
        line_number: int = 1,
    ) -> list[Entry] | None:
        """Resolve a directive and return the entries to splice in its place.

        Args:
            reference: Text between ``<`` and ``>`` of the directive
            origin: File holding the directive
            kind: INCLUDE or USE
            line_number: Line of the directive in the origin file

        Returns:
            Marker-wrapped entries of the target, an empty list if the target
            was already processed in this run, or None if it could not be
            located or read
        """
        path = self.resolver.resolve(reference, origin.path.parent)
        if path is None:
            self.context.report(
                DiagnosticKind.UNRESOLVED_REFERENCE,
                f"Cannot resolve {kind.value} <{reference}> in {origin.name}:{line_number}",
                path=origin.path,
                line=line_number,
            )
            return None

        if self.context.is_processed(path):
            logger.debug(f"Skipping {reference} from {origin.name}: already processed")
            return []

        if self.context.depth >= self.context.max_depth:
            self.context.report(
                DiagnosticKind.RECURSION_LIMIT,
                f"Reference chain deeper than {self.context.max_depth} at <{reference}> in {origin.name}",
                path=origin.path,
                line=line_number,
            )
            return None

        self.context.mark_processed(path)
        try:
            target = SourceFile.load(path, encoding=self.encoding, relative_to=self.context.base_dir)
        except (OSError, UnicodeDecodeError) as e:
            self.context.report(
                DiagnosticKind.UNREADABLE_FILE,
                f"Cannot read {path} referenced from {origin.name}:{line_number}: {e}",
                path=path,
            )
            return None

        claim_sections(target, self.context)

        self.context.depth += 1
        try:
            entries = self.classifier.classify(target)
        finally:
            self.context.depth -= 1

        sections, others = self._reconcile(entries, target)
        if kind == EntryKind.USE:
            others = [e for e in others if e.kind != EntryKind.STATEMENT]

        return [
            provenance_marker(f"begin content from {reference}", origin, line_number),
            *sections,
            *others,
            provenance_marker(f"end content from {reference}", origin, line_number),
        ]

    def _reconcile(self, entries: list[Entry], target: SourceFile) -> tuple[list[Entry], list[Entry]]:
        """Split entries into surviving customizer sections and everything else."""
        sections: list[Entry] = []
        others: list[Entry] = []
        for entry in entries:
            if entry.kind != EntryKind.CUSTOMIZER_SECTION:
                others.append(entry)
                continue
            name = entry.value or ""
            if self.context.owns_section(name, entry.source_file):
                sections.append(entry)
                continue
            owner = self.context.section_owners.get(name)
            self.context.report(
                DiagnosticKind.DUPLICATE_SECTION,
                f"Dropped duplicate customizer section [{name}] from {entry.source_name}:{entry.line_number}"
                + (f" (kept the one from {_display(owner, self.context.base_dir)})" if owner else ""),
                path=entry.source_file,
                line=entry.line_number,
            )
        logger.debug(f"Reconciled {target.name}: {len(sections)} sections kept")
        return sections, others


def _display(path: Path, base_dir: Path) -> str:
    try:
        return path.relative_to(base_dir).as_posix()
    except ValueError:
        return path.name
