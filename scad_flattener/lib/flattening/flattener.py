"""Flattening of one root file: classify, merge, reconcile and render."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .context import DEFAULT_MAX_DEPTH
from .context import MergeContext
from .merger import Merger
from .merger import claim_sections
from .models import Diagnostic
from .models import Entry
from .models import SourceFile
from .resolver import ReferenceResolver
from .serializer import Layout
from .serializer import render

logger = logging.getLogger(__name__)


class OutputOverwritesSourceError(ValueError):
    """Raised when an output file would replace one of the sources it was built from."""

    def __init__(self, target: Path):
        self.target = target
        super().__init__(f"Refusing to overwrite source file {target}; choose another output directory")


@dataclass
class FlattenResult:
    """Outcome of flattening one root file."""

    root: Path
    text: str
    entries: list[Entry]
    diagnostics: list[Diagnostic]
    files: list[Path]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_warning]


class Flattener:
    """Turns a root source file and everything it references into one text.

    Every call to ``classify`` or ``flatten`` starts a fresh MergeContext, so
    one instance can process a batch of root files independently.
    """

    def __init__(
        self,
        library_paths: list[Path] | None = None,
        layout: Layout = Layout.GROUPED,
        encoding: str = "utf-8",
        max_depth: int = DEFAULT_MAX_DEPTH,
        hide_free_variables: bool = True,
    ):
        self.resolver = ReferenceResolver(library_paths)
        self.layout = layout
        self.encoding = encoding
        self.max_depth = max_depth
        self.hide_free_variables = hide_free_variables

    def classify(self, path: Path) -> tuple[list[Entry], MergeContext]:
        """Classify a root file with all directives resolved.

        Raises:
            OSError: If the root file cannot be read
            UnicodeDecodeError: If the root file is not valid text
        """
        context = MergeContext(path, max_depth=self.max_depth)
        root = SourceFile.load(path, encoding=self.encoding, relative_to=context.base_dir)
        context.mark_processed(root.path)
        claim_sections(root, context)

        merger = Merger(context, self.resolver, encoding=self.encoding)
        entries = merger.classifier.classify(root)
        return entries, context

    def flatten(self, path: Path) -> FlattenResult:
        """Flatten a root file into self-contained text."""
        entries, context = self.classify(path)
        text = render(
            entries,
            context.root,
            self.layout,
            hide_free_variables=self.hide_free_variables,
        )
        logger.info(
            f"Flattened {context.root.name}: {len(context.processed)} files, "
            f"{len(entries)} entries, {len(context.warnings())} warnings",
            extra={"event": "flatten:complete"},
        )
        return FlattenResult(
            root=context.root,
            text=text,
            entries=entries,
            diagnostics=list(context.diagnostics),
            files=sorted(context.processed),
        )

    @staticmethod
    def write(result: FlattenResult, output_dir: Path) -> Path:
        """Write a result under ``output_dir`` using the root file's base name.

        Raises:
            OutputOverwritesSourceError: If the target is the root or one of its sources
        """
        target = output_dir / result.root.name
        if target.resolve() == result.root or target.resolve() in result.files:
            raise OutputOverwritesSourceError(target)
        output_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(result.text, encoding="utf-8")
        logger.debug(f"Wrote {target}")
        return target
