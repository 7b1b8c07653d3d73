"""Source flattening library for scad-flatten.

This library classifies OpenSCAD sources into typed entries, inlines the
files referenced by include/use directives, reconciles duplicate customizer
sections and renders one self-contained file.
"""

from .classifier import Classifier
from .context import MergeContext
from .flattener import FlattenResult
from .flattener import Flattener
from .flattener import OutputOverwritesSourceError
from .merger import Merger
from .models import Diagnostic
from .models import DiagnosticKind
from .models import Entry
from .models import EntryKind
from .models import SourceFile
from .resolver import ReferenceResolver
from .serializer import Layout
from .serializer import render

__all__ = [
    "Classifier",
    "Diagnostic",
    "DiagnosticKind",
    "Entry",
    "EntryKind",
    "FlattenResult",
    "Flattener",
    "Layout",
    "MergeContext",
    "Merger",
    "OutputOverwritesSourceError",
    "ReferenceResolver",
    "SourceFile",
    "render",
]
