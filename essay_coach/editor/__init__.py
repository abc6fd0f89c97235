"""Text-patching and annotation engine."""

from .annotator import Run, annotate, render_plain
from .applicability import applicability, is_resolved, summarize
from .applier import EditApplier, replace_first
from .history import DocumentStore
from .registry import SuggestionRegistry

__all__ = [
    "DocumentStore",
    "EditApplier",
    "Run",
    "SuggestionRegistry",
    "annotate",
    "applicability",
    "is_resolved",
    "render_plain",
    "replace_first",
    "summarize",
]
