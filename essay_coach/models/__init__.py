"""Public model exports for the project.

Keep the :mod:`essay_coach` namespace clean: tests and other modules should
import ``from essay_coach.models import Correction, Suggestion``.
"""

from __future__ import annotations

from .analysis import AnalysisResponse
from .enums import (
    Applicability,
    CorrectionKind,
    FeedbackCategory,
    Priority,
    RunKind,
    SuggestionSource,
    TaskVariant,
    ViewMode,
)
from .suggestion import AnalysisResult, CategoryFeedback, Correction, Suggestion

__all__ = [
    "AnalysisResponse",
    "AnalysisResult",
    "Applicability",
    "CategoryFeedback",
    "Correction",
    "CorrectionKind",
    "FeedbackCategory",
    "Priority",
    "RunKind",
    "Suggestion",
    "SuggestionSource",
    "TaskVariant",
    "ViewMode",
]
