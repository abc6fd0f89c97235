"""Enumerations shared by the analysis models and the editing core.

String values match the wording used in the examiner prompt so they can be
serialised straight back into JSON.
"""

from __future__ import annotations

from enum import Enum


class CorrectionKind(str, Enum):
    """Kinds of inline correction the examiner may return."""

    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"
    COHERENCE = "coherence"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class TaskVariant(str, Enum):
    """IELTS writing task the essay answers."""

    TASK1 = "Task 1"
    TASK2 = "Task 2"

    @classmethod
    def parse(cls, value: object) -> "TaskVariant":
        """Accept "Task 1", "task1", "1" and friends."""
        if isinstance(value, TaskVariant):
            return value
        text = str(value or "").strip().lower().replace(" ", "")
        if text in ("1", "task1"):
            return cls.TASK1
        if text in ("2", "task2"):
            return cls.TASK2
        raise ValueError(f"Unknown task variant: {value!r}")


class FeedbackCategory(str, Enum):
    """The four fixed IELTS marking criteria, in display order."""

    TASK_ACHIEVEMENT = "task_achievement"
    COHERENCE_COHESION = "coherence_cohesion"
    LEXICAL_RESOURCE = "lexical_resource"
    GRAMMATICAL_RANGE_ACCURACY = "grammatical_range_accuracy"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]

    @classmethod
    def parse(cls, value: object) -> "FeedbackCategory":
        """Accept enum values, display names and short prefixes like ``lexical``."""
        if isinstance(value, FeedbackCategory):
            return value
        text = str(value or "").strip().lower().replace("&", "").replace(" ", "_")
        text = "_".join(part for part in text.split("_") if part)
        for member in cls:
            if member.value == text or member.value.startswith(text) and text:
                return member
        raise ValueError(f"Unknown feedback category: {value!r}")


_CATEGORY_NAMES = {
    FeedbackCategory.TASK_ACHIEVEMENT: "Task Achievement",
    FeedbackCategory.COHERENCE_COHESION: "Coherence & Cohesion",
    FeedbackCategory.LEXICAL_RESOURCE: "Lexical Resource",
    FeedbackCategory.GRAMMATICAL_RANGE_ACCURACY: "Grammatical Range & Accuracy",
}


class SuggestionSource(str, Enum):
    """Which part of the analysis a suggestion came from."""

    PRIORITY = "priority"
    VOCABULARY = "vocabulary"
    TIP = "tip"


class Applicability(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    INFORMATIONAL = "informational"


class ViewMode(str, Enum):
    EDIT = "edit"
    REVIEW = "review"


class RunKind(str, Enum):
    PLAIN = "plain"
    CORRECTION = "correction"
    CHANGED = "changed"
