"""Core critique types matched against the live essay.

``Correction`` and ``Suggestion`` are immutable leaves owned by an
``AnalysisResult``. They are never edited after analysis; the editor only
asks whether their target spans still occur in the current document.
"""

from __future__ import annotations

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .analysis import AnalysisResponse, TipPayload
from .enums import (
    CorrectionKind,
    FeedbackCategory,
    Priority,
    SuggestionSource,
    TaskVariant,
)


class Correction(BaseModel):
    """A specific original -> replacement fix; always actionable."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    original: str
    replacement: str
    kind: CorrectionKind
    explanation: str = ""

    @property
    def target_span(self) -> str:
        return self.original

    @property
    def replacement_span(self) -> str:
        return self.replacement


class Suggestion(BaseModel):
    """Any critique item: prioritized suggestion, vocabulary item or category tip.

    A suggestion is actionable only when it carries a non-empty ``target_span``
    and a ``replacement_span``; otherwise it is informational.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    source: SuggestionSource
    display_text: str
    detail_text: str = ""
    example_text: str | None = None
    target_span: str | None = None
    replacement_span: str | None = None
    priority: Priority | None = None
    category: str | None = None

    # vocabulary enrichment only
    phonetic: str | None = None
    part_of_speech: str | None = None
    definition: str | None = None

    @property
    def is_actionable(self) -> bool:
        return bool(self.target_span) and self.replacement_span is not None


class CategoryFeedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: FeedbackCategory
    summary: str = ""
    tips: Tuple[Suggestion, ...] = ()


class AnalysisResult(BaseModel):
    """One complete analysis snapshot; replaces any prior result wholesale."""

    model_config = ConfigDict(frozen=True)

    band_score: float
    task_variant: TaskVariant = TaskVariant.TASK2
    suggestions: Tuple[Suggestion, ...] = ()
    corrections: Tuple[Correction, ...] = ()
    feedback: Dict[FeedbackCategory, CategoryFeedback] = Field(
        default_factory=dict, validate_default=True
    )
    general_comment: str = ""

    @field_validator("feedback", mode="after")
    def _fill_categories(
        cls, value: Dict[FeedbackCategory, CategoryFeedback]
    ) -> Dict[FeedbackCategory, CategoryFeedback]:
        # Always expose all four criteria, in marking order
        return {
            category: value.get(category) or CategoryFeedback(category=category)
            for category in FeedbackCategory
        }

    def suggestions_from(self, source: SuggestionSource) -> list[Suggestion]:
        return [s for s in self.suggestions if s.source == source]

    @classmethod
    def from_response(
        cls,
        response: AnalysisResponse,
        task_variant: TaskVariant = TaskVariant.TASK2,
    ) -> "AnalysisResult":
        """Map a validated examiner response onto core types.

        Ids are positional within this result (``priority-0``,
        ``vocabulary-3``, ``tip-lexical_resource-1``, ``correction-2``) and are
        not correlated with any earlier analysis.
        """
        suggestions: list[Suggestion] = []

        for index, item in enumerate(response.prioritized_suggestions):
            suggestions.append(
                Suggestion(
                    id=f"priority-{index}",
                    source=SuggestionSource.PRIORITY,
                    display_text=item.issue,
                    detail_text=item.suggestion,
                    example_text=item.example_fix,
                    target_span=item.apply_to_text,
                    replacement_span=item.replacement_text,
                    priority=item.priority,
                    category=item.category or None,
                )
            )

        for index, vocab in enumerate(response.enrichment):
            suggestions.append(
                Suggestion(
                    id=f"vocabulary-{index}",
                    source=SuggestionSource.VOCABULARY,
                    display_text=vocab.word,
                    detail_text=vocab.context_in_essay,
                    example_text=vocab.example_sentence or None,
                    target_span=vocab.target_text,
                    replacement_span=vocab.replacement_text,
                    category="Lexical",
                    phonetic=vocab.phonetic or None,
                    part_of_speech=vocab.type or None,
                    definition=vocab.definition or None,
                )
            )

        feedback: Dict[FeedbackCategory, CategoryFeedback] = {}
        for category in FeedbackCategory:
            detail = getattr(response.feedback, category.value)
            tips = tuple(
                _tip_suggestion(category, index, tip)
                for index, tip in enumerate(detail.tips)
                if tip.tip
            )
            feedback[category] = CategoryFeedback(
                category=category, summary=detail.summary, tips=tips
            )
            suggestions.extend(tips)

        corrections = tuple(
            Correction(
                id=f"correction-{index}",
                original=corr.original,
                replacement=corr.replacement,
                kind=corr.type,
                explanation=corr.explanation,
            )
            for index, corr in enumerate(response.corrections)
        )

        return cls(
            band_score=response.band_score,
            task_variant=task_variant,
            suggestions=tuple(suggestions),
            corrections=corrections,
            feedback=feedback,
            general_comment=response.general_comment,
        )


def _tip_suggestion(category: FeedbackCategory, index: int, tip: TipPayload) -> Suggestion:
    return Suggestion(
        id=f"tip-{category.value}-{index}",
        source=SuggestionSource.TIP,
        display_text=tip.tip,
        example_text=tip.example_implementation,
        target_span=tip.apply_to_text,
        replacement_span=tip.replacement_text,
        category=category.display_name,
    )
