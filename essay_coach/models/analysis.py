"""Pydantic models for the examiner's raw JSON response.

These mirror the JSON contract in ``prompt/promptFiles/essay_examiner_output_format.md``
and are the only place where untrusted model output is validated. Display text
is trimmed, but text spans (``original``, ``apply_to_text`` and friends) are
kept verbatim because they are matched against the essay character for
character. ``null`` becomes empty or ``None`` as appropriate, unknown enum
wording is coerced to a sensible default, and corrections without an original
are dropped individually. Anything structurally wrong (missing band score,
non-list collections) raises ``ValidationError``.
"""

from __future__ import annotations

import logging
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import CorrectionKind, Priority

logger = logging.getLogger(__name__)


def _clean(value: object) -> str:
    return str(value or "").strip()


def _span(value: object) -> str | None:
    """Keep a span exactly as sent; ``None`` stays ``None``.

    Spans are searched for and substituted in the essay verbatim, so leading
    or trailing whitespace is part of the edit (e.g. deleting " very").
    """
    if value is None:
        return None
    return str(value)


class _ResponseModel(BaseModel):
    # The examiner occasionally adds commentary fields; ignore rather than fail.
    model_config = ConfigDict(extra="ignore")


class CorrectionPayload(_ResponseModel):
    original: str
    replacement: str = ""
    type: CorrectionKind = CorrectionKind.GRAMMAR
    explanation: str = ""

    @field_validator("explanation", mode="before")
    def _strip_explanation(cls, value: object) -> str:
        return _clean(value)

    @field_validator("original", "replacement", mode="before")
    def _keep_spans(cls, value: object) -> str:
        # An empty replacement is a legitimate deletion.
        return _span(value) or ""

    @field_validator("type", mode="before")
    def _normalise_kind(cls, value: object) -> CorrectionKind:
        text = _clean(value).lower()
        if text in CorrectionKind.all_values():
            return CorrectionKind(text)
        # e.g. "punctuation" or "spelling": surface them as grammar fixes
        return CorrectionKind.GRAMMAR

    @model_validator(mode="after")
    def final_checks(self) -> "CorrectionPayload":
        if not self.original:
            raise ValueError("correction original must not be empty")
        return self


class PrioritizedSuggestionPayload(_ResponseModel):
    priority: Priority = Priority.MEDIUM
    issue: str
    suggestion: str = ""
    example_fix: str | None = None
    apply_to_text: str | None = None
    replacement_text: str | None = None
    category: str = ""

    @field_validator("issue", "suggestion", "category", mode="before")
    def _strip_strings(cls, value: object) -> str:
        return _clean(value)

    @field_validator("example_fix", mode="before")
    def _strip_example(cls, value: object) -> str | None:
        return _clean(value) or None

    @field_validator("apply_to_text", "replacement_text", mode="before")
    def _strip_spans(cls, value: object) -> str | None:
        return _span(value)

    @field_validator("priority", mode="before")
    def _normalise_priority(cls, value: object) -> Priority:
        text = _clean(value).lower()
        if text in Priority.all_values():
            return Priority(text)
        return Priority.MEDIUM

    @model_validator(mode="after")
    def final_checks(self) -> "PrioritizedSuggestionPayload":
        if not self.issue:
            raise ValueError("prioritized suggestion issue must not be empty")
        return self


class VocabularyItemPayload(_ResponseModel):
    word: str
    phonetic: str = ""
    type: str = ""
    definition: str = ""
    example_sentence: str = ""
    context_in_essay: str = ""
    target_text: str | None = None
    replacement_text: str | None = None

    @field_validator(
        "word",
        "phonetic",
        "type",
        "definition",
        "example_sentence",
        "context_in_essay",
        mode="before",
    )
    def _strip_strings(cls, value: object) -> str:
        return _clean(value)

    @field_validator("target_text", "replacement_text", mode="before")
    def _strip_spans(cls, value: object) -> str | None:
        return _span(value)

    @model_validator(mode="after")
    def final_checks(self) -> "VocabularyItemPayload":
        if not self.word:
            raise ValueError("vocabulary item word must not be empty")
        return self


class TipPayload(_ResponseModel):
    tip: str
    example_implementation: str | None = None
    apply_to_text: str | None = None
    replacement_text: str | None = None

    @field_validator("tip", mode="before")
    def _strip_tip(cls, value: object) -> str:
        return _clean(value)

    @field_validator("example_implementation", mode="before")
    def _strip_example(cls, value: object) -> str | None:
        return _clean(value) or None

    @field_validator("apply_to_text", "replacement_text", mode="before")
    def _strip_spans(cls, value: object) -> str | None:
        return _span(value)


class FeedbackDetailPayload(_ResponseModel):
    summary: str = ""
    tips: List[TipPayload] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    def _strip_summary(cls, value: object) -> str:
        return _clean(value)

    @field_validator("tips", mode="before")
    def _normalise_tips(cls, value: object) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            # Some responses send bare strings instead of tip objects
            return [{"tip": item} if isinstance(item, str) else item for item in value]
        return value


class FeedbackPayload(_ResponseModel):
    task_achievement: FeedbackDetailPayload = Field(default_factory=FeedbackDetailPayload)
    coherence_cohesion: FeedbackDetailPayload = Field(default_factory=FeedbackDetailPayload)
    lexical_resource: FeedbackDetailPayload = Field(default_factory=FeedbackDetailPayload)
    grammatical_range_accuracy: FeedbackDetailPayload = Field(
        default_factory=FeedbackDetailPayload
    )


class AnalysisResponse(_ResponseModel):
    """Top-level examiner response."""

    band_score: float = Field(ge=0, le=9)
    prioritized_suggestions: List[PrioritizedSuggestionPayload] = Field(
        default_factory=list
    )
    enrichment: List[VocabularyItemPayload] = Field(default_factory=list)
    feedback: FeedbackPayload = Field(default_factory=FeedbackPayload)
    corrections: List[CorrectionPayload] = Field(default_factory=list)
    general_comment: str = ""

    @field_validator(
        "prioritized_suggestions", "enrichment", "corrections", mode="before"
    )
    def _none_to_list(cls, value: object) -> Any:
        return [] if value is None else value

    @field_validator("corrections", mode="before")
    def _drop_empty_corrections(cls, value: object) -> Any:
        # A correction with nothing to search for is unusable on its own; drop
        # it rather than discard the whole analysis.
        if not isinstance(value, list):
            return value
        kept = [
            item
            for item in value
            if not isinstance(item, dict) or item.get("original") not in (None, "")
        ]
        if len(kept) != len(value):
            logger.warning(
                "Dropped %d correction(s) without an original span", len(value) - len(kept)
            )
        return kept

    @field_validator("feedback", mode="before")
    def _none_to_feedback(cls, value: object) -> Any:
        return {} if value is None else value

    @field_validator("general_comment", mode="before")
    def _strip_comment(cls, value: object) -> str:
        return _clean(value)
