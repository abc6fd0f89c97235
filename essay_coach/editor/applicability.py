"""Derive whether a suggestion can still be applied to the current essay.

Nothing here is cached: callers re-evaluate after every document change.
"""

from __future__ import annotations

from typing import Iterable

from essay_coach.models import Applicability, Correction, Suggestion


def _spans(item: Suggestion | Correction) -> tuple[str | None, str | None]:
    if isinstance(item, Correction):
        return item.original, item.replacement
    return item.target_span, item.replacement_span


def applicability(document: str, item: Suggestion | Correction) -> Applicability:
    """Classify ``item`` against ``document``.

    - informational: no target span, an empty target span, or no replacement
    - resolved: the target span no longer occurs in the document
    - open: the target span still occurs
    """
    target, replacement = _spans(item)
    # An empty target is a substring of everything, so it is never actionable.
    if not target or replacement is None:
        return Applicability.INFORMATIONAL
    if target in document:
        return Applicability.OPEN
    return Applicability.RESOLVED


def is_resolved(document: str, item: Suggestion | Correction) -> bool:
    return applicability(document, item) is Applicability.RESOLVED


def summarize(
    document: str, items: Iterable[Suggestion | Correction]
) -> dict[str, Applicability]:
    """Return ``{item.id: Applicability}`` for every item, in input order."""
    return {item.id: applicability(document, item) for item in items}
