from __future__ import annotations

import logging

from essay_coach.models import AnalysisResult, Correction, Suggestion

logger = logging.getLogger(__name__)


class SuggestionRegistry:
    """Holds the suggestions and corrections of the current analysis.

    Results are swapped atomically; nothing from a previous analysis survives
    a ``replace_all``. ``generation`` increases on every swap so callers can tell
    that any ids they were holding refer to a discarded result.
    """

    def __init__(self) -> None:
        self._result: AnalysisResult | None = None
        self._index: dict[str, Suggestion | Correction] = {}
        self.generation = 0

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    def replace_all(self, result: AnalysisResult) -> None:
        index: dict[str, Suggestion | Correction] = {}
        for item in (*result.suggestions, *result.corrections):
            index[item.id] = item

        self._result = result
        self._index = index
        self.generation += 1
        logger.info(
            "Installed analysis %d: band %.1f, %d suggestion(s), %d correction(s)",
            self.generation,
            result.band_score,
            len(result.suggestions),
            len(result.corrections),
        )

    def clear(self) -> None:
        self._result = None
        self._index = {}
        self.generation += 1

    def all(self) -> tuple[tuple[Suggestion, ...], tuple[Correction, ...]]:
        """Return ``(suggestions, corrections)`` for the current result."""
        if self._result is None:
            return (), ()
        return self._result.suggestions, self._result.corrections

    @property
    def suggestions(self) -> tuple[Suggestion, ...]:
        return self.all()[0]

    @property
    def corrections(self) -> tuple[Correction, ...]:
        return self.all()[1]

    def get(self, item_id: str) -> Suggestion | Correction:
        """Look up a suggestion or correction by id; raises ``KeyError``."""
        try:
            return self._index[item_id]
        except KeyError:
            raise KeyError(f"Unknown suggestion id: {item_id!r}") from None

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._index
