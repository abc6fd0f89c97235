from __future__ import annotations

import logging

from .history import DocumentStore

logger = logging.getLogger(__name__)


def replace_first(text: str, target: str, replacement: str) -> str | None:
    """Replace the first occurrence of ``target``; ``None`` if it is absent.

    An empty ``target`` never matches.
    """
    if not target:
        return None
    index = text.find(target)
    if index == -1:
        return None
    return text[:index] + replacement + text[index + len(target) :]


class EditApplier:
    """Applies a single suggested substitution to the document store.

    A target that is no longer present (already applied, or edited away since
    the analysis ran) is a silent no-op. Only the first occurrence of a
    repeated target is replaced.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def apply(
        self,
        target: str,
        replacement: str,
        suppress_highlight: bool = False,
    ) -> bool:
        """Return ``True`` when the document changed."""
        new_text = replace_first(self._store.text, target, replacement)
        if new_text is None:
            logger.debug("Target %r not found; nothing applied", target)
            return False

        self._store.set_text(new_text, None if suppress_highlight else replacement)
        logger.debug("Replaced %r with %r", target, replacement)
        return True
