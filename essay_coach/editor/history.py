"""Linear document history with undo/redo.

The store keeps every committed version of the essay as an immutable string
snapshot plus a cursor into that list. Committing while the cursor is behind
the end discards the redo tail first, so history never branches.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class DocumentStore:
    """Owns the current essay text and its undo/redo history.

    Invariant: ``0 <= cursor < len(snapshots)`` at all times.
    """

    def __init__(self, initial_text: str = "") -> None:
        self._snapshots: list[str] = [initial_text]
        self._cursor = 0
        self._last_changed: str | None = None

    @property
    def text(self) -> str:
        return self._snapshots[self._cursor]

    def current(self) -> str:
        """Return the text at the history cursor."""
        return self.text

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> tuple[str, ...]:
        return tuple(self._snapshots)

    @property
    def last_changed(self) -> str | None:
        """Replacement text to highlight transiently, if the last commit set one."""
        return self._last_changed

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def set_text(self, new_text: str, changed_span: str | None = None) -> None:
        """Commit ``new_text`` as a new snapshot after the cursor.

        Any snapshots after the cursor become unreachable. ``changed_span``
        (or ``None``) replaces the transient highlight record.
        """
        discarded = len(self._snapshots) - self._cursor - 1
        del self._snapshots[self._cursor + 1 :]
        self._snapshots.append(new_text)
        self._cursor = len(self._snapshots) - 1
        self._last_changed = changed_span
        logger.debug(
            "Committed snapshot %d (%d chars, %d redo entries discarded)",
            self._cursor,
            len(new_text),
            discarded,
        )

    def undo(self) -> bool:
        """Step back one snapshot. Returns ``False`` when already at the start."""
        if not self.can_undo:
            return False
        self._cursor -= 1
        self._last_changed = None
        logger.debug("Undo -> snapshot %d", self._cursor)
        return True

    def redo(self) -> bool:
        """Step forward one snapshot. Returns ``False`` when already at the end."""
        if not self.can_redo:
            return False
        self._cursor += 1
        self._last_changed = None
        logger.debug("Redo -> snapshot %d", self._cursor)
        return True

    def __len__(self) -> int:
        return len(self._snapshots)
