"""Undo/redo keyboard bindings.

Ctrl+Z (Cmd+Z on macOS) undoes and Ctrl+Y (Cmd+Y) redoes. The bindings
apply document-wide: whoever receives the key event should suppress its
default handling when :func:`resolve` returns an action.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

KeyAction = Literal["undo", "redo"]

BINDINGS: dict[str, KeyAction] = {
    "z": "undo",
    "y": "redo",
}

# Control characters a terminal delivers for Ctrl+Z / Ctrl+Y
CONTROL_CHARS: dict[str, KeyAction] = {
    "\x1a": "undo",
    "\x19": "redo",
}


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False


def resolve(event: KeyEvent) -> KeyAction | None:
    """Return the editor action bound to ``event``, if any."""
    if not (event.ctrl or event.meta):
        return None
    return BINDINGS.get(event.key.lower())


def resolve_control_char(text: str) -> KeyAction | None:
    """Map a raw terminal control character to an action."""
    return CONTROL_CHARS.get(text.strip(" \t\r\n"))
