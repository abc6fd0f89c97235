"""Essay coach: LLM critique overlaid on an editable essay."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "analysis",
    "cli",
    "editor",
    "llm",
    "models",
    "session",
]
