"""Partition the essay into plain and highlighted runs.

The partition is recomputed from scratch on every render from the current
text, the correction list and the last-changed span. Concatenating the runs
in order always yields the input document exactly.

Corrections are processed in the order the examiner returned them. Each one
claims every non-overlapping occurrence of its ``original`` that still lies
inside a plain run; text already claimed by an earlier correction is never
re-split, so when two originals overlap the earlier correction wins. After
all corrections, the first plain-run occurrence of the last-changed span (if
any) becomes a ``changed`` run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from essay_coach.models import Correction, RunKind


@dataclass(frozen=True)
class Run:
    kind: RunKind
    text: str
    correction: Correction | None = None

    @property
    def is_highlight(self) -> bool:
        return self.kind is not RunKind.PLAIN

    def hover(self) -> dict[str, str] | None:
        """Tooltip details for a correction run; ``None`` for other runs."""
        if self.correction is None:
            return None
        return {
            "replacement": self.correction.replacement,
            "explanation": self.correction.explanation,
            "kind": self.correction.kind.value,
        }


def _plain(text: str) -> list[Run]:
    return [Run(RunKind.PLAIN, text)] if text else []


def _split_all(run: Run, correction: Correction) -> list[Run]:
    """Split a plain run on every non-overlapping occurrence of the correction."""
    needle = correction.original
    out: list[Run] = []
    text = run.text
    start = 0
    while True:
        hit = text.find(needle, start)
        if hit == -1:
            break
        out.extend(_plain(text[start:hit]))
        out.append(Run(RunKind.CORRECTION, needle, correction))
        start = hit + len(needle)
    if not out:
        return [run]
    out.extend(_plain(text[start:]))
    return out


def _mark_changed(runs: list[Run], changed: str) -> list[Run]:
    for index, run in enumerate(runs):
        if run.kind is not RunKind.PLAIN:
            continue
        hit = run.text.find(changed)
        if hit == -1:
            continue
        pieces = [
            *_plain(run.text[:hit]),
            Run(RunKind.CHANGED, changed),
            *_plain(run.text[hit + len(changed) :]),
        ]
        return runs[:index] + pieces + runs[index + 1 :]
    return runs


def annotate(
    document: str,
    corrections: Sequence[Correction],
    last_changed: str | None = None,
) -> list[Run]:
    """Return the run partition of ``document``.

    Deterministic for a given document, correction order and last-changed
    span. An empty document yields an empty list.
    """
    runs = _plain(document)

    for correction in corrections:
        if not correction.original:
            continue
        next_runs: list[Run] = []
        for run in runs:
            if run.kind is RunKind.PLAIN:
                next_runs.extend(_split_all(run, correction))
            else:
                next_runs.append(run)
        runs = next_runs

    if last_changed:
        runs = _mark_changed(runs, last_changed)

    return runs


def render_plain(runs: Iterable[Run]) -> str:
    """Concatenate runs back into document text."""
    return "".join(run.text for run in runs)
