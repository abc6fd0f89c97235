"""Interactive editing session: the controls a UI shell drives.

All state lives in one :class:`Session`: the document history, the current
analysis, and an explicit :class:`AppState` for what would otherwise be UI
globals (view mode, tooltip, selected criterion, loading/error flags).

Only the thread that owns the session mutates it. The examiner call runs on a
single background worker; its future is drained by :meth:`Session.poll_analysis`
or :meth:`Session.wait_for_analysis` on the owning thread, and also by the next
:meth:`Session.request_analysis`. At most one analysis is in flight. There is
no cancellation: if the essay is edited while a request is outstanding, the
result still installs when it arrives, and any suggestions whose targets were
edited away simply show as resolved.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Protocol

from essay_coach.editor import (
    DocumentStore,
    EditApplier,
    Run,
    SuggestionRegistry,
    annotate,
    applicability,
)
from essay_coach.errors import EssayCoachError, InputError, TransportError
from essay_coach.keys import KeyEvent, resolve
from essay_coach.models import (
    AnalysisResult,
    Applicability,
    CategoryFeedback,
    Correction,
    FeedbackCategory,
    Suggestion,
    SuggestionSource,
    TaskVariant,
    ViewMode,
)

logger = logging.getLogger(__name__)


class Analyzer(Protocol):
    def analyze(self, essay: str, task_variant: TaskVariant) -> AnalysisResult: ...


@dataclass(frozen=True)
class Tooltip:
    """Hover details for a correction highlight."""

    replacement: str
    explanation: str
    kind: str


@dataclass
class AppState:
    mode: ViewMode = ViewMode.EDIT
    task_variant: TaskVariant = TaskVariant.TASK2
    loading: bool = False
    error: str | None = None
    tooltip: Tooltip | None = None
    selected_category: FeedbackCategory | None = None


@dataclass(frozen=True)
class SuggestionView:
    item: Suggestion | Correction
    applicability: Applicability

    @property
    def can_apply(self) -> bool:
        return self.applicability is Applicability.OPEN

    @property
    def is_applied(self) -> bool:
        return self.applicability is Applicability.RESOLVED


class Session:
    def __init__(
        self,
        analyzer: Analyzer,
        *,
        initial_text: str = "",
        task_variant: TaskVariant = TaskVariant.TASK2,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._analyzer = analyzer
        self.store = DocumentStore(initial_text)
        self.registry = SuggestionRegistry()
        self.applier = EditApplier(self.store)
        self.state = AppState(task_variant=task_variant)

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="essay-analysis"
        )
        self._pending: Future[AnalysisResult] | None = None

    # -- document ------------------------------------------------------

    @property
    def text(self) -> str:
        return self.store.text

    def set_document_text(self, text: str) -> None:
        self.store.set_text(text)
        self.state.tooltip = None

    def undo(self) -> bool:
        self.state.tooltip = None
        return self.store.undo()

    def redo(self) -> bool:
        self.state.tooltip = None
        return self.store.redo()

    def handle_key(self, event: KeyEvent) -> bool:
        """Run the undo/redo binding for ``event``.

        Returns ``True`` when the event was consumed and its default
        behaviour should be suppressed.
        """
        action = resolve(event)
        if action == "undo":
            self.undo()
        elif action == "redo":
            self.redo()
        else:
            return False
        return True

    # -- analysis ------------------------------------------------------

    @property
    def result(self) -> AnalysisResult | None:
        return self.registry.result

    def set_task_variant(self, variant: TaskVariant | str) -> None:
        self.state.task_variant = TaskVariant.parse(variant)

    def request_analysis(self) -> Future[AnalysisResult] | None:
        """Start an analysis of the current text.

        Returns ``None`` without sending anything when the essay is blank
        (``state.error`` is set) or a request is already in flight.
        """
        # Collect a request that finished after its caller stopped waiting
        self.poll_analysis()

        text = self.store.text
        if not text.strip():
            self.state.error = InputError.user_message
            return None
        if self.state.loading:
            logger.debug("Analysis already in flight; ignoring request")
            return None

        self.state.error = None
        self.state.loading = True
        self._pending = self._executor.submit(
            self._analyzer.analyze, text, self.state.task_variant
        )
        return self._pending

    def poll_analysis(self) -> bool:
        """Install a finished analysis, if any. Returns ``True`` when one finished."""
        future = self._pending
        if future is None or not future.done():
            return False

        self._pending = None
        self.state.loading = False
        try:
            result = future.result()
        except EssayCoachError as exc:
            logger.warning("Analysis failed: %s", exc)
            self.state.error = exc.user_message
            return True
        except Exception:
            logger.exception("Unexpected analysis failure")
            self.state.error = TransportError.user_message
            return True

        self.registry.replace_all(result)
        self.state.mode = ViewMode.REVIEW
        self.state.tooltip = None
        return True

    def wait_for_analysis(self, timeout: float | None = None) -> bool:
        """Block until the in-flight analysis finishes, then install it."""
        if self._pending is None:
            return False
        wait([self._pending], timeout=timeout)
        return self.poll_analysis()

    # -- suggestions ---------------------------------------------------

    def applicability_of(self, item_id: str) -> Applicability:
        return applicability(self.store.text, self.registry.get(item_id))

    def suggestion_views(
        self, source: SuggestionSource | None = None
    ) -> list[SuggestionView]:
        text = self.store.text
        return [
            SuggestionView(item, applicability(text, item))
            for item in self.registry.suggestions
            if source is None or item.source == source
        ]

    def correction_views(self) -> list[SuggestionView]:
        text = self.store.text
        return [
            SuggestionView(item, applicability(text, item))
            for item in self.registry.corrections
        ]

    def apply_suggestion(self, item_id: str, *, suppress_highlight: bool = False) -> bool:
        """Apply a suggestion or correction by id. Raises ``KeyError`` for unknown ids.

        Informational suggestions and already-resolved targets leave the
        document untouched. Returns ``True`` when the essay changed.
        """
        item = self.registry.get(item_id)
        if applicability(self.store.text, item) is Applicability.INFORMATIONAL:
            return False
        if isinstance(item, Correction):
            target, replacement = item.original, item.replacement
        else:
            target, replacement = item.target_span or "", item.replacement_span or ""

        changed = self.applier.apply(target, replacement, suppress_highlight)
        self.state.mode = ViewMode.REVIEW
        self.state.selected_category = None
        self.state.tooltip = None
        return changed

    def apply_correction(self, run: Run, *, suppress_highlight: bool = False) -> bool:
        """Click handler for a correction highlight."""
        if run.correction is None:
            return False
        return self.apply_suggestion(
            run.correction.id, suppress_highlight=suppress_highlight
        )

    # -- view state ----------------------------------------------------

    def runs(self) -> list[Run]:
        """Annotated partition of the current text."""
        return annotate(
            self.store.text, self.registry.corrections, self.store.last_changed
        )

    def switch_mode(self, mode: ViewMode | str) -> None:
        self.state.mode = ViewMode(mode)
        self.state.tooltip = None

    def hover(self, run: Run) -> Tooltip | None:
        details = run.hover()
        self.state.tooltip = Tooltip(**details) if details else None
        return self.state.tooltip

    def clear_tooltip(self) -> None:
        self.state.tooltip = None

    def select_category(self, category: FeedbackCategory | str) -> CategoryFeedback | None:
        self.state.selected_category = FeedbackCategory.parse(category)
        return self.feedback(self.state.selected_category)

    def close_category(self) -> None:
        self.state.selected_category = None

    def feedback(self, category: FeedbackCategory) -> CategoryFeedback | None:
        if self.result is None:
            return None
        return self.result.feedback.get(category)

    # -- lifecycle -----------------------------------------------------

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
