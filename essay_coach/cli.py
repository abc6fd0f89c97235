"""Command-line shell for the essay coach.

Reads commands line by line, so it works both interactively and with a
script piped on stdin.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Iterable

from essay_coach.config import SessionConfiguration
from essay_coach.editor import Run
from essay_coach.keys import resolve_control_char
from essay_coach.models import (
    Applicability,
    Correction,
    FeedbackCategory,
    RunKind,
    SuggestionSource,
    TaskVariant,
    ViewMode,
)
from essay_coach.session import Session, SuggestionView

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  show                   Print the essay (annotated in review mode)
  edit                   Replace the essay; finish input with a line containing only "."
  load PATH              Replace the essay with the contents of a file
  analyze                Send the essay to the examiner
  suggestions [SOURCE]   List suggestions (priority, vocabulary, tip) and corrections
  feedback [CATEGORY]    Show band score and per-criterion feedback
  apply ID [--quiet]     Apply a suggestion or correction (--quiet: no change highlight)
  undo | redo            Step through the edit history (Ctrl+Z / Ctrl+Y also work)
  mode edit|review       Switch view mode
  task 1|2               Choose IELTS Writing Task 1 or Task 2
  help                   Show this message
  quit                   Leave
"""

STATUS_LABELS = {
    Applicability.OPEN: "open",
    Applicability.RESOLVED: "applied",
    Applicability.INFORMATIONAL: "info",
}


def render_runs(runs: Iterable[Run]) -> str:
    """Render runs with inline markers for a plain terminal."""
    parts: list[str] = []
    for run in runs:
        if run.kind is RunKind.CORRECTION and run.correction is not None:
            parts.append(f"[[{run.text} -> {run.correction.replacement}]]")
        elif run.kind is RunKind.CHANGED:
            parts.append(f"{{+{run.text}+}}")
        else:
            parts.append(run.text)
    return "".join(parts)


def format_view(view: SuggestionView) -> str:
    item = view.item
    status = STATUS_LABELS[view.applicability]
    if isinstance(item, Correction):
        line = f"[{item.id}] ({status}) {item.kind.value}: {item.original!r} -> {item.replacement!r}"
        if item.explanation:
            line += f"\n      {item.explanation}"
        return line

    header = item.display_text
    if item.priority is not None:
        header = f"{item.priority.value.upper()} {header}"
    lines = [f"[{item.id}] ({status}) {header}"]
    if item.definition:
        lines.append(f"      {item.phonetic or ''} {item.part_of_speech or ''}: {item.definition}".rstrip())
    if item.detail_text:
        lines.append(f"      {item.detail_text}")
    if item.example_text:
        lines.append(f"      e.g. {item.example_text}")
    if item.target_span and item.replacement_span is not None:
        lines.append(f"      {item.target_span!r} -> {item.replacement_span!r}")
    return "\n".join(lines)


class Shell:
    """Line-oriented front end over a :class:`Session`."""

    END_OF_TEXT = "."

    def __init__(
        self,
        session: Session,
        *,
        out: Callable[[str], None] = print,
        analysis_timeout: float | None = None,
    ) -> None:
        self.session = session
        self._out = out
        self._analysis_timeout = analysis_timeout
        self._edit_buffer: list[str] | None = None

    @property
    def collecting(self) -> bool:
        return self._edit_buffer is not None

    def run(self, lines: Iterable[str]) -> None:
        for line in lines:
            if not self.handle(line.rstrip("\n")):
                break

    def handle(self, line: str) -> bool:
        """Process one input line. Returns ``False`` when the shell should exit."""
        if self._edit_buffer is not None:
            if line.strip() == self.END_OF_TEXT:
                self.session.set_document_text("\n".join(self._edit_buffer))
                self._edit_buffer = None
                self._out(f"Essay updated ({len(self.session.text)} characters).")
            else:
                self._edit_buffer.append(line)
            return True

        action = resolve_control_char(line)
        if action is not None:
            return self.handle(action)

        command, _, rest = line.strip().partition(" ")
        command = command.lower()
        rest = rest.strip()
        if not command:
            return True
        if command in ("quit", "exit"):
            return False

        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            self._out(f"Unknown command: {command} (try 'help')")
            return True
        handler(rest)
        return True

    # -- commands ------------------------------------------------------

    def _cmd_help(self, rest: str) -> None:
        self._out(HELP_TEXT)

    def _cmd_show(self, rest: str) -> None:
        self.session.poll_analysis()
        if self.session.state.mode is ViewMode.REVIEW:
            self._out(render_runs(self.session.runs()))
        else:
            self._out(self.session.text)

    def _cmd_edit(self, rest: str) -> None:
        self._edit_buffer = []
        self._out('Enter the essay; finish with a line containing only ".".')

    def _cmd_load(self, rest: str) -> None:
        if not rest:
            self._out("Usage: load PATH")
            return
        try:
            text = Path(rest).expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            self._out(f"Could not read {rest}: {exc}")
            return
        self.session.set_document_text(text)
        self._out(f"Loaded {len(text)} characters from {rest}.")

    def _cmd_analyze(self, rest: str) -> None:
        session = self.session
        if session.request_analysis() is None:
            self._out(session.state.error or "An analysis is already running.")
            return
        self._out(f"Analyzing ({session.state.task_variant.value})...")
        session.wait_for_analysis(self._analysis_timeout)
        if session.state.loading:
            self._out("Still waiting for the examiner; run 'analyze' again later.")
        elif session.state.error:
            self._out(session.state.error)
        else:
            self._print_summary()

    def _cmd_suggestions(self, rest: str) -> None:
        self.session.poll_analysis()
        if self.session.result is None:
            self._out("No analysis yet. Run 'analyze' first.")
            return
        source = None
        if rest:
            try:
                source = SuggestionSource(rest.lower())
            except ValueError:
                self._out(f"Unknown suggestion source: {rest}")
                return
        for view in self.session.suggestion_views(source):
            self._out(format_view(view))
        if source is None:
            for view in self.session.correction_views():
                self._out(format_view(view))

    def _cmd_feedback(self, rest: str) -> None:
        self.session.poll_analysis()
        result = self.session.result
        if result is None:
            self._out("No analysis yet. Run 'analyze' first.")
            return
        if rest:
            try:
                detail = self.session.select_category(rest)
            except ValueError as exc:
                self._out(str(exc))
                return
            if detail is not None:
                self._out(f"{detail.category.display_name}\n  {detail.summary}")
                for tip in detail.tips:
                    view = SuggestionView(tip, self.session.applicability_of(tip.id))
                    self._out(format_view(view))
            return
        self._print_summary()

    def _cmd_apply(self, rest: str) -> None:
        args = rest.split()
        quiet = "--quiet" in args
        ids = [a for a in args if a != "--quiet"]
        if len(ids) != 1:
            self._out("Usage: apply ID [--quiet]")
            return
        try:
            changed = self.session.apply_suggestion(ids[0], suppress_highlight=quiet)
        except KeyError:
            self._out(f"No suggestion with id {ids[0]}")
            return
        if changed:
            self._out(f"Applied {ids[0]}.")
        else:
            self._out(f"{ids[0]} has nothing left to apply.")

    def _cmd_undo(self, rest: str) -> None:
        self._out("Undone." if self.session.undo() else "Nothing to undo.")

    def _cmd_redo(self, rest: str) -> None:
        self._out("Redone." if self.session.redo() else "Nothing to redo.")

    def _cmd_mode(self, rest: str) -> None:
        try:
            self.session.switch_mode(rest.lower())
        except ValueError:
            self._out("Usage: mode edit|review")
            return
        self._out(f"Mode: {self.session.state.mode.value}")

    def _cmd_task(self, rest: str) -> None:
        try:
            self.session.set_task_variant(rest)
        except ValueError:
            self._out("Usage: task 1|2")
            return
        self._out(f"Task: {self.session.state.task_variant.value}")

    def _print_summary(self) -> None:
        result = self.session.result
        if result is None:
            return
        self._out(f"Band score: {result.band_score:g}")
        for category in FeedbackCategory:
            summary = result.feedback[category].summary
            self._out(f"  {category.display_name}: {summary}")
        if result.general_comment:
            self._out(result.general_comment)
        self._out(
            f"{len(result.suggestions)} suggestion(s), {len(result.corrections)} correction(s). "
            "Use 'suggestions' and 'show' to review."
        )


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Review an IELTS essay with an LLM examiner and apply its fixes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m essay_coach --file essay.txt
  python -m essay_coach --task "Task 1" --provider mistral < commands.txt

Environment Variables:
  ESSAY_COACH_TASK               Default task variant (default: Task 2)
  ESSAY_COACH_ANALYSIS_TIMEOUT   Seconds to wait for an analysis (default: 120)
  LLM_PRIMARY                    Primary LLM provider (default: gemini)
  LLM_FALLBACK                   Fallback providers (comma-separated)
  GEMINI_MIN_REQUEST_INTERVAL    Min seconds between Gemini requests (default: 0)
  GEMINI_MAX_RETRIES             Retries for 429 rate limit errors (default: 0)
        """,
    )
    parser.add_argument("--file", type=Path, help="Essay text file to start from")
    parser.add_argument("--task", help='Task variant: "Task 1" or "Task 2"')
    parser.add_argument(
        "--provider",
        help="Primary LLM provider (default: gemini or LLM_PRIMARY)",
    )
    parser.add_argument("--dotenv", type=Path, help="Path to .env file for API keys")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser.parse_args(args)


def build_session(args: argparse.Namespace, config: SessionConfiguration) -> Session:
    from essay_coach.analysis import EssayAnalyzer, get_system_prompt_text
    from essay_coach.llm.provider_registry import create_provider_chain
    from essay_coach.llm.service import LLMService

    provider_chain = create_provider_chain(
        system_prompt=get_system_prompt_text(),
        filter_json=True,
        primary=args.provider,
    )
    logger.info("Using LLM provider(s): %s", [p.name for p in provider_chain])

    initial_text = ""
    if args.file:
        initial_text = args.file.read_text(encoding="utf-8")

    return Session(
        EssayAnalyzer(LLMService(provider_chain)),
        initial_text=initial_text,
        task_variant=config.task_variant,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        from dotenv import load_dotenv

        if args.dotenv:
            load_dotenv(dotenv_path=str(args.dotenv), override=True)
        else:
            load_dotenv()

        config = SessionConfiguration.from_env()
        if args.task:
            config.task_variant = TaskVariant.parse(args.task)

        session = build_session(args, config)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.exception("Could not start the essay coach")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with session:
        shell = Shell(session, analysis_timeout=config.analysis_timeout)
        if sys.stdin.isatty():
            print(HELP_TEXT)
        try:
            shell.run(sys.stdin)
        except KeyboardInterrupt:
            print("\nInterrupted by user", file=sys.stderr)
            return 130
    return 0
