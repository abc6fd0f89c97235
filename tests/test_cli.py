from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from essay_coach.cli import Shell, build_session, parse_args, render_runs
from essay_coach.config import SessionConfiguration
from essay_coach.models import ViewMode
from essay_coach.session import Session
from tests.analysis_payloads import ESSAY, FakeAnalyzer, failing_analyzer


class _Output(list):
    def __call__(self, text: str) -> None:
        self.append(text)

    @property
    def text(self) -> str:
        return "\n".join(self)


def _shell(analyzer: FakeAnalyzer | None = None, text: str = ESSAY) -> tuple[Shell, _Output]:
    out = _Output()
    session = Session(analyzer or FakeAnalyzer(), initial_text=text)
    return Shell(session, out=out, analysis_timeout=5), out


def test_parse_args_defaults() -> None:
    args = parse_args([])

    assert args.file is None
    assert args.task is None
    assert args.provider is None
    assert args.log_level == "WARNING"


def test_parse_args_options(tmp_path: Path) -> None:
    essay = tmp_path / "essay.txt"

    args = parse_args(["--file", str(essay), "--task", "Task 1", "--provider", "mistral"])

    assert args.file == essay
    assert args.task == "Task 1"
    assert args.provider == "mistral"


def test_analyze_prints_summary() -> None:
    shell, out = _shell()

    assert shell.handle("analyze")

    assert out[0] == "Analyzing (Task 2)..."
    assert "Band score: 5.5" in out.text
    assert "Lexical Resource: Limited range." in out.text
    assert "5 suggestion(s), 3 correction(s)" in out.text


def test_analyze_blank_essay_prints_input_error() -> None:
    shell, out = _shell(text="")

    shell.handle("analyze")

    assert out == ["Please enter your essay."]


def test_analyze_failure_prints_generic_error() -> None:
    shell, out = _shell(failing_analyzer())

    shell.handle("analyze")

    assert out[-1] == "Something went wrong. Please try again."


def test_suggestions_require_analysis() -> None:
    shell, out = _shell()

    shell.handle("suggestions")

    assert out == ["No analysis yet. Run 'analyze' first."]


def test_suggestions_listing_and_filter() -> None:
    shell, out = _shell()
    shell.handle("analyze")
    out.clear()

    shell.handle("suggestions vocabulary")

    assert len(out) == 1
    assert out[0].startswith("[vocabulary-0] (open) detrimental")

    out.clear()
    shell.handle("suggestions")
    assert out[1].startswith("[priority-1] (info) LOW Paragraphing")
    assert any(line.startswith("[correction-0] (open) grammar") for line in out)

    out.clear()
    shell.handle("suggestions nonsense")
    assert out == ["Unknown suggestion source: nonsense"]


def test_apply_show_and_undo() -> None:
    shell, out = _shell()
    shell.handle("analyze")
    shell.handle("apply correction-0")

    assert out[-1] == "Applied correction-0."

    shell.handle("show")
    assert "{+I have+}" in out[-1]
    assert "[[the dog are -> the dog is]]" in out[-1]

    shell.handle("apply correction-0")
    assert out[-1] == "correction-0 has nothing left to apply."

    shell.handle("\x1a")
    assert out[-1] == "Undone."
    assert "I has a dog" in shell.session.text

    shell.handle("redo")
    assert out[-1] == "Redone."
    shell.handle("redo")
    assert out[-1] == "Nothing to redo."


def test_apply_quiet_and_unknown_id() -> None:
    shell, out = _shell()
    shell.handle("analyze")

    shell.handle("apply correction-1 --quiet")
    shell.handle("show")
    assert "{+" not in out[-1]

    shell.handle("apply nope")
    assert out[-1] == "No suggestion with id nope"

    shell.handle("apply")
    assert out[-1] == "Usage: apply ID [--quiet]"


def test_edit_collects_lines_until_dot() -> None:
    shell, out = _shell(text="")

    shell.handle("edit")
    assert shell.collecting
    shell.handle("First line.")
    shell.handle("show")
    shell.handle(".")

    assert not shell.collecting
    assert shell.session.text == "First line.\nshow"
    assert out[-1] == "Essay updated (16 characters)."


def test_load_reads_file(tmp_path: Path) -> None:
    essay = tmp_path / "essay.txt"
    essay.write_text("Loaded essay.", encoding="utf-8")
    shell, out = _shell(text="")

    shell.handle(f"load {essay}")

    assert shell.session.text == "Loaded essay."
    shell.handle(f"load {tmp_path / 'missing.txt'}")
    assert out[-1].startswith("Could not read")


def test_mode_task_feedback_and_quit() -> None:
    shell, out = _shell()

    shell.handle("mode review")
    assert shell.session.state.mode is ViewMode.REVIEW
    shell.handle("mode sideways")
    assert out[-1] == "Usage: mode edit|review"

    shell.handle("task 1")
    assert out[-1] == "Task: Task 1"
    shell.handle("task 5")
    assert out[-1] == "Usage: task 1|2"

    shell.handle("analyze")
    shell.handle("feedback lexical")
    assert "Lexical Resource\n  Limited range." in out.text
    shell.handle("feedback spelling")
    assert out[-1].startswith("Unknown feedback category")

    shell.handle("frobnicate")
    assert out[-1] == "Unknown command: frobnicate (try 'help')"
    assert shell.handle("") is True
    assert shell.handle("quit") is False


def test_run_stops_at_quit() -> None:
    shell, out = _shell()

    shell.run(["help\n", "quit\n", "show\n"])

    assert len(out) == 1
    assert "Commands:" in out[0]


def test_render_runs_plain_document() -> None:
    shell, _ = _shell(text="Just text.")

    assert render_runs(shell.session.runs()) == "Just text."


class _NamedProvider:
    def __init__(self, name: str) -> None:
        self.name = name

    def generate(self, user_prompts, *, filter_json: bool = False):
        return {}

    def health_check(self) -> bool:
        return True


def test_build_session_takes_provider_order_from_registry(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    factories = {
        name: (lambda name: lambda **_kwargs: _NamedProvider(name))(name)
        for name in ("first", "second")
    }
    monkeypatch.setattr("essay_coach.llm.provider_registry._PROVIDER_FACTORIES", factories)
    monkeypatch.setenv("LLM_PRIMARY", "second")
    monkeypatch.setenv("LLM_FALLBACK", "first")

    session = build_session(parse_args([]), SessionConfiguration())
    assert session._analyzer.llm_service.provider_order() == ["second", "first"]
    session.close()

    session = build_session(parse_args(["--provider", "first"]), SessionConfiguration())
    assert session._analyzer.llm_service.provider_order() == ["first"]
    session.close()


def test_analyze_again_after_timeout_collects_finished_request() -> None:
    gate = threading.Event()
    analyzer = FakeAnalyzer(gate=gate)
    executor = ThreadPoolExecutor(max_workers=1)
    out = _Output()
    session = Session(analyzer, initial_text=ESSAY, executor=executor)
    shell = Shell(session, out=out, analysis_timeout=0.05)

    shell.handle("analyze")
    assert out[-1] == "Still waiting for the examiner; run 'analyze' again later."

    gate.set()
    # The worker is single-threaded, so this runs only after the analysis finished
    executor.submit(lambda: None).result(timeout=5)

    shell.handle("show")
    assert "[[I has -> I have]]" in out[-1]

    shell.handle("analyze")
    assert out[-1] != "An analysis is already running."
    assert "Band score: 5.5" in out.text
    assert len(analyzer.calls) == 2
    assert not session.state.loading
    executor.shutdown(wait=True)
