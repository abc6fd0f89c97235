from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, cast

import pytest
from google import genai
from google.genai import types

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from essay_coach.llm import gemini_llm
from essay_coach.llm.gemini_llm import GeminiLLM
from essay_coach.llm.provider import LLMParseError, LLMQuotaError


class _DummyResponse:
    def __init__(self, text: Any) -> None:
        self.text = text


class _DummyModels:
    def __init__(self, response_text: Any = "mock-response", errors: list[Exception] | None = None) -> None:
        self.calls: list[dict[str, object]] = []
        self._response_text = response_text
        self._errors = list(errors or [])

    def generate_content(self, **kwargs: object) -> _DummyResponse:
        self.calls.append(kwargs)
        if self._errors:
            raise self._errors.pop(0)
        return _DummyResponse(text=self._response_text)


class _DummyClient:
    def __init__(self, response_text: Any = "mock-response", errors: list[Exception] | None = None) -> None:
        self.models = _DummyModels(response_text=response_text, errors=errors)


class _RateLimited(Exception):
    code = 429


def _make_llm(client: _DummyClient, **kwargs: Any) -> GeminiLLM:
    return GeminiLLM(system_prompt="You are an examiner.", client=cast(genai.Client, client), **kwargs)


def test_generate_joins_prompts_and_sets_config(tmp_path: Path) -> None:
    system_prompt_path = tmp_path / "system.md"
    system_text = "## System\nMark the essay."
    system_prompt_path.write_text(system_text, encoding="utf-8")
    client = _DummyClient()
    llm = GeminiLLM(system_prompt=system_prompt_path, client=cast(genai.Client, client))

    result = llm.generate(["Line one", "Line two"])

    assert isinstance(result, _DummyResponse)
    assert result.text == "mock-response"
    assert len(client.models.calls) == 1
    call = client.models.calls[0]
    assert call["model"] == llm.MODEL
    assert call["contents"] == "Line one\nLine two"
    config = call["config"]
    assert isinstance(config, types.GenerateContentConfig)
    assert config.system_instruction == system_text
    assert config.temperature == llm.TEMPERATURE
    assert not config.response_mime_type


def test_system_prompt_accepts_direct_string() -> None:
    llm = _make_llm(_DummyClient())

    assert llm.system_prompt == "You are an examiner."


def test_loads_dotenv_when_path_provided(tmp_path: Path) -> None:
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("GEMINI_API_KEY=from-dotenv\n", encoding="utf-8")
    previous_value = os.environ.pop("GEMINI_API_KEY", None)

    try:
        _make_llm(_DummyClient(), dotenv_path=dotenv_path)
        assert os.environ["GEMINI_API_KEY"] == "from-dotenv"
    finally:
        if previous_value is None:
            os.environ.pop("GEMINI_API_KEY", None)
        else:
            os.environ["GEMINI_API_KEY"] = previous_value


def test_generate_returns_repaired_json_when_filter_enabled() -> None:
    client = _DummyClient(response_text='Noise before {"band_score": 6,} and after')
    llm = _make_llm(client, filter_json=True)

    result = llm.generate(["Prompt"])

    assert result == {"band_score": 6}
    assert client.models.calls[0]["config"].response_mime_type == "application/json"


def test_filter_can_be_enabled_per_call() -> None:
    llm = _make_llm(_DummyClient(response_text='{"ok": true}'))

    assert llm.generate(["Prompt"], filter_json=True) == {"ok": True}


def test_generate_raises_when_json_delimiters_missing() -> None:
    llm = _make_llm(_DummyClient(response_text="No JSON here"), filter_json=True)

    with pytest.raises(LLMParseError) as excinfo:
        llm.generate(["Prompt"])

    assert excinfo.value.response_text == "No JSON here"
    assert excinfo.value.prompts == ["Prompt"]


def test_generate_raises_when_response_has_no_text() -> None:
    llm = _make_llm(_DummyClient(response_text=None), filter_json=True)

    with pytest.raises(LLMParseError):
        llm.generate(["Prompt"])


def test_generate_rejects_empty_prompts() -> None:
    with pytest.raises(ValueError):
        _make_llm(_DummyClient()).generate([])


def test_rate_limit_retries_then_succeeds(monkeypatch: pytest.MonkeyPatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(gemini_llm.time, "sleep", sleeps.append)
    client = _DummyClient(response_text='{"ok": 1}', errors=[_RateLimited("slow down")])
    llm = _make_llm(client, filter_json=True, max_retries=2, min_request_interval=0)

    assert llm.generate(["Prompt"]) == {"ok": 1}
    assert len(client.models.calls) == 2
    assert sleeps == [pytest.approx(0.1)]


def test_rate_limit_without_retries_raises_quota_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gemini_llm.time, "sleep", lambda _s: None)
    client = _DummyClient(errors=[_RateLimited("slow down")])
    llm = _make_llm(client, max_retries=0)

    with pytest.raises(LLMQuotaError):
        llm.generate(["Prompt"])


def test_other_errors_propagate() -> None:
    llm = _make_llm(_DummyClient(errors=[RuntimeError("network down")]))

    with pytest.raises(RuntimeError, match="network down"):
        llm.generate(["Prompt"])


def test_rate_limit_settings_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_MIN_REQUEST_INTERVAL", "1.5")
    monkeypatch.setenv("GEMINI_MAX_RETRIES", "not-a-number")

    llm = _make_llm(_DummyClient())

    assert llm._min_request_interval == 1.5
    assert llm._max_retries == 0
