from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, cast

import pytest
from mistralai import Mistral

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from essay_coach.llm.mistral_llm import MistralLLM
from essay_coach.llm.provider import (
    LLMParseError,
    LLMProviderConfigurationError,
    LLMQuotaError,
)


class _DummyMessage:
    def __init__(self, content: Any) -> None:
        self.content = content


class _DummyChoice:
    def __init__(self, message: _DummyMessage) -> None:
        self.message = message
        self.finish_reason = "stop"


class _DummyResponse:
    def __init__(self, content: Any) -> None:
        self.choices = [_DummyChoice(_DummyMessage(content))]


class _Conversations:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.calls: list[dict[str, object]] = []
        self._response = response if response is not None else _DummyResponse("mock-response")
        self._error = error

    def start(self, **kwargs: object) -> Any:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response


class _DummyClient:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.beta = SimpleNamespace(conversations=_Conversations(response, error))

    @property
    def calls(self) -> list[dict[str, object]]:
        return self.beta.conversations.calls


class _QuotaExceededError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.status_code = 429


def _make_llm(client: _DummyClient, **kwargs: Any) -> MistralLLM:
    return MistralLLM(system_prompt="You are an examiner.", client=cast(Mistral, client), **kwargs)


def test_generate_joins_prompts_and_sets_instructions() -> None:
    client = _DummyClient()
    llm = _make_llm(client)

    result = llm.generate(["Line one", "Line two"])

    assert isinstance(result, _DummyResponse)
    (call,) = client.calls
    assert call["model"] == llm.MODEL
    assert call["instructions"] == "You are an examiner."
    assert call["completion_args"] == {"temperature": llm.TEMPERATURE}
    assert call["tools"] == []
    (entry,) = call["inputs"]
    assert entry.role == "user"
    assert entry.content == "Line one\nLine two"


def test_mistral_api_key_is_passed_to_sdk_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    class FakeClient:
        def __init__(self, api_key: str) -> None:
            captured["api_key"] = api_key

    monkeypatch.setenv("MISTRAL_API_KEY", "env-test-key-123")
    monkeypatch.setattr("essay_coach.llm.mistral_llm.Mistral", FakeClient)

    MistralLLM(system_prompt="System")

    assert captured["api_key"] == "env-test-key-123"


def test_mistral_raises_when_api_key_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
    monkeypatch.setattr("essay_coach.llm.mistral_llm.load_dotenv", lambda *args, **kwargs: None)

    with pytest.raises(LLMProviderConfigurationError):
        MistralLLM(system_prompt="System")


def test_system_prompt_property_returns_file_contents(tmp_path: Path) -> None:
    system_prompt_path = tmp_path / "system.md"
    system_prompt_path.write_text("Mark strictly.", encoding="utf-8")

    llm = MistralLLM(system_prompt=system_prompt_path, client=cast(Mistral, _DummyClient()))

    assert llm.system_prompt == "Mark strictly."


def test_loads_dotenv_when_path_provided(tmp_path: Path) -> None:
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("MISTRAL_DOTENV_PROBE=loaded\n", encoding="utf-8")
    os.environ.pop("MISTRAL_DOTENV_PROBE", None)

    try:
        _make_llm(_DummyClient(), dotenv_path=dotenv_path)
        assert os.environ["MISTRAL_DOTENV_PROBE"] == "loaded"
    finally:
        os.environ.pop("MISTRAL_DOTENV_PROBE", None)


def test_generate_returns_repaired_json_when_filter_enabled() -> None:
    client = _DummyClient(response=_DummyResponse('Sure! {"band_score": 7,}'))
    llm = _make_llm(client, filter_json=True)

    assert llm.generate(["Prompt"]) == {"band_score": 7}


def test_generate_parses_outputs_shape_with_code_fence() -> None:
    response = SimpleNamespace(
        outputs=[
            SimpleNamespace(content=""),
            {"content": '```json\n{"corrections": []}\n```'},
        ]
    )
    llm = _make_llm(_DummyClient(response=response), filter_json=True)

    assert llm.generate(["Prompt"]) == {"corrections": []}


def test_generate_raises_when_json_delimiters_missing() -> None:
    llm = _make_llm(_DummyClient(response=_DummyResponse("No JSON here")), filter_json=True)

    with pytest.raises(LLMParseError) as excinfo:
        llm.generate(["Prompt"])

    assert excinfo.value.response_text == "No JSON here"


def test_generate_raises_when_response_has_no_content() -> None:
    llm = _make_llm(_DummyClient(response=_DummyResponse(None)), filter_json=True)

    with pytest.raises(LLMParseError):
        llm.generate(["Prompt"])


def test_generate_raises_quota_error_on_429() -> None:
    llm = _make_llm(_DummyClient(error=_QuotaExceededError("Too many requests")))

    with pytest.raises(LLMQuotaError):
        llm.generate(["Prompt"])


def test_other_sdk_errors_propagate() -> None:
    llm = _make_llm(_DummyClient(error=ConnectionError("offline")))

    with pytest.raises(ConnectionError):
        llm.generate(["Prompt"])
