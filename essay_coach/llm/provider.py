"""Examiner backend contract and the errors backends raise.

The analyzer only ever sees ``LLMProviderError`` subclasses from this module;
it turns every one of them into a user-facing ``TransportError``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence

ProviderReporter = Callable[[str, "ProviderStatus", Exception | None], None]


class ProviderStatus(str, Enum):
    """How one examiner backend handled an essay analysis request."""

    SUCCESS = "success"
    QUOTA = "quota"
    FAILURE = "failure"


class LLMProviderError(Exception):
    """An examiner backend could not produce an analysis."""


class LLMQuotaError(LLMProviderError):
    """The backend refused the essay for quota or rate-limit reasons.

    The only provider error that lets ``LLMService`` move on to the next backend.
    """


class LLMProviderConfigurationError(LLMProviderError):
    """The backend is missing an API key or other setup needed to mark essays."""


class LLMParseError(LLMProviderError):
    """Raised when the examiner's reply cannot be read as JSON.

    Carries the raw reply and the prompts that produced it so a bad analysis
    can be diagnosed from the log alone.
    """

    MAX_DISPLAY = 2000

    def __init__(
        self,
        message: str,
        *,
        response_text: str | None = None,
        prompts: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.response_text = response_text
        self.prompts = prompts

    @classmethod
    def _truncate(cls, text: str) -> str:
        if len(text) > cls.MAX_DISPLAY:
            return text[: cls.MAX_DISPLAY] + "... [truncated]"
        return text

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.response_text is not None:
            parts.append(f"\n--- Examiner reply ---\n{self._truncate(self.response_text)}")
        if self.prompts:
            parts.append(f"\n--- Essay prompts ---\n{self._truncate(chr(10).join(self.prompts))}")
        return "".join(parts)


def load_system_prompt(system_prompt: str | Path) -> str:
    """Resolve the examiner persona and output contract for a backend.

    Accepts the rendered ``essay_examiner.md`` text or a path to a prompt
    file. Short single-line strings naming an existing file are read from
    disk; anything else (the usual rendered prompt) is used verbatim.
    """
    if not isinstance(system_prompt, (str, Path)):
        raise TypeError(
            f"Examiner system prompt must be text or a prompt file path, got {type(system_prompt)}"
        )

    looks_like_path = isinstance(system_prompt, Path) or (
        "\n" not in system_prompt and len(system_prompt) < 500
    )
    if not looks_like_path:
        return str(system_prompt)
    try:
        prompt_path = Path(system_prompt)
        if prompt_path.is_file():
            return prompt_path.read_text(encoding="utf-8")
    except (OSError, ValueError):
        pass
    return str(system_prompt)


class LLMProvider(Protocol):
    """An examiner backend: marks one essay prompt and returns its reply.

    With ``filter_json`` the reply is the decoded JSON analysis; otherwise the
    raw SDK response object.
    """

    name: str

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool = False,
    ) -> Any:
        """Send the rendered essay prompt(s) and return the examiner's reply."""
        ...

    def health_check(self) -> bool:
        """Return True when the backend can accept an essay."""
        ...


class ProviderFactory(Protocol):
    """Builds a backend configured with the examiner system prompt."""

    def __call__(
        self,
        *,
        system_prompt: str | Path,
        filter_json: bool,
        dotenv_path: str | Path | None,
    ) -> LLMProvider: ...
