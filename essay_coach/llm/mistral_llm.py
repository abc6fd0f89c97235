from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Sequence, cast

from dotenv import load_dotenv
from mistralai import Mistral, models

from .json_utils import parse_json_response
from .provider import (
    LLMParseError,
    LLMProvider,
    LLMProviderConfigurationError,
    LLMQuotaError,
    load_system_prompt,
)


class MistralLLM(LLMProvider):
    """Mistral examiner backend using the ``beta.conversations.start`` API.

    Requires ``MISTRAL_API_KEY`` unless a client is injected.
    """

    name = "mistral"
    MODEL = "mistral-medium-latest"
    TEMPERATURE = 0.2

    def __init__(
        self,
        system_prompt: str | Path,
        *,
        client: Mistral | None = None,
        dotenv_path: str | Path | None = None,
        filter_json: bool = False,
    ) -> None:
        self._system_prompt = load_system_prompt(system_prompt)

        # Explicit environment values win over the .env file.
        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        if client is None:
            api_key = os.environ.get("MISTRAL_API_KEY")
            if not api_key:
                raise LLMProviderConfigurationError(
                    "MISTRAL_API_KEY environment variable is required but not set. "
                    "Please set it in your .env file or environment."
                )
            self._client = Mistral(api_key=api_key)
        else:
            self._client = client

        self._filter_json = filter_json

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool | None = None,
    ) -> Any:
        if not user_prompts:
            raise ValueError("user_prompts must not be empty.")

        apply_filter = self._filter_json if filter_json is None else filter_json

        inputs = cast(
            models.ConversationInputs,
            [
                models.MessageInputEntry(
                    role="user",
                    content="\n".join(user_prompts),
                )
            ],
        )

        try:
            response = self._client.beta.conversations.start(
                inputs=inputs,
                instructions=self._system_prompt,
                model=self.MODEL,
                completion_args={"temperature": self.TEMPERATURE},
                tools=[],
            )
        except Exception as exc:
            if getattr(exc, "status_code", None) == 429:
                raise LLMQuotaError(
                    "Mistral provider: quota exhausted or rate limited"
                ) from exc
            raise

        if not apply_filter:
            return response

        return self._parse_response_json(response, prompts=list(user_prompts))

    def health_check(self) -> bool:
        return True

    @staticmethod
    def _response_text(response: Any) -> str | None:
        """Pull message text from ``outputs`` (conversations) or ``choices`` (chat)."""
        outputs = getattr(response, "outputs", None)
        if isinstance(outputs, list):
            for entry in outputs:
                if isinstance(entry, dict):
                    content = entry.get("content")
                else:
                    content = getattr(entry, "content", None)
                if isinstance(content, str) and content.strip():
                    return content

        choices = getattr(response, "choices", None)
        if choices:
            message = getattr(choices[0], "message", None)
            content = getattr(message, "content", None)
            if isinstance(content, str):
                return content
        return None

    def _parse_response_json(
        self, response: Any, prompts: list[str] | None = None
    ) -> Any:
        text = self._response_text(response)
        if text is None:
            raise LLMParseError(
                "Response message content is not a string for JSON parsing; "
                "expected `outputs` or `choices` shapes.",
                response_text=str(response),
                prompts=prompts,
            )

        try:
            return parse_json_response(text)
        except (ValueError, json.JSONDecodeError) as exc:
            raise LLMParseError(
                str(exc),
                response_text=text,
                prompts=prompts,
            ) from exc
