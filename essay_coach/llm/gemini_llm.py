from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv
from google import genai
from google.genai import types

try:
    from google.api_core import exceptions as google_exceptions
except Exception:  # pragma: no cover - only occurs without google-api-core installed
    google_exceptions = None

from .json_utils import parse_json_response
from .provider import LLMParseError, LLMQuotaError, load_system_prompt

logger = logging.getLogger(__name__)


def _read_env_number(name: str, default: float, cast: type = float) -> Any:
    try:
        return cast(os.environ.get(name, str(default)))
    except ValueError:
        return cast(default)


def _is_rate_limit(exc: Exception) -> bool:
    if google_exceptions is not None and isinstance(
        exc, getattr(google_exceptions, "TooManyRequests", ())
    ):
        return True
    return getattr(exc, "code", None) == 429 or getattr(exc, "status_code", None) == 429


def _is_quota_exhausted(exc: Exception) -> bool:
    return google_exceptions is not None and isinstance(
        exc, getattr(google_exceptions, "ResourceExhausted", ())
    )


class GeminiLLM:
    """Gemini examiner backend.

    The system prompt may be given as text or as a path to a prompt file.
    Rate limiting is configured with ``GEMINI_MIN_REQUEST_INTERVAL`` (seconds
    between calls) and ``GEMINI_MAX_RETRIES`` (retries on HTTP 429).
    """

    name = "gemini"
    MODEL = "gemini-2.5-flash"
    TEMPERATURE = 0.2

    def __init__(
        self,
        system_prompt: str | Path,
        *,
        client: genai.Client | None = None,
        dotenv_path: str | Path | None = None,
        filter_json: bool = False,
        min_request_interval: float | None = None,
        max_retries: int | None = None,
    ) -> None:
        self._system_prompt = load_system_prompt(system_prompt)

        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()
        self._client = client or genai.Client()
        self._filter_json = filter_json

        if min_request_interval is None:
            min_request_interval = _read_env_number("GEMINI_MIN_REQUEST_INTERVAL", 0.0)
        self._min_request_interval = max(0.0, min_request_interval)

        if max_retries is None:
            max_retries = _read_env_number("GEMINI_MAX_RETRIES", 0, int)
        self._max_retries = max(0, max_retries)

        self._last_request_time = 0.0

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def _config(self, apply_filter: bool) -> types.GenerateContentConfig:
        config_kwargs: dict[str, Any] = dict(
            system_instruction=self._system_prompt,
            temperature=self.TEMPERATURE,
        )
        if apply_filter:
            config_kwargs["response_mime_type"] = "application/json"
        return types.GenerateContentConfig(**config_kwargs)

    def generate(
        self,
        user_prompts: Sequence[str],
        *,
        filter_json: bool | None = None,
    ) -> Any:
        if not user_prompts:
            raise ValueError("user_prompts must not be empty.")

        apply_filter = self._filter_json if filter_json is None else filter_json
        contents = "\n".join(user_prompts)
        config = self._config(apply_filter)

        for attempt in range(self._max_retries + 1):
            self._enforce_rate_limit()
            try:
                response = self._client.models.generate_content(
                    model=self.MODEL,
                    contents=contents,
                    config=config,
                )
            except Exception as exc:
                self._last_request_time = time.time()

                if _is_quota_exhausted(exc):
                    raise LLMQuotaError("Gemini provider: quota exhausted") from exc

                if _is_rate_limit(exc):
                    if attempt < self._max_retries:
                        backoff = (self._min_request_interval or 0.1) * 2**attempt
                        logger.warning(
                            "Gemini rate limited, retry %d/%d in %.1fs",
                            attempt + 1,
                            self._max_retries,
                            backoff,
                        )
                        time.sleep(backoff)
                        continue
                    raise LLMQuotaError(
                        "Gemini provider: rate limited (exhausted retries)"
                    ) from exc
                raise

            self._last_request_time = time.time()
            if not apply_filter:
                return response
            return self._parse_response_json(response, prompts=list(user_prompts))

    def health_check(self) -> bool:
        return True

    def _parse_response_json(
        self, response: Any, prompts: list[str] | None = None
    ) -> Any:
        text = getattr(response, "text", None)
        if not isinstance(text, str):
            raise LLMParseError(
                "Response object does not expose a text attribute for JSON parsing.",
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

    def _enforce_rate_limit(self) -> None:
        if self._min_request_interval <= 0:
            return

        elapsed = time.time() - self._last_request_time
        if elapsed < self._min_request_interval:
            time.sleep(self._min_request_interval - elapsed)
