"""Ask the examiner LLM for a critique of an essay.

The analyzer is the boundary between untrusted model output and the editing
core: the reply is parsed, validated with :class:`AnalysisResponse` and mapped
to an :class:`AnalysisResult`. Any failure along the way becomes a single
``TransportError``; a partially valid reply is never accepted.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from essay_coach.errors import InputError, TransportError
from essay_coach.llm.provider import LLMProviderError
from essay_coach.llm.service import LLMService
from essay_coach.models import AnalysisResponse, AnalysisResult, TaskVariant
from essay_coach.prompt.render_prompt import render_prompts

logger = logging.getLogger(__name__)


def build_prompts(essay: str, task_variant: TaskVariant) -> list[str]:
    """Return ``[system_prompt, user_prompt]`` for one essay."""
    context = {"essay": essay, "task_variant": task_variant.value}
    system_prompt, user_prompt = render_prompts(context=context)
    return [system_prompt, user_prompt]


def get_system_prompt_text() -> str:
    """System prompt without essay context, used to configure providers."""
    system_prompt, _ = render_prompts(context={})
    return system_prompt


def parse_result(payload: Any, task_variant: TaskVariant) -> AnalysisResult:
    """Validate a decoded JSON reply. Raises ``TransportError`` on bad shape."""
    if not isinstance(payload, dict):
        raise TransportError(
            f"Examiner returned {type(payload).__name__}, expected a JSON object"
        )
    try:
        response = AnalysisResponse.model_validate(payload)
    except ValidationError as exc:
        raise TransportError(f"Examiner response failed validation: {exc}") from exc
    return AnalysisResult.from_response(response, task_variant)


class EssayAnalyzer:
    """Runs one analysis request through an :class:`LLMService`."""

    def __init__(self, llm_service: LLMService) -> None:
        self.llm_service = llm_service

    def analyze(
        self,
        essay: str,
        task_variant: TaskVariant = TaskVariant.TASK2,
    ) -> AnalysisResult:
        if not essay.strip():
            raise InputError("Essay content is required")

        prompts = build_prompts(essay, task_variant)
        # Providers carry the system prompt; send only the user part
        user_prompts = prompts[1:]

        logger.info(
            "Requesting %s analysis (%d chars) from %s",
            task_variant.value,
            len(essay),
            ", ".join(self.llm_service.provider_order()),
        )
        try:
            payload = self.llm_service.generate(user_prompts, filter_json=True)
        except LLMProviderError as exc:
            logger.exception("Essay analysis failed")
            raise TransportError(f"Failed to analyze essay: {exc}") from exc
        except Exception as exc:
            # SDK network errors reach us unwrapped
            logger.exception("Essay analysis failed (%s)", type(exc).__name__)
            raise TransportError(f"Failed to analyze essay: {exc}") from exc

        try:
            result = parse_result(payload, task_variant)
        except TransportError:
            logger.exception("Discarding malformed examiner response")
            raise

        logger.info(
            "Analysis complete: band %.1f, %d correction(s)",
            result.band_score,
            len(result.corrections),
        )
        return result
