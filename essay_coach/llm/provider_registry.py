"""Choose which examiner backends mark an essay, and in what order.

Backends are imported lazily so that only the SDKs actually selected need to
be configured. ``LLM_PRIMARY`` names the first backend and ``LLM_FALLBACK`` a
comma-separated list tried when the previous one is out of quota.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from .provider import LLMProvider, ProviderFactory


def _gemini_factory(
    *,
    system_prompt: str | Path,
    filter_json: bool,
    dotenv_path: str | Path | None,
) -> LLMProvider:
    from .gemini_llm import GeminiLLM

    return GeminiLLM(
        system_prompt=system_prompt,
        filter_json=filter_json,
        dotenv_path=dotenv_path,
    )


def _mistral_factory(
    *,
    system_prompt: str | Path,
    filter_json: bool,
    dotenv_path: str | Path | None,
) -> LLMProvider:
    from .mistral_llm import MistralLLM

    return MistralLLM(
        system_prompt=system_prompt,
        filter_json=filter_json,
        dotenv_path=dotenv_path,
    )


_PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "gemini": _gemini_factory,
    "mistral": _mistral_factory,
}


def available_providers() -> list[str]:
    """Names accepted by ``--provider``, ``LLM_PRIMARY`` and ``LLM_FALLBACK``."""
    return list(_PROVIDER_FACTORIES)


def _split_names(value: str | None) -> list[str]:
    if not value:
        return []
    return [chunk.strip().lower() for chunk in value.split(",") if chunk.strip()]


def resolve_provider_order(
    primary: str | None = None,
    fallbacks: Sequence[str] | None = None,
) -> list[str]:
    """Examiner backend names in the order they should mark the essay.

    ``--provider`` (``primary``) and explicit ``fallbacks`` win over
    ``LLM_PRIMARY`` / ``LLM_FALLBACK``; with neither, every registered backend
    is tried in registration order. Repeated names are kept once.
    """
    candidates: list[str] = []
    candidates.extend(_split_names(primary) or _split_names(os.environ.get("LLM_PRIMARY")))
    if fallbacks:
        candidates.extend(name.strip().lower() for name in fallbacks if name.strip())
    else:
        candidates.extend(_split_names(os.environ.get("LLM_FALLBACK")))

    if not candidates:
        candidates = available_providers()

    order: list[str] = []
    for name in candidates:
        if name in order:
            continue
        if name not in _PROVIDER_FACTORIES:
            raise ValueError(
                f"Unknown examiner backend '{name}'; choose from {', '.join(available_providers())}"
            )
        order.append(name)
    return order


def create_provider_chain(
    *,
    system_prompt: str | Path,
    filter_json: bool = False,
    dotenv_path: str | Path | None = None,
    primary: str | None = None,
    fallbacks: Sequence[str] | None = None,
) -> list[LLMProvider]:
    """Build the examiner backends, each carrying the essay examiner prompt.

    A ``dotenv_path`` is loaded first, overriding the environment, so backend
    choice and API keys can live in one file.
    """
    if dotenv_path is not None:
        load_dotenv(dotenv_path=str(dotenv_path), override=True)

    return [
        _PROVIDER_FACTORIES[name](
            system_prompt=system_prompt,
            filter_json=filter_json,
            dotenv_path=dotenv_path,
        )
        for name in resolve_provider_order(primary, fallbacks)
    ]
