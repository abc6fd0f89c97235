from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from essay_coach.models import TaskVariant

logger = logging.getLogger(__name__)

ENV_PREFIX = "ESSAY_COACH"


def _env(name: str, default: str | None = None) -> str | None:
    value = os.environ.get(f"{ENV_PREFIX}_{name}")
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass
class SessionConfiguration:
    """Settings for an interactive session.

    Built from the environment (after any ``.env`` file has been loaded) and
    then overridden by command-line flags. Provider selection is not part of
    this: ``LLM_PRIMARY`` and ``LLM_FALLBACK`` belong to
    :mod:`essay_coach.llm.provider_registry`.
    """

    task_variant: TaskVariant = TaskVariant.TASK2
    analysis_timeout: float = 120.0

    @classmethod
    def from_env(cls) -> "SessionConfiguration":
        """Read ``ESSAY_COACH_TASK`` and ``ESSAY_COACH_ANALYSIS_TIMEOUT``.

        Invalid values fall back to the defaults with a warning.
        """
        config = cls()

        task = _env("TASK")
        if task is not None:
            try:
                config.task_variant = TaskVariant.parse(task)
            except ValueError:
                logger.warning("Ignoring %s_TASK=%r", ENV_PREFIX, task)

        timeout = _env("ANALYSIS_TIMEOUT")
        if timeout is not None:
            try:
                config.analysis_timeout = max(1.0, float(timeout))
            except ValueError:
                logger.warning("Ignoring %s_ANALYSIS_TIMEOUT=%r", ENV_PREFIX, timeout)

        return config
