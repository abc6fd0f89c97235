"""Examiner analysis requests."""

from .analyzer import EssayAnalyzer, build_prompts, get_system_prompt_text, parse_result

__all__ = ["EssayAnalyzer", "build_prompts", "get_system_prompt_text", "parse_result"]
