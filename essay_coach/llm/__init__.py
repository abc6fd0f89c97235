"""LLM provider layer used by the essay examiner."""

from .provider import (
    LLMParseError,
    LLMProvider,
    LLMProviderConfigurationError,
    LLMProviderError,
    LLMQuotaError,
    ProviderStatus,
)
from .provider_registry import create_provider_chain
from .service import LLMService

__all__ = [
    "LLMParseError",
    "LLMProvider",
    "LLMProviderConfigurationError",
    "LLMProviderError",
    "LLMQuotaError",
    "LLMService",
    "ProviderStatus",
    "create_provider_chain",
]
