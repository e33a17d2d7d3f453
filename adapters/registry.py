"""Adapter registry: model id -> adapter instance.

The registry is read-only once built. Lookups try the exact id first and
fall back to a case-insensitive match.
"""

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Optional

from adapters.anthropic_adapter import AnthropicAdapter
from adapters.base import ModelAdapter
from adapters.cohere_adapter import CohereAdapter
from adapters.deepseek_adapter import DeepSeekAdapter
from adapters.google_adapter import GoogleAdapter
from adapters.mistral_adapter import MistralAdapter
from adapters.mock_adapter import MOCK_MODEL_ID, MockAdapter
from adapters.openai_adapter import OpenAIAdapter
from adapters.perplexity_adapter import PerplexityAdapter
from adapters.together_adapter import TogetherAdapter
from adapters.xai_adapter import XAIAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry(Mapping):
    """Immutable mapping from model id to adapter."""

    def __init__(self, adapters: Mapping[str, ModelAdapter]):
        self._adapters = MappingProxyType(dict(adapters))
        self._lowercase: dict[str, str] = {}
        for model_id in self._adapters:
            # First registration wins for ids differing only in case
            self._lowercase.setdefault(model_id.lower(), model_id)

    def __getitem__(self, model_id: str) -> ModelAdapter:
        return self._adapters[model_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    def get(self, model_id: Optional[str], default=None) -> Optional[ModelAdapter]:
        """Exact match first, case-insensitive match second."""
        if not model_id:
            return default
        adapter = self._adapters.get(model_id)
        if adapter is not None:
            return adapter
        canonical = self._lowercase.get(model_id.lower())
        if canonical is not None:
            logger.debug("Found adapter using normalized model id: %s -> %s", model_id, canonical)
            return self._adapters[canonical]
        return default

    def by_provider(self, provider_name: str) -> list[ModelAdapter]:
        return [a for a in self._adapters.values() if a.provider_name == provider_name]

    def grouped_by_provider(self) -> dict[str, list[str]]:
        providers: dict[str, list[str]] = {}
        for model_id, adapter in self._adapters.items():
            providers.setdefault(adapter.provider_name, []).append(model_id)
        return providers

    def provider_names(self) -> list[str]:
        return list(self.grouped_by_provider())


def build_default_registry() -> AdapterRegistry:
    """Register every supported provider model, legacy aliases included."""
    return AdapterRegistry({
        # OpenAI
        "gpt-4o": OpenAIAdapter("gpt-4o"),
        "gpt-4.1": OpenAIAdapter("gpt-4.1"),
        "gpt-4o-mini": OpenAIAdapter("gpt-4o-mini"),
        "gpt-4.5-preview": OpenAIAdapter("gpt-4.5-preview"),
        "gpt-4.1-mini-2025-04-14": OpenAIAdapter("gpt-4.1-mini-2025-04-14"),
        "o3": OpenAIAdapter("o3"),
        "o3-mini": OpenAIAdapter("o3-mini"),
        "o4-mini": OpenAIAdapter("o4-mini"),

        # Anthropic
        "claude-3-7-sonnet-20250219": AnthropicAdapter("claude-3-7-sonnet-20250219"),
        "claude-3-opus-20240229": AnthropicAdapter("claude-3-opus-20240229"),
        "claude-3-sonnet-20240229": AnthropicAdapter("claude-3-sonnet-20240229"),
        "claude-3-haiku-20240307": AnthropicAdapter("claude-3-haiku-20240307"),
        "claude-3.7-sonnet": AnthropicAdapter("claude-3.7-sonnet"),

        # Google Gemini
        "gemini-2.5-flash-preview-04-17": GoogleAdapter("gemini-2.5-flash-preview-04-17"),
        "gemini-2.5-pro-preview-03-25": GoogleAdapter("gemini-2.5-pro-preview-03-25"),
        "gemini-2.0-flash": GoogleAdapter("gemini-2.0-flash"),
        "gemini-2.0-flash-lite": GoogleAdapter("gemini-2.0-flash-lite"),
        "gemini-1.5-flash": GoogleAdapter("gemini-1.5-flash"),
        "gemini-1.5-flash-8b": GoogleAdapter("gemini-1.5-flash-8b"),
        "gemini-1.5-pro": GoogleAdapter("gemini-1.5-pro"),

        # Mistral
        "mistral-large": MistralAdapter("mistral-large"),
        "mistral-medium": MistralAdapter("mistral-medium"),
        "mistral-small": MistralAdapter("mistral-small"),

        # Cohere
        "command-r": CohereAdapter("command-r"),
        "command-r-plus": CohereAdapter("command-r-plus"),
        "command-light": CohereAdapter("command-light"),

        # XAI
        "grok-3-beta": XAIAdapter("grok-3-beta"),
        "grok-3-mini-beta": XAIAdapter("grok-3-mini-beta"),
        "Grok-3-beta": XAIAdapter("Grok-3-beta"),
        "Grok-3-mini-beta": XAIAdapter("Grok-3-mini-beta"),

        # DeepSeek
        "deepseek-r1": DeepSeekAdapter("deepseek-r1"),
        "deepseek-v3-0324": DeepSeekAdapter("deepseek-v3-0324"),
        "DeepSeek-R1": DeepSeekAdapter("DeepSeek-R1"),
        "DeepSeek-V3-0324": DeepSeekAdapter("DeepSeek-V3-0324"),

        # Mock
        MOCK_MODEL_ID: MockAdapter(),

        # Perplexity
        "sonar-pro": PerplexityAdapter("sonar-pro"),
        "sonar-deep-research": PerplexityAdapter("sonar-deep-research"),

        # Together AI
        "llama-4-maverick-instruct": TogetherAdapter("llama-4-maverick-instruct"),
        "llama-4-scout-instruct": TogetherAdapter("llama-4-scout-instruct"),
    })


_registry_instance: AdapterRegistry | None = None


def get_registry() -> AdapterRegistry:
    """Get cached default registry."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = build_default_registry()
    return _registry_instance
