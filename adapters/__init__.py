"""Adapters package: provider adapters and the adapter registry."""

from adapters.base import AdapterConfig, ModelAdapter, ParsedResponse
from adapters.anthropic_adapter import AnthropicAdapter
from adapters.cohere_adapter import CohereAdapter
from adapters.deepseek_adapter import DeepSeekAdapter
from adapters.google_adapter import GoogleAdapter
from adapters.limits import MODEL_TOKEN_LIMITS, model_token_limit
from adapters.mistral_adapter import MistralAdapter
from adapters.mock_adapter import MOCK_MODEL_ID, MockAdapter
from adapters.openai_adapter import OpenAIAdapter
from adapters.perplexity_adapter import PerplexityAdapter
from adapters.registry import AdapterRegistry, build_default_registry, get_registry
from adapters.together_adapter import TogetherAdapter
from adapters.xai_adapter import XAIAdapter

__all__ = [
    "AdapterConfig",
    "ModelAdapter",
    "ParsedResponse",
    "AnthropicAdapter",
    "CohereAdapter",
    "DeepSeekAdapter",
    "GoogleAdapter",
    "MistralAdapter",
    "MockAdapter",
    "OpenAIAdapter",
    "PerplexityAdapter",
    "TogetherAdapter",
    "XAIAdapter",
    "MOCK_MODEL_ID",
    "MODEL_TOKEN_LIMITS",
    "model_token_limit",
    "AdapterRegistry",
    "build_default_registry",
    "get_registry",
]
