"""Model system validation: node configs, adapters and the registry.

Every check returns a :class:`ValidationResult` instead of raising, so
callers can surface all problems at once.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional

from adapters.registry import AdapterRegistry, get_registry
from models.flow import FlowNode

logger = logging.getLogger(__name__)

# Flow-level keys any node may carry, never type checked
GENERIC_CONFIG_KEYS = frozenset({"streamResponse", "retryOnError", "label", "characters"})

# Keys every adapter understands even when its defaults omit them
BASE_CONFIG_TYPES = {
    "systemPrompt": "string",
    "temperature": "number",
    "maxTokens": "number",
}

# Models each provider exposes to users, keyed by provider name
PROVIDER_CATALOG: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "OpenAI": (
        "gpt-4o", "gpt-4.1", "gpt-4o-mini", "gpt-4.5-preview",
        "gpt-4.1-mini-2025-04-14", "o3", "o3-mini", "o4-mini",
    ),
    "Anthropic": (
        "claude-3-7-sonnet-20250219", "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307", "claude-3-opus-20240229", "claude-3.7-sonnet",
    ),
    "Google Gemini": (
        "gemini-2.5-flash-preview-04-17", "gemini-2.5-pro-preview-03-25",
        "gemini-2.0-flash", "gemini-2.0-flash-lite", "gemini-1.5-flash",
        "gemini-1.5-flash-8b", "gemini-1.5-pro",
    ),
    "Mistral": ("mistral-large", "mistral-medium", "mistral-small"),
    "Cohere": ("command-r", "command-r-plus", "command-light"),
    "XAI": ("grok-3-beta", "grok-3-mini-beta", "Grok-3-beta", "Grok-3-mini-beta"),
    "DeepSeek": ("deepseek-r1", "deepseek-v3-0324", "DeepSeek-R1", "DeepSeek-V3-0324"),
    "Mock": ("mock-model",),
    "Perplexity": ("sonar-pro", "sonar-deep-research"),
    "Together AI": ("llama-4-maverick-instruct", "llama-4-scout-instruct"),
})


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # Per-node problems, filled by validate_before_execution
    node_errors: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_messages(cls, errors: Iterable[str] = (), warnings: Iterable[str] = ()) -> "ValidationResult":
        errors = list(errors)
        return cls(is_valid=not errors, errors=errors, warnings=list(warnings))

    @classmethod
    def combine(cls, *results: "ValidationResult") -> "ValidationResult":
        combined = cls.from_messages(
            [e for r in results for e in r.errors],
            [w for r in results for w in r.warnings],
        )
        for r in results:
            combined.node_errors.update(r.node_errors)
        return combined


def value_category(value: Any) -> str:
    """Coarse type name used to compare config values."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    if value is None:
        return "null"
    return type(value).__name__


def validate_flow_node_config(
    registry: AdapterRegistry,
    model_id: Optional[str],
    config: Optional[dict[str, Any]],
) -> ValidationResult:
    """Check a node's config against its adapter's defaults and schema.

    Type mismatches and schema violations are errors. Keys the adapter
    does not know are reported as warnings only.
    """
    if not model_id:
        return ValidationResult.from_messages(["Flow node is missing modelId"])

    adapter = registry.get(model_id)
    if adapter is None:
        return ValidationResult.from_messages([f'Flow node has invalid modelId: "{model_id}"'])

    if not config:
        return ValidationResult()
    if not isinstance(config, dict):
        return ValidationResult.from_messages([f"Configuration must be an object, got {value_category(config)}"])

    expected = {key: value_category(value) for key, value in adapter.get_default_config().items()}
    for key, category in BASE_CONFIG_TYPES.items():
        expected.setdefault(key, category)

    errors = []
    warnings = []
    for key, value in config.items():
        if key in GENERIC_CONFIG_KEYS:
            continue
        if key not in expected:
            # Provider extensions pass through to the adapter untouched
            warnings.append(f'Unknown configuration key: "{key}"')
        elif value_category(value) != expected[key]:
            errors.append(
                f'Invalid type for key "{key}": expected {expected[key]}, got {value_category(value)}'
            )

    if not errors:
        # Range and strictness checks from the adapter's own schema
        errors.extend(adapter.config_errors(
            {k: v for k, v in config.items() if k not in GENERIC_CONFIG_KEYS}
        ))
    return ValidationResult.from_messages(errors, warnings)


def validate_before_execution(registry: AdapterRegistry, nodes: Iterable[FlowNode]) -> ValidationResult:
    """Validate every model-bound node of a flow before a run starts."""
    result = ValidationResult()
    for node in nodes:
        if node.is_prompt_source or not node.model_id:
            continue
        node_result = validate_flow_node_config(registry, node.model_id, node.config)
        if not node_result.is_valid:
            result.node_errors[node.id] = node_result.errors
            result.errors.append(
                f'Node "{node.id}" has invalid configuration: {", ".join(node_result.errors)}'
            )
    result.is_valid = not result.errors
    if not result.is_valid:
        for error in result.errors:
            logger.warning("Flow validation error: %s", error)
    return result


def validate_adapter_implementations(registry: AdapterRegistry) -> ValidationResult:
    """Check that every registered adapter fulfils the adapter contract."""
    errors = []
    for model_id, adapter in registry.items():
        if not getattr(adapter, "model_name", None):
            errors.append(f'Model "{model_id}" adapter is missing modelName property')
        if not getattr(adapter, "provider_name", None):
            errors.append(f'Model "{model_id}" adapter is missing providerName property')
        if not isinstance(getattr(adapter, "supported_features", None), (list, tuple)):
            errors.append(f'Model "{model_id}" adapter is missing supportedFeatures array')
        for method in ("build_request", "parse_response", "validate_config", "get_default_config"):
            if not callable(getattr(adapter, method, None)):
                errors.append(f'Model "{model_id}" adapter is missing {method} method')

        if callable(getattr(adapter, "get_default_config", None)):
            defaults = adapter.get_default_config()
            if not isinstance(defaults, dict):
                errors.append(f'Model "{model_id}" adapter default config is not an object')
            elif not adapter.validate_config(defaults):
                errors.append(f'Model "{model_id}" adapter rejects its own default config')
    return ValidationResult.from_messages(errors)


def validate_configuration_compatibility(registry: AdapterRegistry) -> ValidationResult:
    """Compare default configs of models sharing a provider.

    Differing value types are errors; keys present on only some models
    are warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []
    for provider_name in registry.provider_names():
        adapters = registry.by_provider(provider_name)
        if len(adapters) <= 1:
            continue
        first_config = adapters[0].get_default_config()
        for adapter in adapters[1:]:
            config = adapter.get_default_config()
            for key, value in first_config.items():
                if key not in config:
                    warnings.append(
                        f'Model "{adapter.model_name}" from "{provider_name}" is missing '
                        f'config key "{key}" that other models have'
                    )
                elif value_category(config[key]) != value_category(value):
                    errors.append(
                        f'Model "{adapter.model_name}" from "{provider_name}" has config key '
                        f'"{key}" with type {value_category(config[key])}, expected {value_category(value)}'
                    )
            for key in config:
                if key not in first_config:
                    warnings.append(
                        f'Model "{adapter.model_name}" from "{provider_name}" has extra '
                        f'config key "{key}" that other models don\'t have'
                    )
    return ValidationResult.from_messages(errors, warnings)


def validate_registry_consistency(
    registry: AdapterRegistry,
    provider_catalog: Mapping[str, Iterable[str]] = PROVIDER_CATALOG,
) -> ValidationResult:
    """Cross-check registered models against the provider catalog, both ways."""
    errors = []
    catalog = {
        provider: {model.lower(): model for model in models}
        for provider, models in provider_catalog.items()
    }

    for model_id, adapter in registry.items():
        models = catalog.get(adapter.provider_name)
        if models is None:
            errors.append(
                f'Model "{model_id}" has provider "{adapter.provider_name}" which is not in the PROVIDERS list'
            )
        elif model_id.lower() not in models:
            errors.append(
                f'Model "{model_id}" from provider "{adapter.provider_name}" is in adapter registry '
                "but missing from PROVIDERS list"
            )

    for provider_name, models in provider_catalog.items():
        for model in models:
            if model in registry:
                if registry[model].provider_name != provider_name:
                    errors.append(
                        f'Model "{model}" has inconsistent provider name: '
                        f'"{registry[model].provider_name}" in registry vs "{provider_name}" in providers list'
                    )
                continue
            adapter = registry.get(model)
            if adapter is None or adapter.provider_name != provider_name:
                errors.append(f'Model "{model}" from provider "{provider_name}" is missing in adapter registry')
    return ValidationResult.from_messages(errors)


def validate_model_system(
    registry: Optional[AdapterRegistry] = None,
    provider_catalog: Mapping[str, Iterable[str]] = PROVIDER_CATALOG,
) -> ValidationResult:
    """Run every registry-level check and combine the results."""
    registry = registry if registry is not None else get_registry()
    result = ValidationResult.combine(
        validate_registry_consistency(registry, provider_catalog),
        validate_adapter_implementations(registry),
        validate_configuration_compatibility(registry),
    )
    logger.info(
        "Model system validation: %d errors, %d warnings",
        len(result.errors), len(result.warnings),
    )
    return result
