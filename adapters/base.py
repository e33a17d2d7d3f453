"""Shared model adapter contract.

Every provider adapter translates the uniform ``(text, config)`` pair
into the provider's request body and the provider's response back into
a :class:`ParsedResponse`. Adapters are pure: no network I/O, no state
beyond the bound model name.

Node configuration uses the camelCase keys the flow editor writes
(``systemPrompt``, ``temperature``, ``maxTokens``) plus optional
provider extensions. Each adapter validates them against its own
pydantic config model.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError
from pydantic.alias_generators import to_camel

from config.exceptions import ProviderError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Config models (one per provider family)
# ---------------------------------------------------------------------------

class AdapterConfig(BaseModel):
    """Base shape shared by every provider: temperature, maxTokens, systemPrompt."""

    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    temperature: Optional[float] = Field(default=None, ge=0, le=1, strict=True)
    max_tokens: Optional[StrictInt] = Field(default=None, gt=0)
    system_prompt: Optional[StrictStr] = None


class OpenAIConfig(AdapterConfig):
    enable_web_search: Optional[StrictBool] = None


class PerplexityConfig(AdapterConfig):
    enable_web_search: Optional[StrictBool] = None


class TogetherConfig(AdapterConfig):
    top_p: Optional[float] = Field(default=None, ge=0, le=1, strict=True, alias="top_p")


def config_errors(config_model: type[AdapterConfig], config: Any) -> list[str]:
    """Return human-readable validation problems for ``config`` (empty if valid)."""
    if not isinstance(config, dict):
        return [f"Configuration must be an object, got {type(config).__name__}"]
    try:
        config_model.model_validate(config)
    except ValidationError as e:
        return [
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        ]
    return []


# ---------------------------------------------------------------------------
# Parsed response
# ---------------------------------------------------------------------------

@dataclass
class ParsedResponse:
    """Uniform view of a provider response."""
    output: str
    usage: dict = field(default_factory=dict)
    raw: Any = None
    citations: list = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {"output": self.output, "usage": self.usage, "raw": self.raw}
        if self.citations:
            data["citations"] = self.citations
        return data


# ---------------------------------------------------------------------------
# Helpers shared by the provider modules
# ---------------------------------------------------------------------------

def option(config: dict, key: str, default: Any) -> Any:
    """``config[key]`` unless missing or None."""
    value = config.get(key)
    return default if value is None else value


def raise_for_error_payload(response: Any, provider_name: str) -> None:
    """Raise ProviderError when the response carries an explicit error."""
    if not isinstance(response, dict) or not response.get("error"):
        return
    error = response["error"]
    if isinstance(error, dict):
        message = error.get("message") or response.get("message") or "Unknown error"
    else:
        message = response.get("message") or "Unknown error"
    raise ProviderError(
        f"{provider_name} API Error: {message}",
        status=response.get("status"),
        details={"provider": provider_name},
    )


def choices_content(response: Any) -> Optional[str]:
    """Content of the normalized ``{"choices": [{"message": {"content": ...}}]}`` shape."""
    if not isinstance(response, dict):
        return None
    choices = response.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def usage_of(response: Any, key: str = "usage") -> dict:
    if isinstance(response, dict) and isinstance(response.get(key), dict):
        return response[key]
    return {}


def chat_messages(system_prompt: str, input_text: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": input_text},
    ]


# ---------------------------------------------------------------------------
# Adapter contract
# ---------------------------------------------------------------------------

class ModelAdapter(ABC):
    """Base class for provider adapters."""

    provider_name: ClassVar[str] = ""
    supported_features: ClassVar[tuple[str, ...]] = ("text",)
    config_model: ClassVar[type[AdapterConfig]] = AdapterConfig
    default_system_prompt: ClassVar[str] = "You are a helpful AI assistant."

    def __init__(self, model_name: str):
        self.model_name = model_name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model_name!r})"

    @abstractmethod
    def build_request(self, input_text: str, config: dict) -> dict:
        """Build the provider request body. Never performs I/O."""

    @abstractmethod
    def parse_response(self, response: Any) -> ParsedResponse:
        """Normalize a provider response; missing content yields ``""``."""

    def validate_config(self, config: Any) -> bool:
        return not self.config_errors(config)

    def config_errors(self, config: Any) -> list[str]:
        return config_errors(self.config_model, config)

    @abstractmethod
    def get_default_config(self) -> dict:
        """Minimal safe defaults for a node without user configuration."""

    def system_prompt(self, config: dict) -> str:
        return config.get("systemPrompt") or self.default_system_prompt


class ChatCompletionsAdapter(ModelAdapter):
    """Adapter for providers speaking the OpenAI chat-completions dialect."""

    default_max_tokens: ClassVar[int] = 512
    default_temperature: ClassVar[float] = 0.7

    def api_model(self) -> str:
        return self.model_name

    def build_request(self, input_text: str, config: dict) -> dict:
        return {
            "model": self.api_model(),
            "messages": chat_messages(self.system_prompt(config), input_text),
            "temperature": option(config, "temperature", self.default_temperature),
            "max_tokens": option(config, "maxTokens", self.default_max_tokens),
        }

    def parse_response(self, response: Any) -> ParsedResponse:
        raise_for_error_payload(response, self.provider_name)
        return ParsedResponse(
            output=choices_content(response) or "",
            usage=usage_of(response),
            raw=response,
        )

    def get_default_config(self) -> dict:
        return {
            "temperature": self.default_temperature,
            "maxTokens": self.default_max_tokens,
            "systemPrompt": self.default_system_prompt,
        }
