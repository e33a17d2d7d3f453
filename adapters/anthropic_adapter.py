"""Anthropic messages adapter."""

import logging
from typing import Any, ClassVar

from adapters.base import (
    ModelAdapter,
    ParsedResponse,
    choices_content,
    option,
    raise_for_error_payload,
    usage_of,
)

logger = logging.getLogger(__name__)

# Output token ceilings per model
ANTHROPIC_TOKEN_LIMITS: dict[str, int] = {
    "claude-3-7-sonnet-20250219": 16384,
    "claude-3-opus-20240229": 32768,
    "claude-3-sonnet-20240229": 16384,
    "claude-3-haiku-20240307": 4096,
}
DEFAULT_ANTHROPIC_LIMIT = 4096

# Legacy ids kept working for saved flows
ANTHROPIC_ALIASES: dict[str, str] = {
    "claude-3.7-sonnet": "claude-3-7-sonnet-20250219",
}


class AnthropicAdapter(ModelAdapter):
    provider_name: ClassVar[str] = "Anthropic"
    default_system_prompt = "You are Claude, a helpful AI assistant."

    def __init__(self, model_name: str):
        super().__init__(ANTHROPIC_ALIASES.get(model_name, model_name))

    @property
    def token_limit(self) -> int:
        return ANTHROPIC_TOKEN_LIMITS.get(self.model_name, DEFAULT_ANTHROPIC_LIMIT)

    def build_request(self, input_text: str, config: dict) -> dict:
        max_tokens = min(option(config, "maxTokens", 1024), self.token_limit)
        logger.debug(
            "Building Anthropic request for %s with max_tokens=%d (limit %d)",
            self.model_name, max_tokens, self.token_limit,
        )
        return {
            "model": self.model_name,
            "system": self.system_prompt(config),
            "messages": [{"role": "user", "content": input_text}],
            "max_tokens": max_tokens,
            "temperature": option(config, "temperature", 0.7),
        }

    def parse_response(self, response: Any) -> ParsedResponse:
        raise_for_error_payload(response, self.provider_name)

        content = choices_content(response)
        if content:
            return ParsedResponse(output=content, usage=usage_of(response), raw=response)

        # Native shape: {"content": [{"type": "text", "text": ...}, ...]}
        blocks = response.get("content") if isinstance(response, dict) else None
        if isinstance(blocks, list):
            text = next(
                (b.get("text") for b in blocks if isinstance(b, dict) and b.get("type") == "text"),
                None,
            )
            return ParsedResponse(output=text or "", usage=usage_of(response), raw=response)

        logger.warning("Unrecognized Anthropic response structure for %s", self.model_name)
        return ParsedResponse(output="", usage={}, raw=response)

    def get_default_config(self) -> dict:
        return {
            "temperature": 0.7,
            "maxTokens": 4096,
            "systemPrompt": self.default_system_prompt,
        }
