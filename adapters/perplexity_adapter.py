"""Perplexity Sonar adapter."""

from typing import Any, ClassVar

from adapters.base import (
    ChatCompletionsAdapter,
    ParsedResponse,
    PerplexityConfig,
    choices_content,
    raise_for_error_payload,
    usage_of,
)

PERPLEXITY_MODELS = frozenset({"sonar-pro", "sonar-deep-research"})


class PerplexityAdapter(ChatCompletionsAdapter):
    provider_name: ClassVar[str] = "Perplexity"
    supported_features = ("text", "web_search")
    config_model = PerplexityConfig
    default_system_prompt = "You are a helpful assistant."
    default_max_tokens = 8000

    def build_request(self, input_text: str, config: dict) -> dict:
        request = super().build_request(input_text, config)
        request.update({
            "top_p": 0.9,
            "return_images": False,
            "return_related_questions": False,
            "frequency_penalty": 1,
            "presence_penalty": 0,
        })
        return request

    def parse_response(self, response: Any) -> ParsedResponse:
        raise_for_error_payload(response, self.provider_name)
        citations = response.get("citations") if isinstance(response, dict) else None
        return ParsedResponse(
            output=choices_content(response) or "",
            usage=usage_of(response),
            raw=response,
            citations=citations if isinstance(citations, list) else [],
        )

    def get_default_config(self) -> dict:
        return {**super().get_default_config(), "enableWebSearch": True}

    def search_config(self) -> dict:
        """Defaults overlaid on node config before a Sonar call."""
        return {
            "systemPrompt": "You are an AI assistant providing concise and helpful information.",
            "temperature": 0.7,
            "maxTokens": 1000,
            "enableWebSearch": True,
        }
