"""Cohere chat adapter."""

from typing import Any, ClassVar

from adapters.base import (
    ModelAdapter,
    ParsedResponse,
    choices_content,
    option,
    raise_for_error_payload,
)


class CohereAdapter(ModelAdapter):
    provider_name: ClassVar[str] = "Cohere"

    def __init__(self, model_name: str = "command-r-plus"):
        super().__init__(model_name)

    def build_request(self, input_text: str, config: dict) -> dict:
        return {
            "model": self.model_name,
            "message": input_text,
            "preamble": self.system_prompt(config),
            "temperature": option(config, "temperature", 0.7),
            "max_tokens": option(config, "maxTokens", 512),
        }

    def parse_response(self, response: Any) -> ParsedResponse:
        raise_for_error_payload(response, self.provider_name)

        content = choices_content(response)
        if content is None and isinstance(response, dict):
            generations = response.get("generations")
            if isinstance(generations, list) and generations and isinstance(generations[0], dict):
                content = generations[0].get("text")
            elif isinstance(response.get("text"), str):
                content = response["text"]

        usage = {}
        if isinstance(response, dict):
            meta = response.get("meta")
            if isinstance(meta, dict) and isinstance(meta.get("usage"), dict):
                usage = meta["usage"]
            elif isinstance(response.get("usage"), dict):
                usage = response["usage"]
        return ParsedResponse(output=content or "", usage=usage, raw=response)

    def get_default_config(self) -> dict:
        return {
            "temperature": 0.7,
            "maxTokens": 512,
            "systemPrompt": self.default_system_prompt,
        }
