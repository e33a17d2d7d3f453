"""Google Gemini generateContent adapter."""

from typing import Any, ClassVar

from adapters.base import (
    ModelAdapter,
    ParsedResponse,
    choices_content,
    option,
    raise_for_error_payload,
    usage_of,
)


class GoogleAdapter(ModelAdapter):
    provider_name: ClassVar[str] = "Google Gemini"
    supported_features = ("text", "images")
    default_system_prompt = "You are Gemini, a helpful AI assistant."

    def __init__(self, model_name: str = "gemini-1.5-pro"):
        super().__init__(model_name)

    def build_request(self, input_text: str, config: dict) -> dict:
        return {
            "model": self.model_name,
            "contents": [{"role": "user", "parts": [{"text": input_text}]}],
            "systemInstruction": {
                "parts": [{"text": config.get("systemPrompt") or "You are a helpful AI assistant."}]
            },
            "generationConfig": {
                "temperature": option(config, "temperature", 0.7),
                "maxOutputTokens": option(config, "maxTokens", 512),
            },
        }

    def parse_response(self, response: Any) -> ParsedResponse:
        raise_for_error_payload(response, self.provider_name)

        content = choices_content(response)
        if content:
            return ParsedResponse(output=content, usage=usage_of(response), raw=response)

        text = ""
        try:
            text = response["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            pass
        return ParsedResponse(
            output=text if isinstance(text, str) else "",
            usage=usage_of(response, "usageMetadata"),
            raw=response,
        )

    def get_default_config(self) -> dict:
        return {
            "temperature": 0.7,
            "maxTokens": 512,
            "systemPrompt": self.default_system_prompt,
        }
