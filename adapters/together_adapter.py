"""Together AI adapter."""

from typing import Any, ClassVar

from adapters.base import (
    ChatCompletionsAdapter,
    ParsedResponse,
    TogetherConfig,
    chat_messages,
    choices_content,
    option,
    raise_for_error_payload,
    usage_of,
)


class TogetherAdapter(ChatCompletionsAdapter):
    provider_name: ClassVar[str] = "Together AI"
    config_model = TogetherConfig
    default_temperature = 0.2
    default_max_tokens = 2048

    def build_request(self, input_text: str, config: dict) -> dict:
        # The model id travels in the URL path for the Together endpoint
        return {
            "messages": chat_messages(self.system_prompt(config), input_text),
            "temperature": option(config, "temperature", self.default_temperature),
            "top_p": option(config, "top_p", 0.9),
            "max_tokens": option(config, "maxTokens", self.default_max_tokens),
        }

    def parse_response(self, response: Any) -> ParsedResponse:
        raise_for_error_payload(response, self.provider_name)

        if isinstance(response, str):
            return ParsedResponse(output=response, raw=response)
        if isinstance(response, dict) and isinstance(response.get("content"), str):
            return ParsedResponse(
                output=response["content"],
                usage=usage_of(response),
                raw=response.get("raw") or response,
            )
        return ParsedResponse(
            output=choices_content(response) or "",
            usage=usage_of(response),
            raw=response,
        )

    def get_default_config(self) -> dict:
        return {**super().get_default_config(), "top_p": 0.9}
