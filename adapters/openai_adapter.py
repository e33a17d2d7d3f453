"""OpenAI chat-completions adapter."""

from typing import Any, ClassVar

from adapters.base import ChatCompletionsAdapter, OpenAIConfig, chat_messages, option

# Reasoning models that only accept max_completion_tokens
COMPLETION_TOKEN_MODELS = frozenset({"o3", "o3-mini", "o4-mini"})

WEB_SEARCH_MODELS = frozenset({"gpt-4.1", "gpt-4.1-mini-2025-04-14"})

_WEB_SEARCH_TOOL = {
    "type": "function",
    "function": {
        "name": "web_search",
        "description": "Search the web for relevant information",
        "parameters": {"type": "object", "properties": {}, "required": []},
    },
}


class OpenAIAdapter(ChatCompletionsAdapter):
    provider_name: ClassVar[str] = "OpenAI"
    supported_features = ("text", "images", "web_search")
    config_model = OpenAIConfig
    default_system_prompt = "You are a helpful assistant."

    def __init__(self, model_name: str = "gpt-4o"):
        super().__init__(model_name)

    def token_param(self) -> str:
        if self.model_name in COMPLETION_TOKEN_MODELS:
            return "max_completion_tokens"
        return "max_tokens"

    def build_request(self, input_text: str, config: dict) -> dict:
        request: dict[str, Any] = {
            "model": self.model_name,
            "messages": chat_messages(config.get("systemPrompt") or "You are helpful.", input_text),
            "temperature": option(config, "temperature", self.default_temperature),
            self.token_param(): option(config, "maxTokens", self.default_max_tokens),
        }
        if config.get("enableWebSearch") and self.model_name in WEB_SEARCH_MODELS:
            request["tools"] = [_WEB_SEARCH_TOOL]
        return request

    def get_default_config(self) -> dict:
        return {**super().get_default_config(), "enableWebSearch": False}
