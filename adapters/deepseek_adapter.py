"""DeepSeek adapter."""

from typing import ClassVar

from adapters.base import ChatCompletionsAdapter


class DeepSeekAdapter(ChatCompletionsAdapter):
    provider_name: ClassVar[str] = "DeepSeek"
    default_system_prompt = "You are a helpful assistant."

    def __init__(self, model_name: str):
        super().__init__(model_name.lower())

    def api_model(self) -> str:
        # deepseek-v3-* -> deepseek-chat, deepseek-r1 -> deepseek-reasoner
        if "v3" in self.model_name:
            return "deepseek-chat"
        if "r1" in self.model_name:
            return "deepseek-reasoner"
        return self.model_name

    def system_prompt(self, config: dict) -> str:
        return config.get("systemPrompt") or "You are helpful."
