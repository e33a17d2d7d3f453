"""xAI Grok adapter."""

from typing import ClassVar

from adapters.base import ChatCompletionsAdapter

# Registry ids (including legacy casing) -> API model ids
XAI_MODEL_MAP: dict[str, str] = {
    "grok-3-beta": "grok-3-latest",
    "grok-3-mini-beta": "grok-3-mini-latest",
    "Grok-3-beta": "grok-3-latest",
    "Grok-3-mini-beta": "grok-3-mini-latest",
}


class XAIAdapter(ChatCompletionsAdapter):
    provider_name: ClassVar[str] = "XAI"
    default_system_prompt = "You are a helpful assistant."

    def __init__(self, model_name: str):
        super().__init__(XAI_MODEL_MAP.get(model_name, model_name))

    def system_prompt(self, config: dict) -> str:
        return config.get("systemPrompt") or "You are helpful."
