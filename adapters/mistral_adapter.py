"""Mistral chat-completions adapter."""

from typing import ClassVar

from adapters.base import ChatCompletionsAdapter


class MistralAdapter(ChatCompletionsAdapter):
    provider_name: ClassVar[str] = "Mistral"

    def __init__(self, model_name: str = "mistral-large"):
        super().__init__(model_name)
