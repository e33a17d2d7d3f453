"""Mock adapter: simulates a model without any network access."""

from typing import Any, ClassVar

from adapters.base import ModelAdapter, ParsedResponse

MOCK_MODEL_ID = "mock-model"


class MockAdapter(ModelAdapter):
    provider_name: ClassVar[str] = "Mock"
    supported_features = ("test",)

    def __init__(self, model_name: str = MOCK_MODEL_ID):
        super().__init__(model_name)

    def build_request(self, input_text: Any, config: dict) -> dict:
        return {"input": input_text, "config": config}

    def parse_response(self, response: Any) -> ParsedResponse:
        simulated = response.get("input") if isinstance(response, dict) else response
        return ParsedResponse(output=f"[Simulated output for: {simulated}]", usage={}, raw=response)

    def validate_config(self, config: Any) -> bool:
        return True

    def config_errors(self, config: Any) -> list[str]:
        return []

    def get_default_config(self) -> dict:
        return {}
