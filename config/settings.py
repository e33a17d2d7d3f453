"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

# Per node kind output budgets used in novel mode
DEFAULT_MAX_TOKENS_BY_KIND: dict[str, int] = {
    "chapter": 2048,
    "summary": 1024,
    "dialogue": 1024,
    "retroinject": 1024,
    "outline": 2048,
}

NOVEL_FLOW_MODE = "novel"


def _check_positive_budgets(v: dict[str, int]) -> dict[str, int]:
    for kind, budget in v.items():
        if budget < 1:
            raise ValueError(f"max tokens for '{kind}' must be >= 1")
    return v


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Provider credentials are not stored here; they are looked up per
    (user, provider) by the model client's key lookup callable.
    """

    # Execution
    flow_mode: str = "default"
    mock_model_id: str = "mock-model"
    default_max_tokens_by_kind: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_MAX_TOKENS_BY_KIND)
    )
    default_node_kind_max_tokens: int = 2048  # Unlisted node kinds
    fallback_model_token_limit: int = 16000   # Models missing from MODEL_TOKEN_LIMITS

    # Network
    request_timeout: float = 60.0

    # Logging
    log_dir: Path = Path("./data/logs")
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "AGENTFLOW_",
        "extra": "ignore",
    }

    @field_validator("default_max_tokens_by_kind")
    @classmethod
    def validate_budgets(cls, v: dict[str, int]) -> dict[str, int]:
        return _check_positive_budgets(v)

    @field_validator("default_node_kind_max_tokens", "fallback_model_token_limit")
    @classmethod
    def validate_token_limits(cls, v: int) -> int:
        if v < 1:
            raise ValueError("token limits must be >= 1")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level: {v}")
        return level


class RunSettings(BaseModel):
    """Per-run settings handed to the orchestrator by the caller."""

    flow_mode: str = Field(default="default", alias="flowMode")
    max_tokens: dict[str, int] = Field(default_factory=dict, alias="maxTokens")

    model_config = {"populate_by_name": True}

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: dict[str, int]) -> dict[str, int]:
        return _check_positive_budgets(v)

    @property
    def is_novel(self) -> bool:
        return self.flow_mode == NOVEL_FLOW_MODE


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings(settings: Optional[Settings] = None) -> None:
    """Replace (or drop) the cached settings instance."""
    global _settings_instance
    _settings_instance = settings
