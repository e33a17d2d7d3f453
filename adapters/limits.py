"""Per-model output token ceilings used for novel-mode budgets."""

from typing import Optional

from adapters.anthropic_adapter import ANTHROPIC_TOKEN_LIMITS

MODEL_TOKEN_LIMITS: dict[str, int] = {
    **ANTHROPIC_TOKEN_LIMITS,
    "gpt-4o": 128000,
}

FALLBACK_MODEL_TOKEN_LIMIT = 16000


def model_token_limit(model_id: Optional[str], fallback: int = FALLBACK_MODEL_TOKEN_LIMIT) -> int:
    """Output ceiling for ``model_id``; unlisted models get ``fallback``."""
    if not model_id:
        return fallback
    return MODEL_TOKEN_LIMITS.get(model_id, fallback)
