"""Debug trace record for a single node execution."""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from models.flow import utc_timestamp


@dataclass(frozen=True)
class DebugRecord:
    node_id: str
    model_id: str
    prompt: str
    raw_output: str
    parsed_output: Any = None
    timestamp: str = field(default_factory=utc_timestamp)
    duration_ms: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
