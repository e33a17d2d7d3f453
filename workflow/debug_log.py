"""Append-only log of per-node debug records."""

import json
import logging
import threading
from pathlib import Path
from typing import Any

from models.debug import DebugRecord

logger = logging.getLogger(__name__)


class DebugLog:
    """Collects one DebugRecord per node execution.

    Records are only ever appended; they disappear only through an
    explicit :meth:`clear`. Safe to share between threads.
    """

    def __init__(self):
        self._records: list[DebugRecord] = []
        self._lock = threading.Lock()

    def append(self, record: DebugRecord) -> None:
        with self._lock:
            self._records.append(record)
        logger.debug(
            "Debug record: node=%s model=%s duration=%dms%s",
            record.node_id, record.model_id, record.duration_ms,
            f" error={record.error}" if record.error else "",
        )

    @property
    def records(self) -> list[DebugRecord]:
        """Snapshot of the records in append order."""
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.records]

    def dump(self, path: str | Path) -> Path:
        """Write the records to ``path`` as a JSON array."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(self.to_list(), ensure_ascii=False, indent=2, default=str),
            encoding="utf-8",
        )
        return path
