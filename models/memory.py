"""Narrative memory threaded between novel-mode nodes."""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_EMOTIONAL_TONE = "unknown"
DEFAULT_OPEN_THREADS = ("Unclear what the next step is.",)
DEFAULT_WORLD_STATE = "unknown change"


class NarrativeMemory(BaseModel):
    """Accumulated story state.

    Instances are immutable. Keys are camelCase on the wire
    (``characterArcs``, ``emotionalTone``, ``openThreads``, ``worldState``)
    and unrecognised keys such as an outline node's ``fullOutline`` are
    kept as extras.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    character_arcs: dict[str, str] = Field(default_factory=dict)
    emotional_tone: str = DEFAULT_EMOTIONAL_TONE
    open_threads: list[str] = Field(default_factory=lambda: list(DEFAULT_OPEN_THREADS))
    world_state: str = DEFAULT_WORLD_STATE
    fallback: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]] = None, fallback: Optional[str] = None) -> "NarrativeMemory":
        """Build a default-filled memory from a (possibly partial) dict.

        Empty or missing core fields take their defaults, and every core
        field is marked as explicitly set so it takes part in merges.
        """
        data = dict(data or {})
        arcs = data.pop("characterArcs", data.pop("character_arcs", None))
        tone = data.pop("emotionalTone", data.pop("emotional_tone", None))
        threads = data.pop("openThreads", data.pop("open_threads", None))
        world = data.pop("worldState", data.pop("world_state", None))
        raw_fallback = data.pop("fallback", None)

        if not isinstance(arcs, dict):
            arcs = {}
        if isinstance(threads, str):
            threads = [threads]
        if not isinstance(threads, list) or not threads:
            threads = list(DEFAULT_OPEN_THREADS)

        return cls(
            character_arcs={str(k): str(v) for k, v in arcs.items()},
            emotional_tone=str(tone) if tone else DEFAULT_EMOTIONAL_TONE,
            open_threads=[str(t) for t in threads],
            world_state=str(world) if world else DEFAULT_WORLD_STATE,
            fallback=fallback if fallback is not None else raw_fallback,
            **data,
        )

    def explicit_data(self) -> dict[str, Any]:
        """Top-level keys this memory carries explicitly, by field name."""
        data = {name: getattr(self, name) for name in self.model_fields_set}
        data.update(self.model_extra or {})
        return data

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def render(self) -> str:
        """Plain-text rendering used inside chapter prompts."""
        return "\n".join([
            f"Character Arcs: {json.dumps(self.character_arcs, indent=2, ensure_ascii=False)}",
            f"Emotional Tone: {self.emotional_tone or 'neutral'}",
            f"Open Threads: {', '.join(self.open_threads) or 'none'}",
            f"World State: {self.world_state or 'unchanged'}",
        ])


def default_memory() -> NarrativeMemory:
    return NarrativeMemory()


def merge_narrative_memory(*memories: NarrativeMemory) -> NarrativeMemory:
    """Merge memories with shallow, last-write-wins override per key.

    Only keys a memory carries explicitly override earlier values, so
    ``merge(merge(a, b), c) == merge(a, b, c)``. With no arguments the
    all-defaults memory is returned.
    """
    merged: dict[str, Any] = {}
    for memory in memories:
        merged.update(memory.explicit_data())
    return NarrativeMemory(**merged)
