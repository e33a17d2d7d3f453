"""Narrative prompt templates and the per-kind prompt builders.

Each builder receives a :class:`PromptContext` (the node, its upstream
values and the merged narrative memory) and returns the prompt text for
one novel-mode node kind. Kinds without a builder use
:func:`default_prompt`.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from models.enums import NodeKind
from models.flow import FlowNode, OutlineEntry
from models.memory import NarrativeMemory
from tools.outline_parser import get_outline_entry_for_chapter
from tools.text_utils import extract_chapter_number, flatten_input, unwrap_text

logger = logging.getLogger(__name__)

DEFAULT_CHARACTERS = ("Elena", "Dmitri")

CHAPTER_TEMPLATE = """\
You are writing Chapter {chapter_number}: {title} of a nonlinear sci-fi novel.

Goal for this chapter:
{summary}

Narrative memory from prior chapters:
{memory}

Write the full chapter."""

DIALOGUE_TEMPLATE = """\
Write a dialogue scene based on the following situation:

Context: {context}
Characters: {characters}

Let them argue, reveal fears, or uncover clues through tense, realistic dialogue."""

SUMMARY_TEMPLATE = """\
You are a helpful summarization assistant.

Task: Summarize the following novel chapter in 3 paragraphs or less.

---

Chapter Content:
{chapter_text}

---

Please begin the summary below:"""

MEMORY_EXTRACTION_TEMPLATE = """\
You are an expert narrative analyst tasked with extracting memory structure from a chapter summary.

Return ONLY a strict JSON object with the following fields:
- "characterArcs": map of named characters to how they changed
- "emotionalTone": 1-line description of the protagonist's emotional state
- "openThreads": 2-5 unresolved narrative questions or mysteries
- "worldState": what materially or thematically changed in the world

Example:
{{
  "characterArcs": {{
    "Elara": "Becomes unsettled by the possibility of alternate realities"
  }},
  "emotionalTone": "shaken and questioning reality",
  "openThreads": [
    "What happened to Karim?",
    "Has the core altered history?",
    "Why is Elara the only one who remembers?"
  ],
  "worldState": "Temporal anomalies have likely rewritten reality"
}}

Chapter Summary:
{summary}

Respond ONLY with a valid JSON object. Do NOT use markdown, comments, or prose."""

OUTLINE_TEMPLATE = "{system_prompt}\n\nUser Prompt:\n{user_prompt}"

FALLBACK_PROMPT = "Write something creative."


@dataclass
class PromptContext:
    """Everything a prompt builder may look at for one node."""
    node: FlowNode
    inputs: list[Any] = field(default_factory=list)
    memory: NarrativeMemory = field(default_factory=NarrativeMemory)
    # Upstream nodes aligned with ``inputs``; None where unknown
    upstream: list[Optional[FlowNode]] = field(default_factory=list)

    @property
    def first_input(self) -> Any:
        return self.inputs[0] if self.inputs else None

    @property
    def chapter_number(self) -> int:
        return extract_chapter_number(self.node.config.get("label") or self.node.id)

    def outline_source(self) -> Any:
        """Output of the first upstream outline node, else the memory's ``fullOutline``."""
        for i, upstream in enumerate(self.upstream):
            if upstream is not None and upstream.node_kind == NodeKind.OUTLINE.value and i < len(self.inputs):
                return self.inputs[i]
        return (self.memory.model_extra or {}).get("fullOutline")

    def outline_entry(self) -> OutlineEntry:
        source = self.outline_source()
        if source is None:
            return OutlineEntry(title=f"Chapter {self.chapter_number}")
        return get_outline_entry_for_chapter(source, self.chapter_number)

    def characters(self) -> list[str]:
        configured = self.node.config.get("characters")
        if isinstance(configured, str):
            configured = [c.strip() for c in configured.split(",") if c.strip()]
        if isinstance(configured, list) and configured:
            return [str(c) for c in configured]
        return list(DEFAULT_CHARACTERS)


PromptBuilder = Callable[[PromptContext], str]


def summary_prompt(ctx: PromptContext) -> str:
    return SUMMARY_TEMPLATE.format(chapter_text=unwrap_text(ctx.first_input))


def chapter_prompt(ctx: PromptContext) -> str:
    entry = ctx.outline_entry()
    return CHAPTER_TEMPLATE.format(
        chapter_number=ctx.chapter_number,
        title=entry.title,
        summary=entry.summary,
        memory=ctx.memory.render(),
    )


def dialogue_prompt(ctx: PromptContext) -> str:
    return DIALOGUE_TEMPLATE.format(
        context=flatten_input(ctx.first_input),
        characters=", ".join(ctx.characters()),
    )


def retroinject_prompt(ctx: PromptContext) -> str:
    return MEMORY_EXTRACTION_TEMPLATE.format(summary=flatten_input(ctx.inputs))


def outline_prompt(ctx: PromptContext) -> str:
    if ctx.node.prompt:
        user_prompt = ctx.node.prompt
    else:
        first = ctx.first_input
        user_prompt = first if isinstance(first, str) else unwrap_text(first)
    return OUTLINE_TEMPLATE.format(
        system_prompt=ctx.node.config.get("systemPrompt") or "",
        user_prompt=user_prompt,
    )


def default_prompt(ctx: PromptContext) -> str:
    """Upstream text as-is, or a generic instruction when there is none."""
    return flatten_input(ctx.inputs) or FALLBACK_PROMPT


PROMPT_BUILDERS: dict[str, PromptBuilder] = {
    NodeKind.SUMMARY.value: summary_prompt,
    NodeKind.CHAPTER.value: chapter_prompt,
    NodeKind.DIALOGUE.value: dialogue_prompt,
    NodeKind.RETROINJECT.value: retroinject_prompt,
    NodeKind.OUTLINE.value: outline_prompt,
}


def build_prompt(kind: Optional[str], ctx: PromptContext) -> str:
    builder = PROMPT_BUILDERS.get(kind or "", default_prompt)
    prompt = builder(ctx)
    logger.debug("Prompt for node %s (kind=%s): %s", ctx.node.id, kind, prompt[:300])
    return prompt
