"""Tests for novel-mode prompt construction."""

import json

OUTLINE = [
    {"title": "Arrival", "summary": "The crew wakes early."},
    {"title": "The Breach", "summary": "Hull integrity fails on deck 9."},
]


def _ctx(node, inputs=(), memory=None, upstream=()):
    from models.memory import NarrativeMemory
    from workflow.prompts import PromptContext
    return PromptContext(
        node=node,
        inputs=list(inputs),
        memory=memory or NarrativeMemory(),
        upstream=list(upstream),
    )


class TestChapterPrompt:
    def test_uses_upstream_outline_entry(self, make_node):
        from workflow.prompts import build_prompt
        outline_node = make_node("outline", node_kind="outline")
        node = make_node("ch2", ["outline"], node_kind="chapter", config={"label": "Chapter 2"})
        prompt = build_prompt("chapter", _ctx(node, [json.dumps(OUTLINE)], upstream=[outline_node]))
        assert "Chapter 2: The Breach" in prompt
        assert "Hull integrity fails on deck 9." in prompt
        assert "Emotional Tone: unknown" in prompt

    def test_falls_back_to_memory_outline(self, make_node):
        from models.memory import NarrativeMemory
        from workflow.prompts import build_prompt
        memory = NarrativeMemory.from_dict({"fullOutline": OUTLINE, "emotionalTone": "tense"})
        node = make_node("ch1", node_kind="chapter", config={"label": "Chapter 1"})
        prompt = build_prompt("chapter", _ctx(node, memory=memory))
        assert "Chapter 1: Arrival" in prompt
        assert "Emotional Tone: tense" in prompt

    def test_chapter_number_from_node_id(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("ch3", node_kind="chapter")
        assert "Chapter 3: Chapter 3" in build_prompt("chapter", _ctx(node))

    def test_missing_outline_entry_defaults(self, make_node):
        from workflow.prompts import build_prompt
        outline_node = make_node("outline", node_kind="outline")
        node = make_node("x", node_kind="chapter", config={"label": "Chapter 9"})
        prompt = build_prompt("chapter", _ctx(node, [json.dumps(OUTLINE)], upstream=[outline_node]))
        assert "Chapter 9: Chapter 9" in prompt


class TestOtherKinds:
    def test_summary_wraps_chapter_text(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("sum", node_kind="summary")
        prompt = build_prompt("summary", _ctx(node, [{"output": "The chapter happened."}]))
        assert "Summarize the following novel chapter" in prompt
        assert "The chapter happened." in prompt

    def test_dialogue_default_characters(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("dlg", node_kind="dialogue")
        prompt = build_prompt("dialogue", _ctx(node, ["An airlock jams."]))
        assert "Context: An airlock jams." in prompt
        assert "Characters: Elena, Dmitri" in prompt

    def test_dialogue_configured_characters(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("dlg", node_kind="dialogue", config={"characters": "Ada, Bo"})
        assert "Characters: Ada, Bo" in build_prompt("dialogue", _ctx(node, ["x"]))

    def test_retroinject_asks_for_json(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("retro", node_kind="retroinject")
        prompt = build_prompt("retroinject", _ctx(node, ["Summary one", "Summary two"]))
        assert "Respond ONLY with a valid JSON object" in prompt
        assert "Summary one\nSummary two" in prompt
        assert '"characterArcs": {' in prompt

    def test_outline_prefers_node_prompt(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("outline", node_kind="outline", prompt="A heist",
                         config={"systemPrompt": "Return JSON."})
        assert build_prompt("outline", _ctx(node, ["ignored"])) == "Return JSON.\n\nUser Prompt:\nA heist"

    def test_outline_uses_first_input(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("outline", node_kind="outline")
        assert build_prompt("outline", _ctx(node, ["A heist"])).endswith("User Prompt:\nA heist")

    def test_unknown_kind_passes_inputs_through(self, make_node):
        from workflow.prompts import build_prompt
        node = make_node("c", node_kind="compiler")
        assert build_prompt("compiler", _ctx(node, ["a", "b"])) == "a\nb"

    def test_no_kind_and_no_input(self, make_node):
        from workflow.prompts import FALLBACK_PROMPT, build_prompt
        assert build_prompt(None, _ctx(make_node("n"))) == FALLBACK_PROMPT
