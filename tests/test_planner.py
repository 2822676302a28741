"""Tests for agents.planner — the completion client is mocked."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from agents.planner import (
    StrategicPlanner,
    estimate_complexity,
    extract_section_items,
    fallback_plan,
    plan_from_markdown,
)
from core.state import IntentAnalysis, RetrievedContext
from core.streaming import ProgressStreamer
from utils.llm import RateLimitError

MARKDOWN_PLAN = """## 🎯 STRATEGY
Keep it small.

## 📋 IMPLEMENTATION PHASES
1. Locate the header
2. Add the sticky class
- Verify scroll behaviour

## ⚠️ RISK ASSESSMENT
* Overlap with the nav bar

## ✅ SUCCESS CRITERIA
"""


def _make_intent(edit_type="UPDATE", surgical=True, targets=("Header.tsx",)):
    return IntentAnalysis(
        edit_type=edit_type,
        reasoning="Make the header sticky",
        target_files=list(targets),
        expected_changes=["sticky header"],
        surgical_edit=surgical,
        confidence=0.8,
    )


def _make_client(response=None, error=None, chunks=()):
    async def collect(system, user, model, temperature, on_chunk=None):
        if error is not None:
            raise error
        for chunk in chunks:
            if on_chunk:
                on_chunk(chunk)
        return response

    client = MagicMock()
    client.collect = AsyncMock(side_effect=collect)
    return client


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_estimate_complexity():
    assert estimate_complexity(_make_intent("FIX", targets=()), 0) == "low"
    assert estimate_complexity(_make_intent("ENHANCE", targets=("a", "b")), 10) == "medium"
    assert estimate_complexity(_make_intent("REFACTOR", targets=("a", "b", "c", "d")), 50) == "high"


def test_extract_section_items():
    assert extract_section_items(MARKDOWN_PLAN, "IMPLEMENTATION PHASES") == [
        "Locate the header",
        "Add the sticky class",
        "Verify scroll behaviour",
    ]
    assert extract_section_items(MARKDOWN_PLAN, "SUCCESS CRITERIA") == []
    assert extract_section_items(MARKDOWN_PLAN, "MISSING") == []


def test_plan_from_markdown_defaults():
    plan = plan_from_markdown(MARKDOWN_PLAN, _make_intent(), 3)
    assert plan.approach == "surgical_edit"
    assert plan.risk_assessment == ["Overlap with the nav bar"]
    assert plan.success_criteria == ["Functionality works as requested"]

    empty = plan_from_markdown("nothing useful", _make_intent(surgical=False), 0)
    assert empty.phases == ["Planning", "Implementation", "Testing"]
    assert empty.risk_assessment == ["Standard implementation risks"]
    assert empty.approach == "new_creation"


def test_fallback_plan():
    plan = fallback_plan(_make_intent(surgical=False))
    assert plan.approach == "new_creation"
    assert plan.phases == ["analyze", "modify", "validate"]
    assert plan.estimated_complexity == "medium"


# ---------------------------------------------------------------------------
# create_plan
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_json_plan_is_normalized():
    answer = {
        "approach": "multi_file_refactor",
        "reasoning": "touches many files",
        "phases": ["a", "b"],
        "riskAssessment": ["r"],
        "successCriteria": ["s"],
        "estimatedComplexity": "enormous",
    }
    planner = StrategicPlanner(_make_client(json.dumps(answer)))
    plan = await planner.create_plan(_make_intent("FIX", targets=()), file_count=0)
    assert plan.approach == "multi_file_refactor"
    assert plan.phases == ["a", "b"]
    assert plan.estimated_complexity == "low"


@pytest.mark.asyncio
async def test_markdown_answer_is_used_when_no_json():
    planner = StrategicPlanner(_make_client(MARKDOWN_PLAN))
    plan = await planner.create_plan(_make_intent())
    assert plan.phases[0] == "Locate the header"


@pytest.mark.asyncio
async def test_unusable_answer_gives_fallback():
    planner = StrategicPlanner(_make_client("no idea"))
    plan = await planner.create_plan(_make_intent())
    assert plan.reasoning == "Fallback plan due to planning error"
    assert plan.approach == "surgical_edit"


@pytest.mark.asyncio
async def test_completion_error_gives_fallback():
    planner = StrategicPlanner(_make_client(error=RateLimitError("429")))
    plan = await planner.create_plan(_make_intent())
    assert plan.phases == ["analyze", "modify", "validate"]


@pytest.mark.asyncio
async def test_plan_streams_thinking_and_completion():
    events = []
    streamer = ProgressStreamer(events.append)
    answer = json.dumps({"approach": "surgical_edit", "reasoning": "r"})
    planner = StrategicPlanner(_make_client(answer, chunks=["{\"appro", "ach\"..."]))
    await planner.create_plan(_make_intent(), streamer=streamer)
    assert [e.type for e in events] == ["plan-thinking", "plan-thinking", "plan-complete"]
    assert events[0].content == "{\"appro"


@pytest.mark.asyncio
async def test_snippets_reach_the_prompt():
    client = _make_client(json.dumps({"approach": "surgical_edit"}))
    context = RetrievedContext(snippets={"Header.tsx": ["<header className='top'>"]})
    await StrategicPlanner(client).create_plan(_make_intent(), context, project_summary="Project: demo")
    user_prompt = client.collect.call_args.args[1]
    assert "<header className='top'>" in user_prompt
    assert "Project: demo" in user_prompt
    assert client.collect.call_args.args[3] == 0.2


@pytest.mark.asyncio
async def test_prompt_carries_retrieval_confidence_not_intent_confidence():
    client = _make_client(json.dumps({"approach": "surgical_edit"}))
    intent = _make_intent()
    intent.confidence = 0.9
    await StrategicPlanner(client).create_plan(intent, RetrievedContext(confidence=0.0))
    user_prompt = client.collect.call_args.args[1]
    assert "- Search confidence: 0%" in user_prompt
    assert "0.90" not in user_prompt

    await StrategicPlanner(client).create_plan(intent, RetrievedContext(confidence=0.5))
    assert "- Search confidence: 50%" in client.collect.call_args.args[1]

    await StrategicPlanner(client).create_plan(intent)
    assert "- Search confidence: 0%" in client.collect.call_args.args[1]


# ---------------------------------------------------------------------------
# create_enhanced_plan
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_enhanced_plan_from_markdown():
    client = _make_client(MARKDOWN_PLAN)
    planner = StrategicPlanner(client)
    plan = await planner.create_enhanced_plan(
        "make the header sticky",
        _make_intent(),
        {"Header.tsx": "..."},
        conversation_context="# CONVERSATION CONTEXT",
        user_preferences={"styling": "tailwind"},
    )
    assert plan.phases == ["Locate the header", "Add the sticky class", "Verify scroll behaviour"]
    system, user, _, temperature = client.collect.call_args.args
    assert temperature == 0.3
    assert "IMPLEMENTATION PHASES" in user
    assert "tailwind" in user
    assert "- Header.tsx" in user
    assert "architect" in system


@pytest.mark.asyncio
async def test_enhanced_plan_completion_error():
    planner = StrategicPlanner(_make_client(error=RateLimitError("429")))
    plan = await planner.create_enhanced_plan("x", _make_intent(), {})
    assert plan.reasoning == "Fallback plan due to planning error"
