"""Planner agent — turns an intent into a strategic plan."""

import json
import logging
import re

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from core.state import COMPLEXITY_LEVELS, PLAN_APPROACHES, IntentAnalysis, StrategicPlan
from utils.llm import CompletionError, ParseError, parse_json_response

logger = logging.getLogger(__name__)

EDIT_TYPE_WEIGHTS = {"FIX": 1, "UPDATE": 2, "ENHANCE": 3, "CREATE": 4, "REFACTOR": 5}

# (section heading text, plan field, default items)
PLAN_SECTIONS = [
    ("IMPLEMENTATION PHASES", "phases", ["Planning", "Implementation", "Testing"]),
    ("RISK ASSESSMENT", "risk_assessment", ["Standard implementation risks"]),
    ("SUCCESS CRITERIA", "success_criteria", ["Functionality works as requested"]),
]

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*(.+)$")


def estimate_complexity(intent: IntentAnalysis, file_count):
    score = EDIT_TYPE_WEIGHTS.get(intent.edit_type, 3)
    score += min(len(intent.target_files), 3)
    score += min(file_count / 10, 2)
    if score <= 3:
        return "low"
    if score <= 6:
        return "medium"
    return "high"


def _default_approach(intent):
    return "surgical_edit" if intent.surgical_edit else "new_creation"


def fallback_plan(intent: IntentAnalysis):
    return StrategicPlan(
        approach=_default_approach(intent),
        reasoning="Fallback plan due to planning error",
        phases=["analyze", "modify", "validate"],
        risk_assessment=["Unknown risks due to planning failure"],
        success_criteria=["Complete requested changes"],
        estimated_complexity="medium",
    )


def extract_section_items(text, heading):
    """Bullet and numbered items under the markdown heading containing `heading`."""
    match = re.search(
        r"^#{1,6}[^\n]*" + re.escape(heading) + r"[^\n]*\n(.*?)(?=^#{1,6}\s|\Z)",
        text,
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    )
    if not match:
        return []
    items = []
    for line in match.group(1).split("\n"):
        bullet = _BULLET_RE.match(line)
        if bullet:
            items.append(bullet.group(1).strip())
    return items


def has_plan_sections(text):
    return any(extract_section_items(text, heading) for heading, _, _ in PLAN_SECTIONS)


def plan_from_markdown(text, intent: IntentAnalysis, file_count):
    """Build a plan from a free-text markdown answer, with defaults for missing sections."""
    fields = {}
    for heading, field_name, default in PLAN_SECTIONS:
        fields[field_name] = extract_section_items(text, heading) or list(default)
    return StrategicPlan(
        approach=_default_approach(intent),
        reasoning=text.strip(),
        estimated_complexity=estimate_complexity(intent, file_count),
        **fields,
    )


def plan_from_dict(data, intent: IntentAnalysis, file_count):
    approach = data.get("approach")
    if approach not in PLAN_APPROACHES:
        approach = _default_approach(intent)
    complexity = data.get("estimatedComplexity")
    if complexity not in COMPLEXITY_LEVELS:
        complexity = estimate_complexity(intent, file_count)

    def as_list(key):
        value = data.get(key)
        return [str(v) for v in value] if isinstance(value, list) else []

    return StrategicPlan(
        approach=approach,
        reasoning=str(data.get("reasoning", "")),
        phases=as_list("phases"),
        risk_assessment=as_list("riskAssessment"),
        success_criteria=as_list("successCriteria"),
        estimated_complexity=complexity,
    )


class StrategicPlanner(BaseAgent):
    """Produces a StrategicPlan. Never fails: unusable answers become the fallback plan."""

    name = "planner"
    phase = "planning"
    system_prompt = "planner_system"

    async def create_plan(self, intent, context=None, project_summary="", user_preferences=None,
                          file_count=0, streamer=None):
        snippets = []
        if context is not None:
            for path, found in list(context.snippets.items())[:5]:
                snippets.append(f"--- {path}\n" + "\n...\n".join(found[:3]))
        user_prompt = self.render(
            "planner",
            edit_type=intent.edit_type,
            reasoning=intent.reasoning,
            target_files=", ".join(intent.target_files) or "(none)",
            expected_changes="\n".join(f"- {c}" for c in intent.expected_changes),
            search_confidence=f"{context.confidence if context is not None else 0.0:.0%}",
            snippets="\n\n".join(snippets) or "(no matching code)",
            project_summary=project_summary,
            preferences=json.dumps(user_preferences or {}, indent=2),
        )
        on_chunk = streamer.stream_plan_thinking if streamer else None

        try:
            response = await self._call_llm(user_prompt, on_chunk=on_chunk)
        except CompletionError as e:
            logger.warning("Planning call failed, using fallback plan: %s", e)
            plan = fallback_plan(intent)
        else:
            try:
                plan = plan_from_dict(parse_json_response(response), intent, file_count)
            except ParseError:
                if has_plan_sections(response):
                    plan = plan_from_markdown(response, intent, file_count)
                else:
                    logger.warning("Plan response was not JSON, using fallback plan")
                    plan = fallback_plan(intent)

        if streamer:
            streamer.complete_planning(plan)
        return plan

    async def create_enhanced_plan(self, prompt, intent, codebase, conversation_context="",
                                   project_summary="", user_preferences=None, streamer=None):
        """Markdown planning pass used by the plan-only flow."""
        files = list(codebase)
        user_prompt = self.render(
            "enhanced_planner",
            prompt=prompt,
            edit_type=intent.edit_type,
            confidence=f"{intent.confidence:.2f}",
            reasoning=intent.reasoning,
            target_files=", ".join(intent.target_files) or "(none)",
            conversation_context=conversation_context,
            project_summary=project_summary,
            preferences=json.dumps(user_preferences or {}, indent=2),
            file_list="\n".join(f"- {path}" for path in files[:30]),
        )
        on_chunk = streamer.stream_plan_thinking if streamer else None
        try:
            response = await self._call_llm(
                user_prompt,
                on_chunk=on_chunk,
                system_prompt=self.render("enhanced_planner_system"),
                temperature=DEFAULTS["temperatures"]["enhanced_planning"],
            )
            plan = plan_from_markdown(response, intent, len(files))
        except CompletionError as e:
            logger.warning("Enhanced planning call failed, using fallback plan: %s", e)
            plan = fallback_plan(intent)

        if streamer:
            streamer.complete_planning(plan)
        return plan
