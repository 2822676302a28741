"""Intent classifier — decides what kind of change a request asks for."""

import logging

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from core.state import EDIT_TYPES, CodebaseContext, IntentAnalysis
from manager.edit_patterns import EditPatternCatalog
from utils.llm import CompletionError, ParseError, parse_json_response
from utils.scoring import fallback_search_terms

logger = logging.getLogger(__name__)


def _as_list(value):
    if isinstance(value, list):
        return [str(v) for v in value if v not in (None, "")]
    if isinstance(value, str) and value:
        return [value]
    return []


def _unique(items):
    return list(dict.fromkeys(items))


def summarize_codebase(context: CodebaseContext):
    """Bounded text summary of the snapshot for the intent prompt."""
    paths = list(context.files)
    lines = [f"FILES ({len(paths)} total):"]
    for path in paths[:DEFAULTS["summary_max_files"]]:
        lines.append(f"- {path} ({len(context.files[path])} chars)")
    if context.component_list:
        lines.append("\nCOMPONENTS:")
        lines.extend(f"- {c}" for c in context.component_list[:DEFAULTS["summary_max_components"]])
    if context.recent_changes:
        lines.append("\nRECENT CHANGES:")
        lines.extend(f"- {c}" for c in context.recent_changes)
    return "\n".join(lines)


def fallback_intent(prompt):
    """Degraded analysis used when the model answer is unusable."""
    return IntentAnalysis(
        edit_type="CREATE",
        reasoning="Fallback analysis due to parsing error",
        target_files=[],
        search_terms=fallback_search_terms(prompt, DEFAULTS["fallback_keyword_limit"]),
        regex_patterns=[],
        expected_changes=["Generate requested functionality"],
        surgical_edit=False,
        confidence=DEFAULTS["fallback_confidence"],
    )


def intent_from_dict(data):
    """Normalize a parsed model answer into an IntentAnalysis."""
    edit_type = str(data.get("editType", "")).upper()
    if edit_type not in EDIT_TYPES:
        edit_type = "CREATE"
    try:
        confidence = float(data.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5
    return IntentAnalysis(
        edit_type=edit_type,
        reasoning=str(data.get("reasoning", "")),
        target_files=_unique(_as_list(data.get("targetFiles"))),
        search_terms=_unique(_as_list(data.get("searchTerms"))),
        regex_patterns=_unique(_as_list(data.get("regexPatterns"))),
        expected_changes=_as_list(data.get("expectedChanges")),
        surgical_edit=bool(data.get("surgicalEdit", False)),
        confidence=min(max(confidence, 0.0), 1.0),
    )


class IntentClassifier(BaseAgent):
    """Asks the model for a structured intent, then sharpens it with the edit catalog."""

    name = "intent"
    phase = "intent"
    system_prompt = "intent_system"

    def __init__(self, client=None, catalog=None, **kwargs):
        super().__init__(client=client, **kwargs)
        self.catalog = catalog or EditPatternCatalog()

    async def analyze_intent(self, prompt, codebase: CodebaseContext) -> IntentAnalysis:
        user_prompt = self.render("intent", prompt=prompt, context_summary=summarize_codebase(codebase))
        try:
            response = await self._call_llm(user_prompt)
            intent = intent_from_dict(parse_json_response(response))
        except (CompletionError, ParseError) as e:
            logger.warning("Intent analysis fell back to keywords: %s", e)
            return fallback_intent(prompt)

        intent = self.enrich(intent, prompt)
        logger.info(
            "Intent %s (confidence %.2f, surgical=%s, %d target file(s))",
            intent.edit_type, intent.confidence, intent.surgical_edit, len(intent.target_files),
        )
        return intent

    def enrich(self, intent: IntentAnalysis, prompt):
        """Merge the best catalog example into the analysis.

        Confidence becomes the mean of the model's and the catalog match
        confidence. Without a matching example the analysis is unchanged.
        """
        best = self.catalog.get_best_example(prompt, intent.edit_type, intent.search_terms)
        if best is None:
            return intent

        match_confidence = self.catalog.calculate_match_confidence([best], intent.edit_type, intent.search_terms)
        extra_terms = self.catalog.get_enhanced_search_terms(prompt, [best])
        extra_patterns = self.catalog.get_enhanced_regex_patterns([best], intent.search_terms)

        intent.confidence = (intent.confidence + match_confidence) / 2
        intent.search_terms = _unique(intent.search_terms + extra_terms)
        intent.regex_patterns = _unique(intent.regex_patterns + extra_patterns)
        intent.expected_changes = intent.expected_changes + [best.description]
        return intent
