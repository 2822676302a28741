"""Keyword-scoring task classifier and request constraint derivation."""

from config.stacks import (
    COMPLEXITY_INDICATORS,
    MULTI_STEP_INDICATORS,
    REQUEST_CONSTRAINTS,
    TASK_CATEGORIES,
)
from core.state import TaskAnalysis


def score_request(request):
    """Count the keywords of each task category found in the request."""
    text = request.lower()
    return {
        category: sum(1 for keyword in keywords if keyword in text)
        for category, keywords in TASK_CATEGORIES.items()
    }


def analyze_task(request):
    """Classify a request into financial / ui / api / hybrid plus a complexity.

    Financial keywords outweighing UI keywords yield "financial"; financial
    and UI together yield "hybrid". Anything else defaults to "ui".
    """
    text = request.lower()
    scores = score_request(request)

    category = "ui"
    tools = []
    if scores["financial"] > 0:
        category = "financial" if scores["financial"] > scores["ui"] else "hybrid"
        tools.append("WebFetch")
    if scores["ui"] > 0:
        category = "hybrid" if category == "financial" else category
        tools.extend(["Write", "Edit"])
    if scores["api"] > 0:
        tools.extend(["Write", "Edit"])

    # Whole-word match for the multi-step connectives ("and" inside "handle")
    words = set(text.split())
    if any(indicator in text for indicator in COMPLEXITY_INDICATORS):
        complexity, steps = "complex", 3
    elif any(indicator in words for indicator in MULTI_STEP_INDICATORS):
        complexity, steps = "medium", 2
    else:
        complexity, steps = "simple", 1

    return TaskAnalysis(
        category=category,
        complexity=complexity,
        required_tools=list(dict.fromkeys(tools)),
        estimated_steps=steps,
    )


def generate_constraints(request):
    """Return the hard requirements implied by the request wording."""
    text = request.lower()
    constraints = []
    for triggers, rules in REQUEST_CONSTRAINTS:
        if any(trigger in text for trigger in triggers):
            constraints.extend(rules)
    return constraints
