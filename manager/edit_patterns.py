"""Edit pattern catalog: maps requests to known edit shapes. Zero LLM calls."""

from config.edit_examples import EDIT_PATTERNS
from core.state import EditExample, EditPattern
from utils.scoring import fallback_search_terms

TIER_ORDER = {"high": 3, "medium": 2, "low": 1}
TIER_WEIGHT = {"high": 1.0, "medium": 0.7, "low": 0.4}

PLACEHOLDER = "{FUNCTION_NAME}"


def _load_builtin_patterns():
    patterns = []
    for entry in EDIT_PATTERNS:
        patterns.append(EditPattern(
            name=entry["name"],
            applicable_scenarios=list(entry["scenarios"]),
            examples=[EditExample(**example) for example in entry["examples"]],
        ))
    return patterns


def _terms_overlap(candidates, example_terms):
    for term in candidates:
        term = term.lower()
        for example_term in example_terms:
            example_term = example_term.lower()
            if term in example_term or example_term in term:
                return True
    return False


class EditPatternCatalog:
    """Looks up edit examples by scenario phrase, edit type or search terms."""

    def __init__(self, patterns=None):
        self._patterns = list(patterns) if patterns is not None else _load_builtin_patterns()

    def add_pattern(self, pattern: EditPattern):
        self._patterns.append(pattern)

    def get_all_patterns(self):
        return list(self._patterns)

    def find_matching_patterns(self, prompt, edit_type, search_terms):
        """Return matching examples, best confidence tier first.

        An example matches when one of its pattern's scenario phrases occurs
        in the prompt, when its edit type equals edit_type, or when its
        search terms overlap the given ones. Ties keep declaration order.
        """
        prompt_lower = prompt.lower()
        matches = []
        for pattern in self._patterns:
            scenario_match = any(s.lower() in prompt_lower for s in pattern.applicable_scenarios)
            for example in pattern.examples:
                if (
                    scenario_match
                    or example.edit_type == edit_type
                    or _terms_overlap(search_terms, example.search_terms)
                ):
                    matches.append(example)
        # sorted() is stable
        return sorted(matches, key=lambda e: TIER_ORDER.get(e.confidence, 0), reverse=True)

    def get_best_example(self, prompt, edit_type, search_terms):
        matches = self.find_matching_patterns(prompt, edit_type, search_terms)
        return matches[0] if matches else None

    def get_enhanced_regex_patterns(self, examples, search_terms):
        """Collect example regexes, expanding {FUNCTION_NAME} once per term."""
        patterns = []
        for example in examples:
            for regex in example.regex_patterns:
                if PLACEHOLDER in regex:
                    expanded = [regex.replace(PLACEHOLDER, term) for term in search_terms]
                else:
                    expanded = [regex]
                for item in expanded:
                    if item not in patterns:
                        patterns.append(item)
        return patterns

    def get_enhanced_search_terms(self, prompt, examples):
        terms = []
        for example in examples:
            for term in example.search_terms:
                if term not in terms:
                    terms.append(term)
        for word in fallback_search_terms(prompt, limit=None):
            if word not in terms:
                terms.append(word)
        return terms

    def get_target_file_types(self, examples):
        types = []
        for example in examples:
            for file_type in example.target_file_types:
                if file_type not in types:
                    types.append(file_type)
        return types

    def calculate_match_confidence(self, examples, edit_type, search_terms):
        """Score in [0, 1] of how well examples fit the intent; 0.1 if none."""
        if not examples:
            return 0.1
        total = 0.0
        for example in examples:
            score = 1.0 if example.edit_type == edit_type else 0.0
            score += TIER_WEIGHT.get(example.confidence, 0.0)
            example_terms = [t.lower() for t in example.search_terms]
            overlap = sum(
                1 for term in search_terms
                if any(example_term in term.lower() for example_term in example_terms)
            )
            if example_terms:
                score += min(overlap / len(example_terms), 1.0)
            total += score
        return min(total / (3 * len(examples)), 1.0)
