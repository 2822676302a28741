"""Keyword, vector and edit-distance scoring helpers. No LLM calls."""

import math

from config.rules import STOPWORDS


def query_keywords(query, min_length=3):
    """Lowercased whitespace-split words of at least min_length characters."""
    return [word for word in query.lower().split() if len(word) >= min_length]


def keyword_score(query, text):
    """Fraction of query keywords (length > 2) that occur in text.

    Each keyword contributes at most one point however often it occurs.
    """
    keywords = query_keywords(query)
    if not keywords:
        return 0.0
    haystack = text.lower()
    score = sum(min(haystack.count(word), 1) for word in keywords)
    return min(score / len(keywords), 1.0)


def cosine_similarity(a, b):
    """Cosine similarity of two equal-length vectors; 0.0 for zero vectors."""
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def fallback_search_terms(prompt, limit=5):
    """Prompt words usable as search terms when no model analysis exists."""
    terms = []
    for word in prompt.lower().split():
        if len(word) > 3 and word not in STOPWORDS and word not in terms:
            terms.append(word)
    return terms[:limit]


def levenshtein(a, b):
    """Edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def similarity(a, b):
    """(longer - distance) / longer, with 1.0 when both strings are empty."""
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - levenshtein(a, b)) / longer
