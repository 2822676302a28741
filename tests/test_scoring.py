"""Tests for utils.scoring."""

import pytest

from utils.scoring import (
    cosine_similarity,
    fallback_search_terms,
    keyword_score,
    levenshtein,
    query_keywords,
    similarity,
)


def test_query_keywords_drop_short_words():
    assert query_keywords("Add a dark mode to UI") == ["add", "dark", "mode"]


def test_keyword_score_counts_presence_once():
    assert keyword_score("toggle toggle", "toggle toggle toggle") == 1.0
    assert keyword_score("dark mode toggle", "a toggle button") == pytest.approx(1 / 3)


def test_keyword_score_no_keywords():
    assert keyword_score("a b", "a b") == 0.0
    assert keyword_score("dark mode", "") == 0.0


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([0, 0], [1, 1]) == 0.0


def test_cosine_similarity_requires_equal_length():
    with pytest.raises(ValueError):
        cosine_similarity([1, 2], [1, 2, 3])


def test_fallback_search_terms():
    terms = fallback_search_terms("Make this header sticky with this shadow and header color")
    assert terms == ["make", "header", "sticky", "shadow", "color"]


def test_fallback_search_terms_limit():
    assert fallback_search_terms("alpha bravo charlie delta", limit=2) == ["alpha", "bravo"]


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("same", "same") == 0


def test_similarity_bounds():
    assert similarity("", "") == 1.0
    assert similarity("abc", "abc") == 1.0
    assert similarity("abc", "xyz") == 0.0
