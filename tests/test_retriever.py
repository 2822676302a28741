"""Tests for agents.retriever."""

import pytest

from agents.retriever import ContextRetriever, detect_language, extract_snippets
from core.state import IntentAnalysis

HEADER = "\n".join([
    "import React, { useState } from 'react';",
    "export default function Header() {",
    "  const [open, setOpen] = useState(false);",
    "  return <button onClick={() => setOpen(!open)}>toggle</button>;",
    "}",
])
FOOTER = "export default function Footer() {\n  return <footer>(c) 2024</footer>;\n}"


def _make_retriever(files=None, **kwargs):
    retriever = ContextRetriever(**kwargs)
    retriever.index(files if files is not None else {"Header.tsx": HEADER, "Footer.tsx": FOOTER})
    return retriever


def _make_intent(terms=(), targets=(), patterns=()):
    return IntentAnalysis(
        edit_type="UPDATE",
        reasoning="r",
        target_files=list(targets),
        search_terms=list(terms),
        regex_patterns=list(patterns),
        surgical_edit=True,
        confidence=0.8,
    )


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------

def test_index_builds_file_analysis():
    retriever = _make_retriever()
    analysis = retriever.get_analysis("Header.tsx")
    assert analysis.language == "typescript"
    assert analysis.dependencies == ["react"]
    assert analysis.exports == ["Header"]
    assert [c.name for c in analysis.chunks] == ["Header"]


def test_index_replaces_previous_snapshot():
    retriever = _make_retriever()
    retriever.index({"App.jsx": "const x = 1;"})
    assert retriever.get_analysis("Header.tsx") is None
    assert retriever.get_analysis("App.jsx").language == "javascript"


def test_detect_language_unknown():
    assert detect_language("README") == "text"


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def test_only_matching_file_is_relevant():
    ranked = _make_retriever().find_relevant_files("dark mode toggle")
    assert [a.file_path for a in ranked] == ["Header.tsx"]


def test_unmatched_file_scores_zero():
    retriever = _make_retriever()
    assert retriever.score_file("dark mode toggle", retriever.get_analysis("Footer.tsx")) == 0.0


def test_path_words_count():
    ranked = _make_retriever().find_relevant_files("footer copyright")
    assert [a.file_path for a in ranked] == ["Footer.tsx"]


def test_ranked_best_first_and_capped():
    files = {
        "a.tsx": "alpha",
        "b.tsx": "alpha beta",
        "c.tsx": "alpha beta gamma",
    }
    ranked = _make_retriever(files).find_relevant_files("alpha beta gamma", max_files=2)
    assert [a.file_path for a in ranked] == ["c.tsx", "b.tsx"]

    retriever = _make_retriever(files)
    assert retriever.find_relevant_files("alpha beta gamma", max_files=0) == []
    assert len(retriever.find_relevant_files("alpha beta gamma")) == 3


def test_semantic_score_needs_both_embeddings():
    retriever = _make_retriever(embedder=lambda text: [1.0, 0.0])
    footer = retriever.get_analysis("Footer.tsx")
    assert retriever.score_file("unrelated", footer, [1.0, 0.0]) == 0.0
    retriever.set_embedding("Footer.tsx", [1.0, 0.0])
    assert retriever.score_file("unrelated", footer, [1.0, 0.0]) == pytest.approx(0.6)
    assert [a.file_path for a in retriever.find_relevant_files("unrelated")] == ["Footer.tsx"]


def test_identify_target_prefers_named_component():
    retriever = _make_retriever()
    ranked = [retriever.get_analysis("Header.tsx"), retriever.get_analysis("Footer.tsx")]
    assert retriever.identify_target_file("restyle the footer", ranked) == "Footer.tsx"
    assert retriever.identify_target_file("restyle it", ranked) == "Header.tsx"
    assert retriever.identify_target_file("x", []) is None


# ---------------------------------------------------------------------------
# Line search
# ---------------------------------------------------------------------------

def test_search_lines_tiers_and_context():
    retriever = ContextRetriever()
    hits = retriever.search_lines({"Header.tsx": HEADER}, ["toggle", "Stat"])
    assert hits[0].matched_term == "toggle"
    assert hits[0].confidence == "high"
    assert hits[0].line_number == 4
    assert len(hits[0].context_before) == 3
    assert hits[0].context_after == ["}"]
    assert {h.confidence for h in hits[1:]} == {"low"}


def test_search_lines_regex_and_invalid_patterns():
    retriever = ContextRetriever()
    hits = retriever.search_lines({"Footer.tsx": FOOTER}, [], [r"<footer>", "([unclosed"])
    assert [(h.line_number, h.matched_pattern) for h in hits] == [(2, "<footer>")]


def test_search_lines_deduplicates():
    retriever = ContextRetriever()
    hits = retriever.search_lines({"Footer.tsx": FOOTER}, ["footer", "Footer"])
    assert len({(h.file_path, h.line_number) for h in hits}) == len(hits)


def test_extract_snippets_radius():
    content = "\n".join(f"line {i}" for i in range(10))
    assert extract_snippets(content, ["line 5"], radius=1) == ["line 4\nline 5\nline 6"]


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

def test_retrieve_marks_targets_and_term_matches():
    retriever = ContextRetriever()
    files = {"Header.tsx": HEADER, "Footer.tsx": FOOTER, "util.ts": "export const x = 1;"}
    intent = _make_intent(terms=["toggle"], targets=["Footer.tsx"])
    context = retriever.retrieve(intent, "toggle in the footer", files)
    assert context.relevant_files == ["Header.tsx", "Footer.tsx"]
    assert "Header.tsx" in context.snippets
    assert context.confidence == 1.0
    assert context.suggested_target == "Footer.tsx"


def test_retrieve_without_matches():
    retriever = ContextRetriever()
    context = retriever.retrieve(_make_intent(terms=["sidebar"]), "sidebar", {"Footer.tsx": FOOTER})
    assert context.relevant_files == []
    assert context.confidence == 0.0
    assert context.suggested_target is None
