"""Tests for agents.summarizer — the completion client is mocked."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from agents.summarizer import FileSummarizer, FileSummary, basic_summary, content_hash, detect_file_type
from utils.llm import TransportError

CHART = "import React from 'react';\nimport { Line } from 'recharts';\nexport default function Chart() {}"


def _make_client(response=None, error=None):
    client = MagicMock()
    client.collect = AsyncMock(return_value=response, side_effect=error)
    return client


def _make_summary(path, summary="", purpose="component", components=()):
    return FileSummary(
        path=path, summary=summary, purpose=purpose,
        content_hash="h", components=list(components),
    )


def test_detect_file_type():
    assert detect_file_type("app/api/quote/route.ts") == "api"
    assert detect_file_type("app/page.tsx") == "page"
    assert detect_file_type("components/Chart.tsx") == "component"
    assert detect_file_type("styles/globals.css") == "styles"
    assert detect_file_type("lib/format.ts") == "utility"
    assert detect_file_type("package.json") == "config"
    assert detect_file_type("notes.txt") == "other"


def test_basic_summary_extracts_names():
    summary = basic_summary("components/Chart.tsx", CHART)
    assert summary.summary == "component file"
    assert summary.components == ["Chart"]
    assert summary.dependencies == ["react", "recharts"]
    assert summary.exports == ["Chart"]
    assert summary.content_hash == content_hash(CHART)


@pytest.mark.asyncio
async def test_model_summary_is_used():
    answer = {"summary": "Line chart of prices", "purpose": "chart", "components": ["Chart"]}
    summarizer = FileSummarizer(_make_client(json.dumps(answer)))
    summary = await summarizer.summarize_file("components/Chart.tsx", CHART)
    assert summary.summary == "Line chart of prices"
    assert summary.purpose == "chart"
    # missing lists fall back to extraction
    assert summary.dependencies == ["react", "recharts"]


@pytest.mark.asyncio
async def test_failures_fall_back_to_extraction():
    summarizer = FileSummarizer(_make_client(error=TransportError("down")))
    summary = await summarizer.summarize_file("components/Chart.tsx", CHART)
    assert summary.summary == "component file"

    summarizer = FileSummarizer(_make_client("not json"))
    summary = await summarizer.summarize_file("components/Chart.tsx", CHART)
    assert summary.purpose == "component"


@pytest.mark.asyncio
async def test_update_index_resummarizes_only_changed_files():
    client = _make_client(json.dumps({"summary": "s", "purpose": "p"}))
    summarizer = FileSummarizer(client)
    assert await summarizer.update_index({"a.tsx": "a", "b.tsx": "b"}) == 2
    assert await summarizer.update_index({"a.tsx": "a", "b.tsx": "b2", "c.tsx": "c"}) == 2
    assert client.collect.await_count == 4
    assert sorted(summarizer.files) == ["a.tsx", "b.tsx", "c.tsx"]
    assert summarizer.last_updated is not None


@pytest.mark.asyncio
async def test_update_index_drops_removed_files():
    summarizer = FileSummarizer(_make_client("{}"))
    await summarizer.update_index({"a.tsx": "a", "b.tsx": "b"})
    await summarizer.update_index({"a.tsx": "a"})
    assert list(summarizer.files) == ["a.tsx"]


def test_context_summary():
    summarizer = FileSummarizer(_make_client())
    assert summarizer.get_context_summary() == "No existing files in project"
    summarizer.files = {
        "Chart.tsx": _make_summary("Chart.tsx", "price chart", components=["Chart"]),
        "route.ts": _make_summary("route.ts", "quote endpoint", purpose="api"),
    }
    text = summarizer.get_context_summary()
    assert text.startswith("EXISTING PROJECT CONTEXT (2 files):")
    assert "COMPONENT:\n  - Chart.tsx - price chart\n    Components: Chart" in text
    assert "API:\n  - route.ts - quote endpoint" in text


def test_find_relevant_files_ranking():
    summarizer = FileSummarizer(_make_client())
    summarizer.files = {
        "Footer.tsx": _make_summary("Footer.tsx", "site footer"),
        "Chart.tsx": _make_summary("Chart.tsx", "price chart", components=["Chart"]),
        "lib/chart-utils.ts": _make_summary("lib/chart-utils.ts", "helpers", purpose="utility"),
    }
    found = summarizer.find_relevant_files("chart")
    assert [s.path for s in found] == ["Chart.tsx", "lib/chart-utils.ts"]
    assert summarizer.find_relevant_files("nothing here") == []
