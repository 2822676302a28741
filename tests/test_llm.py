"""Tests for utils.llm and utils.template_engine — the SDK client is faked."""

from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest

from agents.editor import SurgicalEditor
from agents.intent import IntentClassifier
from agents.planner import StrategicPlanner
from core.state import CodebaseContext, IntentAnalysis, StrategicPlan
from utils.llm import (
    CompletionError,
    ConfigurationError,
    ParseError,
    RateLimitError,
    TextCompletionClient,
    TransportError,
    extract_code_block,
    get_client,
    parse_json_response,
)
from utils.template_engine import load_prompt, render_prompt


class _FakeStream:
    """Stands in for the SDK's async message stream context manager."""

    def __init__(self, chunks=(), error=None, stream_error=None):
        self.chunks = list(chunks)
        self.error = error
        self.stream_error = stream_error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def text_stream(self):
        async def gen():
            for chunk in self.chunks:
                yield chunk
            if self.stream_error is not None:
                raise self.stream_error
        return gen()


def _make_client(stream):
    sdk = MagicMock()
    sdk.messages.stream.return_value = stream
    return TextCompletionClient(client=sdk, max_tokens=100), sdk


_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


# ---------------------------------------------------------------------------
# TextCompletionClient
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_collect_joins_chunks_and_forwards_them():
    client, sdk = _make_client(_FakeStream(["Hel", "lo"]))
    seen = []
    text = await client.collect("sys", "user", "model-x", 0.2, on_chunk=seen.append)
    assert text == "Hello"
    assert seen == ["Hel", "lo"]
    kwargs = sdk.messages.stream.call_args.kwargs
    assert kwargs["system"] == "sys"
    assert kwargs["model"] == "model-x"
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 100
    assert kwargs["messages"] == [{"role": "user", "content": "user"}]


@pytest.mark.asyncio
async def test_rate_limit_is_mapped():
    error = anthropic.RateLimitError(
        "slow down", response=httpx.Response(429, request=_REQUEST), body=None,
    )
    client, _ = _make_client(_FakeStream(error=error))
    with pytest.raises(RateLimitError):
        await client.collect("s", "u", "m", 0.1)


@pytest.mark.asyncio
async def test_connection_error_is_transport_error():
    client, _ = _make_client(_FakeStream(error=anthropic.APIConnectionError(request=_REQUEST)))
    with pytest.raises(TransportError):
        await client.collect("s", "u", "m", 0.1)


def test_client_is_lazy():
    client = TextCompletionClient()
    assert client._client is None


def test_get_client_requires_api_key():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            get_client()


@pytest.mark.asyncio
async def test_connection_reset_mid_stream_is_transport_error():
    reset = httpx.ReadError("connection reset", request=_REQUEST)
    client, _ = _make_client(_FakeStream(["partial"], stream_error=reset))
    seen = []
    with pytest.raises(TransportError, match="ReadError"):
        await client.collect("s", "u", "m", 0.1, on_chunk=seen.append)
    assert seen == ["partial"]


@pytest.mark.asyncio
async def test_missing_api_key_is_a_completion_error():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(CompletionError):
            await TextCompletionClient().collect("s", "u", "m", 0.1)


# ---------------------------------------------------------------------------
# Transport failures reach the agents' fallbacks
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_intent_degrades_on_mid_stream_reset():
    reset = httpx.ReadError("connection reset", request=_REQUEST)
    client, _ = _make_client(_FakeStream(['{"editType": '], stream_error=reset))
    intent = await IntentClassifier(client).analyze_intent("add a dark mode toggle", CodebaseContext(files={}))
    assert intent.confidence == 0.3
    assert intent.edit_type == "CREATE"
    assert intent.surgical_edit is False


@pytest.mark.asyncio
async def test_intent_degrades_without_api_key():
    with patch.dict("os.environ", {}, clear=True):
        intent = await IntentClassifier(TextCompletionClient()).analyze_intent(
            "add a dark mode toggle", CodebaseContext(files={}),
        )
    assert intent.confidence == 0.3


@pytest.mark.asyncio
async def test_planner_falls_back_on_mid_stream_reset():
    reset = httpx.ReadError("connection reset", request=_REQUEST)
    client, _ = _make_client(_FakeStream(["{"], stream_error=reset))
    intent = IntentAnalysis(edit_type="UPDATE", reasoning="r", surgical_edit=True)
    plan = await StrategicPlanner(client).create_plan(intent)
    assert plan.reasoning == "Fallback plan due to planning error"


@pytest.mark.asyncio
async def test_editor_skips_only_the_file_whose_stream_reset():
    sdk = MagicMock()
    sdk.messages.stream.side_effect = [
        _FakeStream(["a2"], stream_error=httpx.ReadError("connection reset", request=_REQUEST)),
        _FakeStream(["b2"]),
    ]
    client = TextCompletionClient(client=sdk, max_tokens=100)
    intent = IntentAnalysis(
        edit_type="ENHANCE", reasoning="r", target_files=["a.tsx", "b.tsx"], surgical_edit=True,
    )
    plan = StrategicPlan(approach="surgical_edit", reasoning="r")
    edits = await SurgicalEditor(client).perform_edit(intent, plan, {"a.tsx": "a", "b.tsx": "b"})
    assert [e.file_path for e in edits] == ["b.tsx"]


# ---------------------------------------------------------------------------
# JSON recovery
# ---------------------------------------------------------------------------

def test_parse_direct():
    assert parse_json_response('{"a": 1}') == {"a": 1}


def test_parse_fenced():
    text = 'Here you go:\n```json\n{"editType": "FIX"}\n```\nDone.'
    assert parse_json_response(text) == {"editType": "FIX"}


def test_parse_braces():
    text = 'Sure! {"approach": "surgical_edit", "phases": ["a"]} hope that helps'
    assert parse_json_response(text)["approach"] == "surgical_edit"


def test_parse_failure_raises():
    with pytest.raises(ParseError):
        parse_json_response("I cannot answer that.")


def test_parse_rejects_non_objects():
    with pytest.raises(ParseError):
        parse_json_response("[1, 2, 3]")


# ---------------------------------------------------------------------------
# Code extraction
# ---------------------------------------------------------------------------

def test_extract_code_block():
    response = "Here is the file:\n```tsx\nexport default function A() {}\n```\nEnjoy."
    assert extract_code_block(response) == "export default function A() {}"


def test_extract_code_block_without_fence():
    assert extract_code_block("  const a = 1;\n") == "const a = 1;"


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

def test_render_prompt_substitutes_known_names():
    text = render_prompt("intent", {"prompt": "make it blue", "context_summary": "FILES (0 total):"})
    assert '"make it blue"' in text
    assert "FILES (0 total):" in text
    assert "$prompt" not in text


def test_render_prompt_leaves_unknown_placeholders():
    text = render_prompt("intent", {})
    assert "$prompt" in text


def test_load_prompt_rejects_path_escape():
    with pytest.raises(ValueError):
        load_prompt("../../server")
