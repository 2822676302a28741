"""Claude API client and response parsing helpers."""

import json
import logging
import os
import re

import anthropic
import httpx

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Base class for failures talking to the completion API."""


class TransportError(CompletionError):
    """Network or API failure while streaming a completion."""


class RateLimitError(CompletionError):
    """The completion API refused the call because of rate limiting."""


class ConfigurationError(CompletionError):
    """The completion client cannot be created (no API key)."""


class ParseError(ValueError):
    """No JSON object could be recovered from a model response."""


def get_client():
    """Return an async Anthropic client. Raises ConfigurationError if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )
    return anthropic.AsyncAnthropic(api_key=api_key, timeout=DEFAULTS["request_timeout"])


class TextCompletionClient:
    """Streams text completions from Claude.

    The underlying SDK client is created on first use so that constructing a
    pipeline never requires an API key.
    """

    def __init__(self, client=None, max_tokens=None):
        self._client = client
        self.max_tokens = max_tokens or DEFAULTS["max_tokens"]

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    async def complete(self, system_prompt, user_prompt, model, temperature):
        """Yield text chunks of a single completion.

        Raises RateLimitError or TransportError if the API call fails,
        including a connection dropped mid-stream.
        """
        try:
            async with self.client.messages.stream(
                model=model,
                max_tokens=self.max_tokens,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            ) as stream:
                async for chunk in stream.text_stream:
                    yield chunk
        except anthropic.RateLimitError as e:
            raise RateLimitError(str(e)) from e
        except anthropic.APIError as e:
            raise TransportError(str(e)) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

    async def collect(self, system_prompt, user_prompt, model, temperature, on_chunk=None):
        """Return the full completion text, forwarding each chunk to on_chunk."""
        parts = []
        async for chunk in self.complete(system_prompt, user_prompt, model, temperature):
            parts.append(chunk)
            if on_chunk is not None:
                on_chunk(chunk)
        text = "".join(parts)
        logger.debug("Completion from %s: %d chars", model, len(text))
        return text


# --- JSON recovery ---

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
_BRACES_RE = re.compile(r"\{[\s\S]*\}")


def _parse_direct(text):
    return json.loads(text.strip())


def _parse_fenced(text):
    match = _FENCED_JSON_RE.search(text)
    if not match:
        return None
    return json.loads(match.group(1))


def _parse_braces(text):
    match = _BRACES_RE.search(text)
    if not match:
        return None
    return json.loads(match.group(0))


# Tried in order; the first strategy yielding an object wins.
JSON_STRATEGIES = (_parse_direct, _parse_fenced, _parse_braces)


def parse_json_response(text):
    """Recover a JSON object from a model response.

    Tries the whole text, then a fenced ```json block, then the outermost
    brace span. Raises ParseError if none of them yields an object.
    """
    for strategy in JSON_STRATEGIES:
        try:
            value = strategy(text)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    raise ParseError(f"No JSON object found in response ({len(text)} chars)")


# --- Code extraction ---

_CODE_BLOCK_RE = re.compile(
    r"```(?:tsx?|jsx?|javascript|typescript|css|html|json|python|py)?[ \t]*\n?([\s\S]*?)\s*```"
)


def extract_code_block(response):
    """Return the first fenced code block, or the trimmed response if none."""
    match = _CODE_BLOCK_RE.search(response)
    if match:
        return match.group(1).strip()
    return response.strip()
