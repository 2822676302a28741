"""File summarizer — LLM summaries of project files, cached by content hash."""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field

from agents.base import BaseAgent
from config.rules import COMPONENT_NAME_RE, EXPORT_NAME_RE, IMPORT_SOURCE_RE
from utils.llm import CompletionError, ParseError, parse_json_response

logger = logging.getLogger(__name__)


@dataclass
class FileSummary:
    path: str
    summary: str
    purpose: str
    content_hash: str
    components: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    last_updated: float = field(default_factory=time.time)


def content_hash(content):
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


def detect_file_type(path):
    lower = path.lower()
    if "/api/" in lower or lower.startswith("api/"):
        return "api"
    if lower.endswith((".css", ".scss")):
        return "styles"
    if lower.endswith(".json") or "config" in lower:
        return "config"
    if lower.endswith((".tsx", ".jsx")):
        return "page" if lower.endswith(("page.tsx", "page.jsx")) else "component"
    if "/lib/" in lower or "/utils/" in lower or lower.startswith(("lib/", "utils/")):
        return "utility"
    return "other"


def _unique(items):
    return list(dict.fromkeys(items))


def basic_summary(path, content):
    """Summary built from regex extraction alone."""
    kind = detect_file_type(path)
    return FileSummary(
        path=path,
        summary=f"{kind} file",
        purpose=kind,
        content_hash=content_hash(content),
        components=_unique(COMPONENT_NAME_RE.findall(content)),
        dependencies=_unique(IMPORT_SOURCE_RE.findall(content)),
        exports=_unique(EXPORT_NAME_RE.findall(content)),
    )


class FileSummarizer(BaseAgent):
    """Keeps one summary per file and re-summarizes only files whose content changed."""

    name = "summarizer"
    phase = "summary"
    system_prompt = "summarizer_system"

    def __init__(self, client=None, **kwargs):
        super().__init__(client=client, **kwargs)
        self.files = {}
        self.last_updated = None

    async def summarize_file(self, path, content):
        fallback = basic_summary(path, content)
        try:
            response = await self._call_llm(self.render("summarizer", path=path, content=content[:6000]))
            data = parse_json_response(response)
        except (CompletionError, ParseError) as e:
            logger.warning("Summary of %s fell back to regex extraction: %s", path, e)
            return fallback

        def as_list(key, default):
            value = data.get(key)
            return [str(v) for v in value] if isinstance(value, list) else default

        return FileSummary(
            path=path,
            summary=str(data.get("summary") or fallback.summary),
            purpose=str(data.get("purpose") or fallback.purpose),
            content_hash=fallback.content_hash,
            components=as_list("components", fallback.components),
            dependencies=as_list("dependencies", fallback.dependencies),
            exports=as_list("exports", fallback.exports),
        )

    async def update_index(self, files):
        """Bring the index in line with files. Returns the number of re-summarized files."""
        updated = {}
        changed = 0
        for path, content in files.items():
            if not isinstance(content, str):
                continue
            existing = self.files.get(path)
            if existing is not None and existing.content_hash == content_hash(content):
                updated[path] = existing
                continue
            updated[path] = await self.summarize_file(path, content)
            changed += 1
        self.files = updated
        self.last_updated = time.time()
        logger.info("File context index: %d file(s), %d changed", len(updated), changed)
        return changed

    def get_context_summary(self):
        if not self.files:
            return "No existing files in project"
        by_purpose = {}
        for summary in self.files.values():
            by_purpose.setdefault(summary.purpose or "other", []).append(summary)

        lines = [f"EXISTING PROJECT CONTEXT ({len(self.files)} files):", ""]
        for purpose, summaries in by_purpose.items():
            lines.append(f"{purpose.upper()}:")
            for summary in summaries:
                lines.append(f"  - {summary.path} - {summary.summary}")
                if summary.components:
                    lines.append(f"    Components: {', '.join(summary.components)}")
            lines.append("")
        return "\n".join(lines)

    def find_relevant_files(self, query, max_files=3):
        """Summaries ranked by path, summary and component-name matches."""
        text = query.lower()
        scored = []
        for summary in self.files.values():
            path, blurb = summary.path.lower(), summary.summary.lower()
            score = 0
            if text in path:
                score += 10
            if text in blurb:
                score += 8
            if text in summary.purpose.lower():
                score += 6
            for component in summary.components:
                name = component.lower()
                if name in text or text in name:
                    score += 15
            for word in text.split():
                if len(word) > 2:
                    score += 2 * (word in path) + 3 * (word in blurb)
            if score > 0:
                scored.append((score, summary))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [summary for _, summary in scored[:max_files]]


def format_summaries(summaries):
    """Text block describing each summary for a generation prompt."""
    blocks = []
    for summary in summaries:
        lines = [
            f"{summary.path}:",
            f"  Purpose: {summary.purpose}",
            f"  Summary: {summary.summary}",
        ]
        if summary.components:
            lines.append(f"  Components: {', '.join(summary.components)}")
        if summary.exports:
            lines.append(f"  Exports: {', '.join(summary.exports)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
