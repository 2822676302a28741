"""Surgical editor — applies minimal model-generated changes to target files."""

import logging
import re

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from core.state import IntentAnalysis, StrategicPlan, SurgicalEdit
from utils.llm import CompletionError, extract_code_block

logger = logging.getLogger(__name__)

_FILENAME_COMMENT_RES = (
    re.compile(r"^//\s*(\S+\.(?:tsx?|jsx?|css|scss|json|html))\s*$"),
    re.compile(r"^/\*\s*(\S+\.(?:tsx?|jsx?|css|scss|json|html))\s*\*/\s*$"),
    re.compile(r"^#\s*(\S+\.(?:py|sh|ya?ml))\s*$"),
)
_IDENTIFIER_RE = re.compile(r"(?:export\s+default\s+|function\s+|const\s+)(\w+)")


def file_cap(edit_type):
    """Maximum number of files one request of this edit type may touch."""
    return DEFAULTS["file_caps"].get(edit_type, DEFAULTS["default_file_cap"])


def changed_lines(original, modified):
    """1-based line numbers that differ position by position."""
    old, new = original.split("\n"), modified.split("\n")
    return [
        index + 1
        for index in range(max(len(old), len(new)))
        if (old[index] if index < len(old) else None) != (new[index] if index < len(new) else None)
    ]


def split_created_file(response):
    """Return (file_name, code) for a created file.

    The name comes from a leading filename comment, which is then dropped
    from the code; else from the first declared identifier; else the
    default component name.
    """
    code = extract_code_block(response) if "```" in response else response.strip()
    first, _, rest = code.partition("\n")
    for pattern in _FILENAME_COMMENT_RES:
        match = pattern.match(first.strip())
        if match:
            return match.group(1), rest.strip()
    ident = _IDENTIFIER_RE.search(code)
    name = ident.group(1) if ident else DEFAULTS["default_component_name"]
    return name + DEFAULTS["default_component_ext"], code


class SurgicalEditor(BaseAgent):
    """Edits the intent's target files, or creates a file when nothing exists to edit."""

    name = "editor"
    phase = "editing"
    system_prompt = "editor_system"

    async def perform_edit(self, intent: IntentAnalysis, plan: StrategicPlan, codebase, streamer=None,
                           components=()):
        cap = file_cap(intent.edit_type)
        if intent.surgical_edit and intent.target_files:
            edits = []
            for path in intent.target_files[:cap]:
                if path not in codebase:
                    logger.info("Target %s not in snapshot, skipping", path)
                    continue
                edit = await self._edit_file(path, codebase[path], intent, plan, cap, streamer)
                if edit is not None:
                    edits.append(edit)
            return edits

        created = await self._create_file(intent, plan, components, streamer)
        return [created] if created is not None else []

    async def _edit_file(self, path, original, intent, plan, cap, streamer):
        if streamer:
            streamer.start_surgical_edit(path, intent.edit_type)
        user_prompt = self.render(
            "edit",
            file_path=path,
            reasoning=intent.reasoning,
            search_terms=", ".join(intent.search_terms) or "(none)",
            expected_changes="\n".join(f"- {c}" for c in intent.expected_changes),
            phases="\n".join(f"- {p}" for p in plan.phases),
            preserve_structure="yes" if intent.edit_type != "CREATE" else "no",
            max_files=cap,
            content=original,
        )
        try:
            response = await self._call_llm(
                user_prompt,
                on_chunk=streamer.stream_surgical_thinking if streamer else None,
            )
        except CompletionError as e:
            logger.warning("Edit of %s failed: %s", path, e)
            return None

        modified = extract_code_block(response)
        if not modified or modified.strip() == original.strip():
            logger.info("No change produced for %s", path)
            return None

        lines = changed_lines(original, modified)
        if streamer:
            streamer.complete_surgical_edit(path, len(lines))
        return SurgicalEdit(
            file_path=path,
            original_content=original,
            modified_content=modified,
            change_description=intent.reasoning or f"{intent.edit_type} {path}",
            lines_changed=lines,
        )

    async def _create_file(self, intent, plan, components, streamer):
        if streamer:
            streamer.start_surgical_edit("(new file)", intent.edit_type)
        user_prompt = self.render(
            "create",
            reasoning=intent.reasoning,
            expected_changes="\n".join(f"- {c}" for c in intent.expected_changes),
            phases="\n".join(f"- {p}" for p in plan.phases),
            components=", ".join(components) or "(none)",
        )
        try:
            response = await self._call_llm(
                user_prompt,
                on_chunk=streamer.stream_surgical_thinking if streamer else None,
                system_prompt=self.render("creator_system"),
                temperature=DEFAULTS["temperatures"]["creation"],
            )
        except CompletionError as e:
            logger.warning("File creation failed: %s", e)
            return None

        file_name, code = split_created_file(response)
        if not code:
            return None
        lines = changed_lines("", code)
        if streamer:
            streamer.complete_surgical_edit(file_name, len(lines))
        return SurgicalEdit(
            file_path=file_name,
            original_content="",
            modified_content=code,
            change_description=intent.reasoning or f"Create {file_name}",
            lines_changed=lines,
        )
