"""Typed progress events, per-run counters and delivery to sinks.

A ProgressStreamer belongs to one run. Sinks are plain callables taking a
ProgressEvent; the server bridges them to SSE through an EventChannel.
"""

from __future__ import annotations

import copy
import json
import logging
import queue
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

EVENT_TYPES = (
    "status",
    "intent-analysis",
    "plan-thinking",
    "plan-complete",
    "file-generation",
    "surgical-edit",
    "surgical-thinking",
    "error-recovery",
    "warning",
    "error",
    "complete",
    "context-building",
)
TERMINAL_EVENTS = ("complete", "error")

_COMPONENT_RE = re.compile(r"(?:function|const|class)\s+([A-Z][a-zA-Z0-9]*)")
_PACKAGE_RE = re.compile(r"""import.*from\s+['"`]([^'"`]+)['"`]""")


@dataclass
class ProgressEvent:
    type: str
    content: Any
    timestamp: float = field(default_factory=time.time)
    metadata: dict[str, Any] | None = None

    def to_dict(self):
        data = {
            "type": self.type,
            "content": self.content,
            "timestamp": datetime.fromtimestamp(self.timestamp, timezone.utc).isoformat(),
        }
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    def to_sse(self):
        return f"data: {json.dumps(self.to_dict(), default=str)}\n\n"


@dataclass
class GenerationProgress:
    stage: str = "initializing"
    current_file: str | None = None
    files_completed: int = 0
    total_files: int = 0
    components_detected: list[str] = field(default_factory=list)
    packages_detected: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "stage": self.stage,
            "currentFile": self.current_file,
            "filesCompleted": self.files_completed,
            "totalFiles": self.total_files,
            "componentsDetected": list(self.components_detected),
            "packagesDetected": list(self.packages_detected),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


class EventChannel:
    """Thread-safe FIFO of events with an end marker.

    The producer side is a sink (call the channel with an event); the
    consumer iterates until close() is called.
    """

    _CLOSED = object()

    def __init__(self):
        self._queue = queue.Queue()

    def __call__(self, event):
        self._queue.put(event)

    def close(self):
        self._queue.put(self._CLOSED)

    def __iter__(self):
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class ProgressStreamer:
    """Emits typed progress events for one run and keeps its counters."""

    def __init__(self, *sinks):
        self._sinks = list(sinks)
        self.progress = GenerationProgress()
        self.finished = False

    def subscribe(self, sink):
        self._sinks.append(sink)

    def emit(self, event_type, content, metadata=None):
        """Deliver an event to every sink. A failing sink never breaks the run."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        if self.finished:
            logger.warning("Dropping %s event emitted after the run finished", event_type)
            return None
        event = ProgressEvent(type=event_type, content=content, metadata=metadata)
        if event_type in TERMINAL_EVENTS:
            self.finished = True
        for sink in self._sinks:
            try:
                sink(event)
            except Exception:
                logger.exception("Progress sink failed on %s event", event_type)
        return event

    def update_status(self, stage, details=None):
        self.progress.stage = stage
        message = f"{stage}: {details}" if details else stage
        self.emit("status", {"stage": stage, "message": message, "progress": self.progress.to_dict()})

    # --- Intent / planning ---

    def start_intent_analysis(self, prompt):
        self.update_status("Analyzing user intent", f'Processing: "{prompt[:50]}..."')
        self.emit("intent-analysis", {"phase": "start", "prompt": prompt[:100]})

    def complete_intent_analysis(self, intent):
        self.emit("intent-analysis", {
            "phase": "complete",
            "editType": intent.edit_type,
            "confidence": intent.confidence,
            "surgicalEdit": intent.surgical_edit,
            "targetFiles": list(intent.target_files),
        })

    def stream_plan_thinking(self, chunk):
        self.emit("plan-thinking", chunk)

    def complete_planning(self, plan):
        self.emit("plan-complete", plan.to_dict())

    # --- Context building ---

    def start_context_building(self, file_count):
        self.progress.total_files = file_count
        self.update_status("Building context", f"Analyzing {file_count} files")
        self.emit("context-building", {"phase": "start", "totalFiles": file_count})

    def update_context_building(self, file_name):
        self.emit("context-building", {"phase": "analyzing", "fileName": file_name})

    def complete_context_building(self, summary):
        self.emit("context-building", {
            "phase": "complete",
            "summary": summary,
            "totalFiles": self.progress.total_files,
        })

    # --- File generation ---

    def start_file_generation(self, file_name):
        self.progress.current_file = file_name
        self.update_status("Generating file", file_name)
        self.emit("file-generation", {"phase": "start", "fileName": file_name})

    def update_file_generation(self, chunk):
        self.emit("file-generation", {
            "phase": "stream",
            "content": chunk,
            "currentFile": self.progress.current_file,
        })

    def complete_file_generation(self, file_name, content, **details):
        self.progress.files_completed += 1
        self._detect_components_and_packages(content)
        payload = {"phase": "complete", "fileName": file_name, "content": content}
        payload.update(details)
        self.emit("file-generation", payload)

    def _detect_components_and_packages(self, content):
        for name in _COMPONENT_RE.findall(content):
            if name not in self.progress.components_detected:
                self.progress.components_detected.append(name)
        for package in _PACKAGE_RE.findall(content):
            if package.startswith((".", "/")):
                continue
            if package not in self.progress.packages_detected:
                self.progress.packages_detected.append(package)

    # --- Surgical edits ---

    def start_surgical_edit(self, file_name, edit_type):
        self.update_status("Surgical editing", f"{edit_type} on {file_name}")
        self.emit("surgical-edit", {"phase": "start", "fileName": file_name, "editType": edit_type})

    def stream_surgical_thinking(self, chunk):
        self.emit("surgical-thinking", chunk)

    def complete_surgical_edit(self, file_name, lines_changed):
        self.emit("surgical-edit", {
            "phase": "complete",
            "fileName": file_name,
            "linesChanged": lines_changed,
        })

    # --- Problems ---

    def add_warning(self, message):
        self.progress.warnings.append(message)
        self.emit("warning", {"message": message, "totalWarnings": len(self.progress.warnings)})

    def add_error(self, message):
        """Record a non-fatal error; it is reported with the terminal event."""
        self.progress.errors.append(message)

    def attempt_error_recovery(self, error, attempt):
        self.update_status("Recovering from error", f"Attempt {attempt}")
        self.emit("error-recovery", {"error": error, "attempt": attempt})

    # --- Terminal events ---

    def complete(self, summary):
        self.update_status("Complete", "Generation finished successfully")
        self.emit("complete", {
            "summary": summary,
            "totalFiles": self.progress.files_completed,
            "componentsGenerated": list(self.progress.components_detected),
            "packagesDetected": list(self.progress.packages_detected),
            "warnings": list(self.progress.warnings),
            "errors": list(self.progress.errors),
        })

    def fail(self, message, stage=None):
        self.progress.errors.append(message)
        self.emit("error", {"message": message, "stage": stage or self.progress.stage})

    def get_progress(self):
        return copy.deepcopy(self.progress)

    def reset(self):
        self.progress = GenerationProgress()
        self.finished = False
