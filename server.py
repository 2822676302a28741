#!/usr/bin/env python3
"""HTTP front-end: streams pipeline progress to the browser as server-sent events."""

import asyncio
import logging
import os
import threading
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, request

from agents.summarizer import FileSummarizer
from config.defaults import DEFAULTS
from core.conversation import SessionRegistry
from core.orchestrator import MultiPhaseOrchestrator
from core.streaming import EVENT_TYPES, EventChannel, ProgressStreamer
from utils.llm import TextCompletionClient

logger = logging.getLogger(__name__)

app = Flask(__name__)
client = TextCompletionClient()
sessions = SessionRegistry()
summarizer = FileSummarizer(client)

FEATURES = [
    "intent-analysis",
    "context-search",
    "strategic-planning",
    "surgical-editing",
    "error-detection",
    "auto-fix-retry",
    "conversation-memory",
]

# One event loop shared by every run; started on first use.
_loop = None
_loop_lock = threading.Lock()


def _event_loop():
    global _loop
    with _loop_lock:
        if _loop is None:
            _loop = asyncio.new_event_loop()
            threading.Thread(target=_loop.run_forever, name="pipeline-loop", daemon=True).start()
    return _loop


def _new_orchestrator():
    """Fresh pipeline per request; the completion client is shared."""
    return MultiPhaseOrchestrator(client)


def _stream(run):
    """Run `run(streamer)` on the shared loop and stream its events as SSE.

    The stream always ends with one `complete` or `error` event. Closing
    the response (client disconnect) cancels the run.
    """
    channel = EventChannel()
    streamer = ProgressStreamer(channel)

    async def runner():
        try:
            await run(streamer)
        except asyncio.CancelledError:
            logger.info("Run cancelled, client went away")
            raise
        except Exception as e:
            logger.exception("Run failed")
            streamer.fail(str(e) or type(e).__name__)
        else:
            if not streamer.finished:
                streamer.fail("Run ended without a result")
        finally:
            channel.close()

    future = asyncio.run_coroutine_threadsafe(runner(), _event_loop())

    def generate():
        try:
            for event in channel:
                yield event.to_sse()
        finally:
            if not future.done():
                future.cancel()

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


def _current_files(data):
    files = (data.get("context") or {}).get("currentFiles") or {}
    return {path: content for path, content in files.items() if isinstance(content, str)}


def _session_for(data):
    session = sessions.get(data.get("sessionId") or "default")
    history = data.get("conversationHistory") or []
    if history and not session.get_current_state().messages:
        for message in history:
            if not isinstance(message, dict):
                continue
            if message.get("role") in ("user", "assistant") and message.get("content"):
                session.add_message(message["role"], message["content"])
    return session


def _failed_stage(result):
    failed = next((p for p in result.phases if p.status == "failed"), None)
    return failed.name if failed else None


def _result_summary(result):
    return {
        "approach": result.plan.approach if result.plan else None,
        "filesModified": [e.file_path for e in result.edits],
        "totalDuration": round(result.total_duration, 3),
        "confidence": result.intent.confidence if result.intent else None,
        "phases": [p.to_dict() for p in result.phases],
    }


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@app.route("/api/generate", methods=["GET"])
def api_generate_info():
    return jsonify({
        "status": "ready",
        "features": FEATURES,
        "events": list(EVENT_TYPES),
        "models": DEFAULTS["models"],
    })


@app.route("/api/generate", methods=["POST"])
def api_generate():
    """Full pipeline: intent, context, plan, surgical edits, validation."""
    data = request.get_json(silent=True)
    if not data or not str(data.get("prompt", "")).strip():
        return jsonify({"error": "Missing prompt"}), 400

    prompt = data["prompt"].strip()
    files = _current_files(data)
    session = _session_for(data)

    async def run(streamer):
        streamer.update_status("Starting", f"{len(files)} file(s) in project")
        result = await _new_orchestrator().run(prompt, files, session=session, streamer=streamer)
        if not result.success:
            streamer.fail(result.error, stage=_failed_stage(result))
            return
        for edit in result.edits:
            streamer.complete_file_generation(
                edit.file_path,
                edit.modified_content,
                changeDescription=edit.change_description,
                linesChanged=len(edit.lines_changed),
                isSurgicalEdit=bool(edit.original_content),
            )
        streamer.complete(_result_summary(result))

    return _stream(run)


@app.route("/api/plan", methods=["POST"])
def api_plan():
    """Intent analysis and a markdown plan, nothing is edited."""
    data = request.get_json(silent=True)
    if not data or not str(data.get("prompt", "")).strip():
        return jsonify({"error": "Missing prompt"}), 400

    prompt = data["prompt"].strip()
    files = _current_files(data)
    session = _session_for(data)

    async def run(streamer):
        result = await _new_orchestrator().plan(prompt, files, session=session, streamer=streamer)
        if not result.success:
            streamer.fail(result.error, stage=_failed_stage(result))
            return
        summary = _result_summary(result)
        summary["intent"] = result.intent.to_dict()
        summary["plan"] = result.plan.to_dict()
        streamer.complete(summary)

    return _stream(run)


@app.route("/api/agentic-workflow", methods=["POST"])
def api_agentic_workflow():
    """Single-file generation through the build/detect/fix retry loop."""
    data = request.get_json(silent=True)
    if not data or not str(data.get("prompt", "")).strip():
        return jsonify({"error": "Missing prompt"}), 400

    prompt = data["prompt"].strip()
    files = _current_files(data)
    max_retries = data.get("maxRetries")
    file_name = DEFAULTS["default_component_name"] + DEFAULTS["default_component_ext"]

    async def run(streamer):
        task, result = await _new_orchestrator().run_agentic(
            prompt, files, max_retries=max_retries, streamer=streamer, summarizer=summarizer,
        )
        if not result.success:
            streamer.fail(result.error or "Generation failed", stage="Building")
            return
        streamer.complete_file_generation(
            file_name,
            result.code,
            attempts=result.attempts,
            appliedFixes=result.applied_fixes,
        )
        streamer.complete({
            "category": task.category,
            "complexity": task.complexity,
            "attempts": result.attempts,
            "appliedFixes": result.applied_fixes,
        })

    return _stream(run)


@app.route("/api/update-file-context", methods=["POST"])
def api_update_file_context():
    data = request.get_json(silent=True)
    files = (data or {}).get("files")
    if not isinstance(files, dict):
        return jsonify({"success": False, "error": "Files object is required"}), 400

    future = asyncio.run_coroutine_threadsafe(summarizer.update_index(files), _event_loop())
    future.result()
    last_updated = datetime.fromtimestamp(summarizer.last_updated, timezone.utc).isoformat()
    return jsonify({
        "success": True,
        "summary": f"Updated context for {len(files)} files",
        "filesAnalyzed": len(summarizer.files),
        "lastUpdated": last_updated,
        "contextPreview": summarizer.get_context_summary()[:500],
    })


@app.route("/api/session/reset", methods=["POST"])
def api_session_reset():
    data = request.get_json(silent=True) or {}
    session_id = data.get("sessionId") or "default"
    sessions.drop(session_id)
    return jsonify({"success": True, "sessionId": session_id})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5001))
    logger.info("Codegen server running at http://localhost:%d", port)
    app.run(debug=False, port=port, threaded=True)
