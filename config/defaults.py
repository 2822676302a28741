"""Default pipeline settings."""

import os

_MODEL = os.environ.get("CODEGEN_MODEL", "claude-sonnet-4-5-20250929")

DEFAULTS = {
    # Per-phase model ids; each can be pinned separately from the environment.
    "models": {
        "intent": os.environ.get("CODEGEN_INTENT_MODEL", _MODEL),
        "planning": os.environ.get("CODEGEN_PLANNING_MODEL", _MODEL),
        "editing": os.environ.get("CODEGEN_EDIT_MODEL", _MODEL),
        "builder": os.environ.get("CODEGEN_BUILDER_MODEL", _MODEL),
        "summary": os.environ.get("CODEGEN_SUMMARY_MODEL", _MODEL),
    },
    "temperatures": {
        "intent": 0.1,
        "planning": 0.2,
        "enhanced_planning": 0.3,
        "editing": 0.1,
        "creation": 0.2,
        "builder": 0.1,
        "summary": 0.1,
    },
    "max_tokens": 8192,
    "request_timeout": 120,         # seconds, per completion call
    "phase_timeout": 300,           # seconds, per orchestrator phase; None disables
    "max_retries": 2,
    "hard_max_retries": 5,          # absolute ceiling, cannot be overridden
    "retry_backoff_seconds": 1.0,   # linear: backoff * attempt
    # Maximum files touched per edit type
    "file_caps": {"UPDATE": 1, "FIX": 1, "ENHANCE": 2, "CREATE": 1, "REFACTOR": 3},
    "default_file_cap": 1,
    "relevance_threshold": 0.1,
    "keyword_weight": 0.4,
    "semantic_weight": 0.6,
    "max_relevant_files": 5,
    "snippet_radius": 2,
    "search_context_lines": 3,
    "summary_max_files": 10,
    "summary_max_components": 8,
    "fallback_confidence": 0.3,
    "fallback_keyword_limit": 5,
    "max_messages": 50,
    "max_recent_edits": 20,
    "context_messages": 10,
    "context_edits": 5,
    "duplicate_threshold": 0.8,
    "duplicate_window": 3,
    "max_sessions": 100,
    "session_ttl": 3600,
    "sandbox_base_url": os.environ.get("SANDBOX_BASE_URL", "https://fastprototype.vercel.app"),
    "default_component_name": "Component",
    "default_component_ext": ".tsx",
}
