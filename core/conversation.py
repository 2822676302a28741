"""Per-session conversation memory: messages, edits, preferences, components."""

import logging
import threading
import time
from collections import deque

from config.defaults import DEFAULTS
from config.rules import COMPONENT_NAME_RE, PREFERENCE_TRIGGERS
from config.stacks import COMPONENT_EXTENSIONS, DEFAULT_ARCHITECTURE, DEFAULT_TECH_STACK
from core.state import (
    ConversationMessage,
    ConversationState,
    ProjectEvolution,
    RecentEdit,
)
from utils.scoring import similarity

logger = logging.getLogger(__name__)


def detect_preferences(message):
    """Map a user message to the preference values it expresses."""
    text = message.lower()
    found = {}
    for category, triggers in PREFERENCE_TRIGGERS.items():
        for value, keywords in triggers:
            if any(keyword in text for keyword in keywords):
                found[category] = value
                break
    return found


def extract_component_names(files):
    """Component names declared in the .tsx/.jsx files of a snapshot."""
    names = []
    for path, content in files.items():
        if not path.endswith(COMPONENT_EXTENSIONS):
            continue
        for name in COMPONENT_NAME_RE.findall(content):
            if name not in names:
                names.append(name)
    return names


class ConversationStateStore:
    """Conversation state for one session.

    Messages and recent edits are ring buffers: once full, the oldest entry
    is evicted. All methods are safe to call from several threads.
    """

    def __init__(self, session_id="default", max_messages=None, max_edits=None):
        self.session_id = session_id
        self.max_messages = max_messages or DEFAULTS["max_messages"]
        self.max_edits = max_edits or DEFAULTS["max_recent_edits"]
        self._lock = threading.RLock()
        self._init_state()

    def _init_state(self):
        now = time.time()
        self._messages = deque(maxlen=self.max_messages)
        self._edits = deque(maxlen=self.max_edits)
        self._components = []
        self._preferences = {}
        self._tech_stack = list(DEFAULT_TECH_STACK)
        self._architecture = DEFAULT_ARCHITECTURE
        self._current_context = {}
        self._started = now
        self.last_activity = now

    def _touch(self):
        self.last_activity = time.time()

    def _add_components(self, names):
        for name in names:
            if name not in self._components:
                self._components.append(name)

    def add_message(self, role, content, metadata=None):
        with self._lock:
            self._messages.append(ConversationMessage(role=role, content=content, metadata=dict(metadata or {})))
            if role == "user":
                self._preferences.update(detect_preferences(content))
            self._touch()

    def record_file_edit(self, file_name, edit_type, description, components_affected=None):
        with self._lock:
            components = list(components_affected or [])
            self._edits.append(RecentEdit(
                timestamp=time.time(),
                file_name=file_name,
                edit_type=edit_type,
                description=description,
                components_affected=components,
            ))
            self._add_components(components)
            self._touch()

    def update_context(self, files):
        with self._lock:
            self._current_context = dict(files)
            self._add_components(extract_component_names(files))
            self._touch()

    def get_components(self):
        with self._lock:
            return list(self._components)

    def get_recent_edits(self, limit=None):
        with self._lock:
            edits = list(self._edits)
        return edits[-limit:] if limit else edits

    def get_conversation_context(self):
        """Markdown digest of recent messages, components, edits and preferences."""
        with self._lock:
            messages = list(self._messages)[-DEFAULTS["context_messages"]:]
            edits = list(self._edits)[-DEFAULTS["context_edits"]:]
            components = list(self._components)
            preferences = dict(self._preferences)

        parts = ["# CONVERSATION CONTEXT\n"]
        if messages:
            parts.append("## Recent Messages:")
            for i, msg in enumerate(messages, 1):
                parts.append(f"{i}. {msg.role}: {msg.content[:100]}...")
            parts.append("")
        if components:
            parts.append(f"## Current Components: {', '.join(components)}\n")
        if edits:
            parts.append("## Recent Edits:")
            for edit in edits:
                parts.append(f"- {edit.edit_type}: {edit.file_name} ({edit.description})")
            parts.append("")
        if preferences:
            parts.append("## User Preferences:")
            for key, value in preferences.items():
                parts.append(f"- {key}: {value}")
            parts.append("")
        return "\n".join(parts)

    def get_project_summary(self):
        with self._lock:
            components = list(self._components)
            more = "..." if len(components) > 5 else ""
            return (
                f"Project: {self._architecture} React app\n"
                f"Tech Stack: {', '.join(self._tech_stack)}\n"
                f"Components: {len(components)} ({', '.join(components[:5])}{more})\n"
                f"Recent Activity: {len(self._edits)} edits in session"
            )

    def has_established_patterns(self):
        with self._lock:
            return len(self._preferences) > 2 or len(self._edits) > 3

    def get_preferred_patterns(self):
        with self._lock:
            return dict(self._preferences)

    def is_duplicate_request(self, text):
        """True if text nearly repeats one of the last few user messages."""
        candidate = text.lower().strip()
        with self._lock:
            recent = [m.content for m in self._messages if m.role == "user"]
        for previous in recent[-DEFAULTS["duplicate_window"]:]:
            if similarity(candidate, previous.lower().strip()) > DEFAULTS["duplicate_threshold"]:
                return True
        return False

    def get_current_state(self):
        """Snapshot of the session; later changes do not affect it."""
        with self._lock:
            return ConversationState(
                session_id=self.session_id,
                messages=list(self._messages),
                project_evolution=ProjectEvolution(
                    components=list(self._components),
                    user_preferences=dict(self._preferences),
                    tech_stack=list(self._tech_stack),
                    architecture=self._architecture,
                    recent_edits=list(self._edits),
                ),
                current_context=dict(self._current_context),
                session_start_time=self._started,
                last_activity=self.last_activity,
            )

    def reset(self):
        with self._lock:
            self._init_state()


class SessionRegistry:
    """Conversation stores keyed by session id, expired by idle time and count."""

    def __init__(self, max_sessions=None, ttl=None):
        self.max_sessions = max_sessions or DEFAULTS["max_sessions"]
        self.ttl = ttl or DEFAULTS["session_ttl"]
        self._sessions = {}
        self._lock = threading.Lock()

    def _cleanup(self):
        """Remove expired sessions. Called under _lock."""
        now = time.time()
        expired = [sid for sid, store in self._sessions.items() if now - store.last_activity > self.ttl]
        for sid in expired:
            del self._sessions[sid]
        # If still over limit, remove least recently used
        if len(self._sessions) > self.max_sessions:
            by_age = sorted(self._sessions.items(), key=lambda item: item[1].last_activity)
            for sid, _ in by_age[:len(self._sessions) - self.max_sessions]:
                del self._sessions[sid]
        if expired:
            logger.info("Expired %d idle session(s)", len(expired))

    def get(self, session_id="default"):
        with self._lock:
            store = self._sessions.get(session_id)
            if store is None:
                store = ConversationStateStore(session_id)
                self._sessions[session_id] = store
                self._cleanup()
            return store

    def drop(self, session_id):
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def __len__(self):
        with self._lock:
            return len(self._sessions)
