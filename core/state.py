"""Data models shared across all pipeline stages."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any

EDIT_TYPES = ("CREATE", "UPDATE", "FIX", "ENHANCE", "REFACTOR")
PLAN_APPROACHES = ("surgical_edit", "new_creation", "multi_file_refactor")
COMPLEXITY_LEVELS = ("low", "medium", "high")


@dataclass
class CodebaseContext:
    files: dict[str, str]               # path -> content, never mutated
    file_structure: str = ""
    component_list: list[str] = field(default_factory=list)
    recent_changes: list[str] = field(default_factory=list)


@dataclass
class IntentAnalysis:
    edit_type: str                      # CREATE|UPDATE|FIX|ENHANCE|REFACTOR
    reasoning: str
    target_files: list[str] = field(default_factory=list)
    search_terms: list[str] = field(default_factory=list)
    regex_patterns: list[str] = field(default_factory=list)
    expected_changes: list[str] = field(default_factory=list)
    surgical_edit: bool = False
    confidence: float = 0.0

    def to_dict(self):
        return {
            "editType": self.edit_type,
            "reasoning": self.reasoning,
            "targetFiles": list(self.target_files),
            "searchTerms": list(self.search_terms),
            "regexPatterns": list(self.regex_patterns),
            "expectedChanges": list(self.expected_changes),
            "surgicalEdit": self.surgical_edit,
            "confidence": self.confidence,
        }


@dataclass
class EditExample:
    pattern: str                        # CREATE_COMPONENT, UPDATE_FUNCTION, ...
    edit_type: str                      # CREATE|UPDATE|FIX|ENHANCE|REFACTOR
    description: str
    search_terms: list[str]
    regex_patterns: list[str]           # may contain {FUNCTION_NAME}
    target_file_types: list[str]
    confidence: str                     # high|medium|low


@dataclass
class EditPattern:
    name: str
    applicable_scenarios: list[str]
    examples: list[EditExample]


@dataclass
class TaskAnalysis:
    category: str                       # financial|ui|api|hybrid
    complexity: str                     # simple|medium|complex
    required_tools: list[str] = field(default_factory=list)
    estimated_steps: int = 1


@dataclass
class CodeChunk:
    start_line: int                     # 0-based, inclusive
    end_line: int                       # 0-based, inclusive
    type: str                           # component|function|class|interface|variable
    name: str
    content: str = ""


@dataclass
class FileAnalysis:
    file_path: str
    language: str
    content: str
    chunks: list[CodeChunk] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)


@dataclass
class SearchHit:
    file_path: str
    line_number: int                    # 1-based
    line: str
    confidence: str                     # high|medium|low
    matched_term: str | None = None
    matched_pattern: str | None = None
    context_before: list[str] = field(default_factory=list)
    context_after: list[str] = field(default_factory=list)


@dataclass
class RetrievedContext:
    relevant_files: list[str] = field(default_factory=list)
    ranked: list[FileAnalysis] = field(default_factory=list)
    hits: list[SearchHit] = field(default_factory=list)
    snippets: dict[str, list[str]] = field(default_factory=dict)
    suggested_target: str | None = None
    confidence: float = 0.0


@dataclass
class StrategicPlan:
    approach: str                       # surgical_edit|new_creation|multi_file_refactor
    reasoning: str
    phases: list[str] = field(default_factory=list)
    risk_assessment: list[str] = field(default_factory=list)
    success_criteria: list[str] = field(default_factory=list)
    estimated_complexity: str = "medium"

    def to_dict(self):
        return {
            "approach": self.approach,
            "reasoning": self.reasoning,
            "phases": list(self.phases),
            "riskAssessment": list(self.risk_assessment),
            "successCriteria": list(self.success_criteria),
            "estimatedComplexity": self.estimated_complexity,
        }


@dataclass
class SurgicalEdit:
    file_path: str
    original_content: str               # "" for newly created files
    modified_content: str
    change_description: str
    lines_changed: list[int] = field(default_factory=list)   # 1-based


@dataclass
class DetectedError:
    type: str                           # syntax|template_literal|undefined_variable|missing_import|cors|logical
    severity: str                       # low|medium|high|critical
    message: str
    auto_fixable: bool
    fix_strategy: str | None = None
    location: dict[str, Any] | None = None  # {"code": ..., "line": ...}

    def to_dict(self):
        return asdict(self)


@dataclass
class AutoFixResult:
    success: bool
    fixed_code: str | None
    applied_fixes: list[str] = field(default_factory=list)
    remaining_errors: list[DetectedError] = field(default_factory=list)


@dataclass
class CodeValidation:
    is_valid: bool
    issues: list[str] = field(default_factory=list)


@dataclass
class ErrorContext:
    failed_code: str = ""
    errors: list[dict] = field(default_factory=list)
    fixes: list[str] = field(default_factory=list)
    remaining_issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    error: str | None = None            # builder failure message, if any
    attempt: int = 0


@dataclass
class RetryResult:
    success: bool
    code: str | None
    attempts: int
    applied_fixes: list[str] = field(default_factory=list)
    last_error: ErrorContext | None = None
    error: str | None = None


@dataclass
class ConversationMessage:
    role: str                           # user|assistant
    content: str
    timestamp: float = field(default_factory=time.time)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RecentEdit:
    timestamp: float
    file_name: str
    edit_type: str
    description: str
    components_affected: list[str] = field(default_factory=list)


@dataclass
class ProjectEvolution:
    components: list[str] = field(default_factory=list)
    user_preferences: dict[str, str] = field(default_factory=dict)
    tech_stack: list[str] = field(default_factory=list)
    architecture: str = ""
    recent_edits: list[RecentEdit] = field(default_factory=list)


@dataclass
class ConversationState:
    session_id: str
    messages: list[ConversationMessage]
    project_evolution: ProjectEvolution
    current_context: dict[str, str] = field(default_factory=dict)
    session_start_time: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)


_TRANSITIONS = {
    "pending": ("in_progress",),
    "in_progress": ("completed", "failed"),
    "completed": (),
    "failed": (),
}


@dataclass
class ReasoningPhase:
    name: str
    status: str = "pending"             # pending|in_progress|completed|failed
    result: Any = None
    duration: float | None = None
    error: str | None = None
    _started: float | None = field(default=None, repr=False)

    def _move(self, status):
        if status not in _TRANSITIONS[self.status]:
            raise RuntimeError(f"Phase '{self.name}' cannot go from {self.status} to {status}")
        self.status = status

    def start(self):
        self._move("in_progress")
        self._started = time.monotonic()

    def complete(self, result=None):
        self._move("completed")
        self.result = result
        self.duration = time.monotonic() - self._started

    def fail(self, error):
        self._move("failed")
        self.error = str(error)
        self.duration = time.monotonic() - self._started

    def to_dict(self):
        return {
            "name": self.name,
            "status": self.status,
            "duration": self.duration,
            "error": self.error,
        }


@dataclass
class ReasoningResult:
    phases: list[ReasoningPhase]
    intent: IntentAnalysis | None = None
    context: RetrievedContext | None = None
    plan: StrategicPlan | None = None
    edits: list[SurgicalEdit] = field(default_factory=list)
    diagnostics: dict[str, list[DetectedError]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    total_duration: float = 0.0
    success: bool = False
    error: str | None = None
