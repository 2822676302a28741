"""Patch composer — turns failed attempts into retry context. Zero LLM calls."""

from config.rules import FIX_SUGGESTIONS
from core.state import AutoFixResult, ErrorContext

_SEVERITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def generate_fix_suggestions(errors):
    """One suggestion per distinct error type, in first-seen order."""
    suggestions = []
    for error in errors:
        suggestion = FIX_SUGGESTIONS.get(error.type)
        if suggestion and suggestion not in suggestions:
            suggestions.append(suggestion)
    return suggestions


class PatchComposer:
    """Collects detected errors and fix results into instructions for the next attempt."""

    name = "patch_composer"

    def create_error_context(self, failed_code, errors, fix_result: AutoFixResult, attempt=0):
        return ErrorContext(
            failed_code=failed_code,
            errors=[
                {
                    "type": e.type,
                    "message": e.message,
                    "severity": e.severity,
                    "autoFixable": e.auto_fixable,
                }
                for e in errors
            ],
            fixes=list(fix_result.applied_fixes),
            remaining_issues=[e.message for e in fix_result.remaining_errors],
            suggestions=generate_fix_suggestions(fix_result.remaining_errors),
            attempt=attempt,
        )

    def failure_context(self, error, attempt):
        """Context for an attempt that produced no code at all."""
        return ErrorContext(error=str(error), attempt=attempt)

    def format_instructions(self, context: ErrorContext):
        """Render an error context as fix instructions for the builder prompt."""
        if context is None:
            return ""
        if context.error and not context.errors:
            return f"The previous attempt failed before producing code: {context.error}\n"

        ordered = sorted(context.errors, key=lambda e: _SEVERITY_RANK.get(e["severity"], 4))
        lines = ["The previous attempt had these problems. Fix all of them:\n"]
        for idx, err in enumerate(ordered, 1):
            lines.append(f"{idx}. [{err['severity'].upper()}] {err['type']}: {err['message']}")
        if context.fixes:
            lines.append("\nAlready auto-fixed (keep these fixes):")
            lines.extend(f"- {fix}" for fix in context.fixes)
        if context.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"- {s}" for s in context.suggestions)
        if context.failed_code:
            lines.append(f"\nPrevious code:\n```\n{context.failed_code}\n```")
        return "\n".join(lines)
