"""Error detector — finds known defects in generated code and rewrites them. Zero LLM calls."""

import logging
import re

from config.defaults import DEFAULTS
from config.rules import (
    DEFAULT_SYMBOLS_STATE,
    ERROR_RULES,
    REACT_HOOKS,
    RELATIVE_FETCH_RE,
    UNDEFINED_VARIABLE_RENAMES,
)
from config.stacks import MARKET_DATA_URL
from core.state import AutoFixResult, DetectedError

logger = logging.getLogger(__name__)

_MARKET_DATA_MARKER = MARKET_DATA_URL.split("://", 1)[-1]


def _line_of(code, offset):
    return code.count("\n", 0, offset) + 1


# --- Fix strategies: code -> code, returning the input when nothing applies ---

def _fix_template_literal_quotes(code):
    return re.sub(r"""'([^']*\$\{[^}]+\}[^']*)'""", r"`\1`", code)


def _fix_undefined_variables(code):
    for old, new in UNDEFINED_VARIABLE_RENAMES.items():
        code = code.replace("${" + old + "}", "${" + new + "}")
    return code


def _fix_add_react_import(code):
    if "import React" in code:
        return code
    hooks = [hook for hook in REACT_HOOKS if hook in code]
    if not hooks:
        return code
    return f"import React, {{ {', '.join(hooks)} }} from 'react';\n\n{code}"


def _fix_relative_urls(code):
    base = DEFAULTS["sandbox_base_url"]
    return RELATIVE_FETCH_RE.sub(lambda m: f"fetch(`{base}{m.group(1)}`", code)


def _fix_add_state_management(code):
    if "${symbols}" not in code or "useState" in code:
        return code
    for header in (r"(export default function \w+\(\) \{)", r"(function \w+\([^)]*\) \{)"):
        fixed, count = re.subn(header, lambda m: f"{m.group(1)}\n  {DEFAULT_SYMBOLS_STATE}\n", code, count=1)
        if count:
            return fixed
    return code


FIX_STRATEGIES = {
    "template_literal_quotes": _fix_template_literal_quotes,
    "undefined_variables": _fix_undefined_variables,
    "add_react_import": _fix_add_react_import,
    "relative_urls": _fix_relative_urls,
    "add_state_management": _fix_add_state_management,
}


class ErrorDetector:
    """Scans code against the rule catalog and applies deterministic fixes."""

    name = "error_detector"

    def detect(self, code, task=None):
        """Return every known defect in code, in rule order.

        task: optional TaskAnalysis; financial tasks must call the market
        data endpoint.
        """
        errors = []
        for name, pattern, error_type, severity, message, fixable, unless in ERROR_RULES:
            if unless is not None:
                if unless not in code and pattern.search(code):
                    errors.append(DetectedError(
                        type=error_type,
                        severity=severity,
                        message=message,
                        auto_fixable=fixable,
                        fix_strategy=name if fixable else None,
                    ))
                continue
            for match in pattern.finditer(code):
                errors.append(DetectedError(
                    type=error_type,
                    severity=severity,
                    message=f"{message}: {match.group(0)}",
                    auto_fixable=fixable,
                    fix_strategy=name if fixable else None,
                    location={"code": match.group(0), "line": _line_of(code, match.start())},
                ))

        if task is not None and task.category == "financial" and _MARKET_DATA_MARKER not in code:
            errors.append(DetectedError(
                type="logical",
                severity="high",
                message="Financial app should use market data API",
                auto_fixable=False,
            ))

        if "${" in code and "useState" not in code:
            errors.append(DetectedError(
                type="logical",
                severity="medium",
                message="Template literals used without proper state management",
                auto_fixable=True,
                fix_strategy="add_state_management",
            ))

        if errors:
            logger.debug("Detected %d error(s)", len(errors))
        return errors

    def auto_fix(self, code, errors):
        """Apply each fixable error's rewrite once, in order.

        An error whose rewrite leaves the code unchanged, or that has no
        rewrite, is reported in remaining_errors.
        """
        fixed = code
        applied = []
        remaining = []
        for error in errors:
            strategy = FIX_STRATEGIES.get(error.fix_strategy) if error.auto_fixable else None
            if strategy is None:
                remaining.append(error)
                continue
            before = fixed
            fixed = strategy(fixed)
            if fixed != before:
                applied.append(f"{error.type}: {error.message}")
            else:
                remaining.append(error)

        return AutoFixResult(
            success=bool(applied),
            fixed_code=fixed if applied else None,
            applied_fixes=applied,
            remaining_errors=remaining,
        )
