"""Structural quality gate for generated code."""

from core.state import CodeValidation

_PAIRS = (("{", "}", "Mismatched braces"),
          ("(", ")", "Mismatched parentheses"),
          ("[", "]", "Mismatched brackets"))


def validate_code(code: str) -> CodeValidation:
    """Heuristic check that code is likely to run. Counts, does not parse."""
    issues = []
    for opener, closer, message in _PAIRS:
        if code.count(opener) != code.count(closer):
            issues.append(message)

    if "${" in code and "`" not in code:
        issues.append("Template literals without backticks")

    if "useState" in code and "import" not in code:
        issues.append("React hooks without imports")

    return CodeValidation(is_valid=not issues, issues=issues)
