"""Defect rules, chunk boundaries and preference triggers."""

import re

# Known defect rules, checked in order. Each entry:
# (name, pattern, error_type, severity, message, auto_fixable, unless)
# name doubles as the fix strategy for fixable rules.
# unless: when set, the rule fires at most once and only if the code does
# NOT contain that substring. Otherwise one error is reported per match.
ERROR_RULES = [
    (
        "template_literal_quotes",
        re.compile(r"""'([^']*\$\{[^}]+\}[^']*)'"""),
        "template_literal",
        "high",
        "Template literal using single quotes instead of backticks",
        True,
        None,
    ),
    (
        "undefined_variables",
        re.compile(r"""\$\{(\w*[Pp]aram\w*|\w*[Qq]uery\w*)\}"""),
        "undefined_variable",
        "critical",
        "Undefined variable in template literal",
        True,
        None,
    ),
    (
        "add_react_import",
        re.compile(r"""useState|useEffect|useCallback"""),
        "missing_import",
        "high",
        "React hook used without import",
        True,
        "import React",
    ),
    (
        "relative_urls",
        re.compile(r"""fetch\s*\(\s*['"`]/api/"""),
        "logical",
        "high",
        "Relative URL will not work in sandbox environment",
        True,
        None,
    ),
    (
        "cors_error",
        re.compile(r"""blocked by CORS policy"""),
        "cors",
        "critical",
        "CORS policy blocking cross-origin request",
        False,
        None,
    ),
    (
        "syntax_errors",
        re.compile(r"""SyntaxError|Unexpected token|Unexpected end of input"""),
        "syntax",
        "critical",
        "JavaScript syntax error detected",
        False,
        None,
    ),
]

# Rewrites used by the fix strategies
RELATIVE_FETCH_RE = re.compile(r"""fetch\s*\(\s*['"`](/api/[^'"`]+)['"`]""")
REACT_HOOKS = ("useState", "useEffect", "useCallback")
UNDEFINED_VARIABLE_RENAMES = {
    "symbolsParam": "symbols",
    "symbolsQuery": "symbols",
    "stocksParam": "stocks",
    "dataQuery": "query",
}
DEFAULT_SYMBOLS_STATE = "const [symbols, setSymbols] = useState('AAPL,GOOGL,MSFT');"

# Suggestion per error type for errors the rewrites could not resolve
FIX_SUGGESTIONS = {
    "syntax": "Check for missing semicolons, brackets, or quotes",
    "template_literal": "Use backticks (`) for strings that interpolate ${...}",
    "undefined_variable": "Define variables before using them in template literals",
    "missing_import": "Add necessary import statements at the top of the file",
    "logical": "Review the logic flow and ensure all dependencies are met",
    "cors": "CORS headers need to be added to the API endpoint",
}

# Declaration boundaries for the file chunker, checked in order against each
# stripped line. The chunk name is the first non-empty capture group.
CHUNK_PATTERNS = [
    (
        "component",
        re.compile(
            r"^(?:export\s+default\s+(?:async\s+)?(?:function|class)\s+([A-Z]\w*)"
            r"|(?:export\s+)?(?:const|let)\s+([A-Z]\w*)\s*(?::\s*[\w.<>\[\], ]+)?=\s*"
            r"(?:React\.)?(?:memo\(|forwardRef\()?\s*(?:async\s*)?(?:\([^)]*\)|\w+)\s*(?::\s*[\w.<>\[\]]+\s*)?=>"
            r"|(?:export\s+)?class\s+([A-Z]\w*)\s+extends\s+(?:React\.)?(?:Pure)?Component\b)"
        ),
    ),
    ("function", re.compile(r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)")),
    ("class", re.compile(r"^(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(\w+)")),
    ("interface", re.compile(r"^(?:export\s+)?interface\s+(\w+)")),
    ("variable", re.compile(r"^(?:export\s+)?(?:const|let|var)\s+(\w+)")),
]

IMPORT_SOURCE_RE = re.compile(r"""import.*from\s+['"`]([^'"`]+)['"`]""")
EXPORT_NAME_RE = re.compile(r"""export\s+(?:default\s+)?(?:const|function|class|interface)\s+(\w+)""")
COMPONENT_NAME_RE = re.compile(r"""(?:export\s+default\s+|function\s+|const\s+)([A-Z][a-zA-Z0-9]*)""")

# Preference triggers, one value per category. Within a category the first
# entry whose keywords appear in the lowercased message wins.
PREFERENCE_TRIGGERS = {
    "styling": [
        ("tailwind", ("tailwind", "tw-")),
        ("css-modules", ("css modules", ".module.css")),
        ("css-in-js", ("styled-components", "emotion")),
    ],
    "componentStyle": [
        ("functional", ("functional component", "hooks")),
        ("class", ("class component",)),
    ],
    "stateManagement": [
        ("zustand", ("zustand", "jotai")),
        ("redux", ("redux", "toolkit")),
        ("context", ("context", "usecontext")),
    ],
    "testing": [
        ("jest", ("jest", "testing-library")),
        ("vitest", ("vitest",)),
    ],
}

# Words dropped from prompts when deriving fallback search terms
STOPWORDS = {"this", "that", "with", "from", "they", "have", "will", "been", "were"}
