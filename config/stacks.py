"""Project stack defaults and task-category keyword tables."""

from config.defaults import DEFAULTS

DEFAULT_TECH_STACK = ["React", "TypeScript", "Next.js"]
DEFAULT_ARCHITECTURE = "component-based"

MARKET_DATA_URL = DEFAULTS["sandbox_base_url"] + "/api/market-data"

# Extension -> language name used by the file indexer
LANGUAGES = {
    ".tsx": "typescript",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".js": "javascript",
    ".mjs": "javascript",
    ".css": "css",
    ".scss": "css",
    ".html": "html",
    ".json": "json",
    ".md": "markdown",
    ".py": "python",
}

COMPONENT_EXTENSIONS = (".tsx", ".jsx")

# Keyword tables for task classification. A category scores one point per
# keyword found in the lowercased request.
TASK_CATEGORIES = {
    "financial": ["stock", "crypto", "portfolio", "market", "price", "trading", "screener"],
    "ui": ["component", "form", "button", "modal", "layout", "dashboard", "interface"],
    "api": ["fetch", "api", "endpoint", "data", "request", "response"],
}

COMPLEXITY_INDICATORS = ["screener", "dashboard", "tracker", "multiple", "complex", "advanced"]
MULTI_STEP_INDICATORS = ["and", "then", "also", "with", "including"]

# Request constraints. Each entry: (trigger_keywords, constraints). A
# block applies when any trigger is a substring of the lowercased request.
REQUEST_CONSTRAINTS = [
    (
        ("stock", "market", "finance"),
        [
            f"MUST use {MARKET_DATA_URL} for real market data",
            "NEVER use mock or placeholder data for financial information",
            "ALWAYS include user input fields for stock symbols",
            "Use backticks (`) for template literals with variables",
        ],
    ),
    (
        ("form", "input"),
        [
            "Include proper form validation and error handling",
            "Use controlled components with useState",
            "Add proper TypeScript types for form data",
        ],
    ),
    (
        ("component",),
        [
            "Export as default React functional component",
            "Include proper TypeScript props interface",
            "Use modern React patterns (hooks, not classes)",
        ],
    ),
    (
        ("api",),
        [
            "Include proper error handling with try/catch",
            "Add TypeScript types for request/response",
            "Use NextRequest/NextResponse for API routes",
        ],
    ),
]
