"""Built-in edit pattern catalog.

Each entry groups one or more examples under a pattern name together with
the request phrases it applies to. Regex patterns may contain the
{FUNCTION_NAME} placeholder, expanded once per search term at lookup time.
"""

EDIT_PATTERNS = [
    {
        "name": "Component Creation",
        "scenarios": ["create new component", "add component", "new react component"],
        "examples": [{
            "pattern": "CREATE_COMPONENT",
            "edit_type": "CREATE",
            "description": "Create new React component with TypeScript",
            "search_terms": ["component", "react", "tsx"],
            "regex_patterns": [
                r"export\s+(?:default\s+)?(?:function|const)\s+\w+",
                r"interface\s+\w+Props",
                r"import.*React",
            ],
            "target_file_types": ["tsx", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "Function Updates",
        "scenarios": ["update function", "modify method", "change function behavior"],
        "examples": [{
            "pattern": "UPDATE_FUNCTION",
            "edit_type": "UPDATE",
            "description": "Update existing function implementation",
            "search_terms": ["function", "const", "async", "return"],
            "regex_patterns": [
                r"(?:function|const)\s+{FUNCTION_NAME}\s*[=\(]",
                r"{FUNCTION_NAME}\s*:\s*\(.*?\)\s*=>",
                r"async\s+function\s+{FUNCTION_NAME}",
            ],
            "target_file_types": ["ts", "tsx", "js", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "Bug Fixes",
        "scenarios": ["fix bug", "resolve error", "correct issue"],
        "examples": [{
            "pattern": "FIX_BUG",
            "edit_type": "FIX",
            "description": "Fix specific bug or error in existing code",
            "search_terms": ["error", "bug", "issue", "problem"],
            "regex_patterns": [
                r"throw\s+new\s+Error",
                r"console\.error",
                r"try\s*\{[\s\S]*?catch",
            ],
            "target_file_types": ["ts", "tsx", "js", "jsx"],
            "confidence": "medium",
        }],
    },
    {
        "name": "State Management",
        "scenarios": ["add state", "update state", "manage state"],
        "examples": [{
            "pattern": "ADD_STATE",
            "edit_type": "ENHANCE",
            "description": "Add or modify React state management",
            "search_terms": ["useState", "state", "setState"],
            "regex_patterns": [
                r"const\s+\[\w+,\s*\w+\]\s*=\s*useState",
                r"useState<.*?>\(",
                r"this\.setState\(",
            ],
            "target_file_types": ["tsx", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "Props Interface",
        "scenarios": ["add props", "update props", "change interface"],
        "examples": [{
            "pattern": "UPDATE_PROPS",
            "edit_type": "UPDATE",
            "description": "Update component props interface",
            "search_terms": ["Props", "interface", "type"],
            "regex_patterns": [
                r"interface\s+\w+Props\s*\{",
                r"type\s+\w+Props\s*=",
                r"\w+:\s*React\.FC<\w+Props>",
            ],
            "target_file_types": ["tsx", "ts"],
            "confidence": "high",
        }],
    },
    {
        "name": "Import Statements",
        "scenarios": ["add import", "update import", "fix imports"],
        "examples": [{
            "pattern": "UPDATE_IMPORTS",
            "edit_type": "FIX",
            "description": "Add or update import statements",
            "search_terms": ["import", "from", "require"],
            "regex_patterns": [
                r"""import\s+.*?\s+from\s+['"].*?['"]""",
                r"import\s*\{.*?\}\s*from",
                r"const\s+.*?\s*=\s*require\(",
            ],
            "target_file_types": ["ts", "tsx", "js", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "CSS Styling",
        "scenarios": ["add styles", "update css", "modify styling"],
        "examples": [{
            "pattern": "UPDATE_STYLES",
            "edit_type": "ENHANCE",
            "description": "Add or update CSS styling",
            "search_terms": ["className", "style", "css"],
            "regex_patterns": [
                r"""className\s*=\s*['"].*?['"]""",
                r"style\s*=\s*\{.*?\}",
                r"\.\w+\s*\{[\s\S]*?\}",
            ],
            "target_file_types": ["tsx", "jsx", "css", "scss"],
            "confidence": "medium",
        }],
    },
    {
        "name": "Event Handlers",
        "scenarios": ["add handler", "update handler", "event handling"],
        "examples": [{
            "pattern": "ADD_HANDLER",
            "edit_type": "ENHANCE",
            "description": "Add or update event handlers",
            "search_terms": ["onClick", "onChange", "onSubmit", "handler"],
            "regex_patterns": [
                r"on\w+\s*=\s*\{.*?\}",
                r"const\s+handle\w+\s*=",
                r"function\s+handle\w+\(",
            ],
            "target_file_types": ["tsx", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "API Integration",
        "scenarios": ["api call", "fetch data", "http request"],
        "examples": [{
            "pattern": "ADD_API_CALL",
            "edit_type": "ENHANCE",
            "description": "Add API calls and data fetching",
            "search_terms": ["fetch", "axios", "api", "useEffect"],
            "regex_patterns": [
                r"""fetch\s*\(\s*['"].*?['"]""",
                r"axios\.(get|post|put|delete)",
                r"useEffect\(\(\)\s*=>\s*\{[\s\S]*?\}\s*,\s*\[\]\)",
            ],
            "target_file_types": ["ts", "tsx", "js", "jsx"],
            "confidence": "medium",
        }],
    },
    {
        "name": "Form Handling",
        "scenarios": ["form validation", "form submit", "input handling"],
        "examples": [{
            "pattern": "FORM_HANDLING",
            "edit_type": "ENHANCE",
            "description": "Add form handling and validation",
            "search_terms": ["form", "input", "validation", "submit"],
            "regex_patterns": [
                r"<form[^>]*onSubmit\s*=",
                r"<input[^>]*onChange\s*=",
                r"const\s+\w+Schema\s*=\s*\w+\.object",
            ],
            "target_file_types": ["tsx", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "Conditional Rendering",
        "scenarios": ["conditional display", "show hide", "render condition"],
        "examples": [{
            "pattern": "CONDITIONAL_RENDER",
            "edit_type": "UPDATE",
            "description": "Add conditional rendering logic",
            "search_terms": ["condition", "render", "if", "&&", "?"],
            "regex_patterns": [
                r"\{\w+\s*&&\s*<",
                r"\{\w+\s*\?\s*<.*?>\s*:\s*<.*?>",
                r"if\s*\(.*?\)\s*\{[\s\S]*?return",
            ],
            "target_file_types": ["tsx", "jsx"],
            "confidence": "high",
        }],
    },
    {
        "name": "Hook Usage",
        "scenarios": ["use hook", "custom hook", "react hooks"],
        "examples": [{
            "pattern": "ADD_HOOKS",
            "edit_type": "ENHANCE",
            "description": "Add React hooks or custom hooks",
            "search_terms": ["use", "hook", "useState", "useEffect", "useMemo"],
            "regex_patterns": [
                r"const\s+.*?\s*=\s*use\w+\(",
                r"use\w+\<.*?\>\(",
                r"function\s+use\w+\(",
            ],
            "target_file_types": ["tsx", "jsx", "ts", "js"],
            "confidence": "high",
        }],
    },
]
