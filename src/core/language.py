"""Map file paths to programming-language labels."""

from pathlib import PurePosixPath

UNKNOWN_LANGUAGE = "Unknown"

LANGUAGES_BY_FILENAME = {
    "dockerfile": "Dockerfile",
    "containerfile": "Dockerfile",
    "makefile": "Makefile",
    "gnumakefile": "Makefile",
    "cmakelists.txt": "CMake",
    "jenkinsfile": "Groovy",
    "gemfile": "Ruby",
    "rakefile": "Ruby",
    "podfile": "Ruby",
    "vagrantfile": "Ruby",
    "build": "Starlark",
    "workspace": "Starlark",
    "go.mod": "Go Module",
    "package.json": "JSON",
    "tsconfig.json": "JSON",
}

LANGUAGES_BY_EXTENSION = {
    ".py": "Python",
    ".pyi": "Python",
    ".ipynb": "Jupyter Notebook",
    ".js": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".jsx": "JavaScript (JSX)",
    ".ts": "TypeScript",
    ".mts": "TypeScript",
    ".cts": "TypeScript",
    ".tsx": "TypeScript (TSX)",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".scala": "Scala",
    ".groovy": "Groovy",
    ".gradle": "Groovy",
    ".c": "C",
    ".h": "C",
    ".cc": "C++",
    ".cpp": "C++",
    ".cxx": "C++",
    ".hpp": "C++",
    ".hh": "C++",
    ".cs": "C#",
    ".fs": "F#",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".swift": "Swift",
    ".m": "Objective-C",
    ".mm": "Objective-C++",
    ".dart": "Dart",
    ".lua": "Lua",
    ".pl": "Perl",
    ".r": "R",
    ".jl": "Julia",
    ".ex": "Elixir",
    ".exs": "Elixir",
    ".erl": "Erlang",
    ".hs": "Haskell",
    ".clj": "Clojure",
    ".sh": "Shell",
    ".bash": "Shell",
    ".zsh": "Shell",
    ".ps1": "PowerShell",
    ".sql": "SQL",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "Sass",
    ".less": "Less",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".json": "JSON",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".xml": "XML",
    ".md": "Markdown",
    ".rst": "reStructuredText",
    ".tf": "Terraform",
    ".proto": "Protocol Buffers",
    ".graphql": "GraphQL",
    ".gql": "GraphQL",
}


class LanguageDetector:
    """Pure lookup from a file path to a human-readable language name."""

    def __init__(
        self,
        by_extension: dict[str, str] | None = None,
        by_filename: dict[str, str] | None = None,
    ):
        self.by_extension = by_extension if by_extension is not None else LANGUAGES_BY_EXTENSION
        self.by_filename = by_filename if by_filename is not None else LANGUAGES_BY_FILENAME

    def detect(self, filename: str) -> str:
        path = PurePosixPath(filename)
        name = path.name.lower()
        if name in self.by_filename:
            return self.by_filename[name]
        # "foo.d.ts" resolves through its last suffix
        return self.by_extension.get(path.suffix.lower(), UNKNOWN_LANGUAGE)


_default_detector = LanguageDetector()


def detect_language(filename: str) -> str:
    """Detect the language of a file using the default tables."""
    return _default_detector.detect(filename)
