from pathlib import PurePosixPath

CODE_EXTENSIONS = {
    # JavaScript / TypeScript
    ".js": "JavaScript",
    ".jsx": "JavaScript (React)",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript (React)",
    # Web
    ".html": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "Sass",
    ".less": "Less",
    # C-family
    ".c": "C",
    ".cpp": "C++",
    ".h": "C/C++ Header",
    ".hpp": "C++ Header",
    ".cs": "C#",
    # JVM
    ".java": "Java",
    ".kt": "Kotlin",
    ".groovy": "Groovy",
    ".scala": "Scala",
    ".clj": "Clojure",
    # Python
    ".py": "Python",
    ".ipynb": "Jupyter Notebook",
    # Ruby / PHP
    ".rb": "Ruby",
    ".erb": "Ruby (ERB)",
    ".php": "PHP",
    # Системные
    ".go": "Go",
    ".rs": "Rust",
    ".swift": "Swift",
    ".dart": "Dart",
    # Скрипты
    ".sh": "Shell",
    ".bash": "Bash",
    ".zsh": "Zsh",
    ".ps1": "PowerShell",
    ".bat": "Batch",
    ".cmd": "Batch",
    # Прочее
    ".sql": "SQL",
    ".r": "R",
    ".fs": "F#",
    ".elm": "Elm",
    ".ex": "Elixir",
    ".exs": "Elixir",
    ".erl": "Erlang",
    ".hs": "Haskell",
    ".lua": "Lua",
    ".pl": "Perl",
    ".pm": "Perl",
    ".vb": "Visual Basic",
}

# Узнаём язык, но в ревью кода не включаем
NON_CODE_EXTENSIONS = {
    ".md": "Markdown",
    ".markdown": "Markdown",
    ".rst": "reStructuredText",
    ".txt": "Text",
    ".json": "JSON",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".ini": "INI",
    ".conf": "Configuration",
}

CODE_FILENAMES = {
    "dockerfile": "Dockerfile",
    "makefile": "Makefile",
}


def identify_language(path: str) -> tuple[str | None, bool]:
    """Вернуть (язык, является ли файл кодом) по имени файла."""
    if not path:
        return None, False

    name = PurePosixPath(path).name.lower()
    if name in CODE_FILENAMES:
        return CODE_FILENAMES[name], True

    extension = PurePosixPath(name).suffix
    if extension in CODE_EXTENSIONS:
        return CODE_EXTENSIONS[extension], True
    if extension in NON_CODE_EXTENSIONS:
        return NON_CODE_EXTENSIONS[extension], False

    return None, False
