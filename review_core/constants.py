"""Общие константы: расширения файлов и языки."""

# Расширения, которые парсятся через tree-sitter (расширение -> грамматика)
LANGUAGE_MAP = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
}

# Языки, для которых считаются только базовые метрики
LANGUAGE_TAGS = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "jsx",
    "mjs": "javascript",
    "cjs": "javascript",
    "py": "python",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "cs": "csharp",
    "php": "php",
}

UNKNOWN_LANGUAGE = "unknown"


def detect_language(filename: str) -> str:
    """Определить тег языка по расширению файла."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return LANGUAGE_TAGS.get(ext, UNKNOWN_LANGUAGE)
