"""Конфигурация для анализа кода и графа вызовов."""

from dataclasses import dataclass, field

from review_core.constants import LANGUAGE_MAP


@dataclass
class AnalysisConfig:
    """Конфигурация анализа кода."""

    # Расширения файлов для анализа
    file_extensions: tuple[str, ...] = tuple(f".{ext}" for ext in LANGUAGE_MAP.keys())

    # Максимальная глубина поиска вызывающих
    max_depth: int = 5

    # Максимальная глубина поиска зависимостей
    dependency_depth: int = 3

    # Алиасы путей (префикс импорта -> директория), по умолчанию выключены
    path_aliases: dict[str, str] = field(default_factory=dict)

    # Суффиксы, которые пробуем к пути импорта (".ts", "/index.ts", ...).
    # Проверяются только по уже известным файлам, не по диску.
    import_resolution_suffixes: tuple[str, ...] = ()
