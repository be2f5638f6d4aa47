"""Модели для нарезки изменений на чанки."""

from dataclasses import dataclass, field, asdict


@dataclass
class FileChange:
    """Изменённый файл."""

    filename: str
    status: str  # added, modified, removed, renamed
    additions: int = 0
    deletions: int = 0
    patch: str | None = None
    previous_filename: str | None = None
    language: str | None = None

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


@dataclass
class ChunkStrategy:
    """Стратегия нарезки."""

    name: str = "balanced"
    max_tokens_per_chunk: int = 6000
    group_by_module: bool = True

    # Корни исходников: для src/<module>/... модуль = "src/<module>"
    source_roots: tuple[str, ...] = ("src",)


@dataclass
class Chunk:
    """Группа файлов, помещающаяся в одно окно контекста."""

    id: str
    files: list[FileChange]
    total_changes: int
    estimated_tokens: int
    reason: str

    def to_dict(self) -> dict:
        """Преобразовать в словарь для JSON сериализации (без патчей)."""
        data = asdict(self)
        data["files"] = [f.filename for f in self.files]
        return data


@dataclass
class ChunkingStats:
    """Сводка по чанкам."""

    total_chunks: int = 0
    avg_files_per_chunk: int = 0
    avg_tokens_per_chunk: int = 0
    largest_chunk: int = 0
    smallest_chunk: int = 0


@dataclass
class TokenSummary:
    """Сводка по токенам набора текстов."""

    total: int = 0
    average: int = 0
    max: int = 0
    min: int = 0
    counts: list[int] = field(default_factory=list)
