"""Модели данных для анализа кода."""

from dataclasses import dataclass, field
from typing import NamedTuple


@dataclass
class FunctionFact:
    """Информация о функции."""

    name: str
    file: str
    line: int
    column: int
    end_line: int
    params: list[str] = field(default_factory=list)
    is_async: bool = False
    is_exported: bool = False
    complexity: int = 1
    calls: list[str] = field(default_factory=list)  # уникальные, в порядке появления


@dataclass
class DependencyFact:
    """Информация о зависимости."""

    kind: str  # import, require, dynamic
    source: str
    specifiers: list[str]
    line: int
    is_external: bool


@dataclass
class AggregateMetrics:
    """Метрики файла."""

    lines_of_code: int
    complexity: float
    maintainability_index: int
    comment_ratio: float
    function_count: int
    class_count: int


@dataclass
class SourceModel:
    """Результат разбора файла."""

    language: str
    parsed: bool
    functions: list[FunctionFact]
    dependencies: list[DependencyFact]
    metrics: AggregateMetrics

    def find_function(self, name: str) -> FunctionFact | None:
        """Найти функцию по имени (последняя с таким именем)."""
        found = None
        for func in self.functions:
            if func.name == name:
                found = func
        return found


class NodeKey(NamedTuple):
    """Ключ узла графа: (файл, имя функции)."""

    file: str
    name: str

    def __str__(self) -> str:
        return f"{self.file}:{self.name}"


@dataclass(frozen=True)
class CallEdge:
    """Ребро графа вызовов."""

    caller: NodeKey
    callee: NodeKey
    file: str
    line: int


@dataclass
class CallGraphNode:
    """Узел графа вызовов."""

    key: NodeKey
    line: int
    end_line: int
    callers: list[CallEdge] = field(default_factory=list)
    callees: list[CallEdge] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def file(self) -> str:
        return self.key.file


@dataclass
class ImpactResult:
    """Результат анализа импакта для одной функции."""

    target: NodeKey
    direct_callers: list[NodeKey]
    all_callers: list[NodeKey]
    impacted_files: list[str]
    depth_reached: int
