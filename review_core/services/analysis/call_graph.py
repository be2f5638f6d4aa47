"""Построение графа вызовов."""

import logging
import posixpath
from collections.abc import Mapping

from .models import CallEdge, CallGraphNode, DependencyFact, NodeKey, SourceModel
from .config import AnalysisConfig

logger = logging.getLogger(__name__)


class CallGraph:
    """Граф вызовов функций (только для чтения после построения)."""

    def __init__(
        self,
        nodes: dict[NodeKey, CallGraphNode],
        by_file: dict[str, dict[str, NodeKey]],
    ):
        self._nodes = nodes
        self._by_file = by_file

    def get_node(self, key: NodeKey) -> CallGraphNode | None:
        """Получить узел графа по ключу."""
        return self._nodes.get(key)

    def has_node(self, key: NodeKey) -> bool:
        """Проверить наличие узла в графе."""
        return key in self._nodes

    def nodes_in_file(self, file_path: str) -> list[CallGraphNode]:
        """Все узлы одного файла."""
        keys = self._by_file.get(file_path, {})
        return [self._nodes[key] for key in keys.values()]

    @property
    def edge_count(self) -> int:
        return sum(len(node.callees) for node in self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)


class CallGraphBuilder:
    """Связывание фактов по файлам в граф вызовов."""

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config if config is not None else AnalysisConfig()

    def build(self, file_analysis: Mapping[str, SourceModel]) -> CallGraph:
        """
        Построить граф вызовов из распарсенных файлов.

        Args:
            file_analysis: словарь {file_path: SourceModel}
        """
        logger.info("[Graph] Building call graph...")

        nodes: dict[NodeKey, CallGraphNode] = {}
        by_file: dict[str, dict[str, NodeKey]] = {}

        self._create_nodes(file_analysis, nodes, by_file)
        edges = self._create_edges(file_analysis, nodes, by_file)

        logger.info(f"[Graph] Built with {len(nodes)} nodes, {edges} edges")
        return CallGraph(nodes, by_file)

    def _create_nodes(
        self,
        file_analysis: Mapping[str, SourceModel],
        nodes: dict[NodeKey, CallGraphNode],
        by_file: dict[str, dict[str, NodeKey]],
    ) -> None:
        """Создать узлы графа из функций."""
        for file_path, parsed in file_analysis.items():
            index = by_file.setdefault(file_path, {})

            for func in parsed.functions:
                key = NodeKey(file_path, func.name)
                # Одноимённые функции в файле: побеждает последняя
                nodes[key] = CallGraphNode(
                    key=key, line=func.line, end_line=func.end_line
                )
                index[func.name] = key

    def _create_edges(
        self,
        file_analysis: Mapping[str, SourceModel],
        nodes: dict[NodeKey, CallGraphNode],
        by_file: dict[str, dict[str, NodeKey]],
    ) -> int:
        """Создать рёбра графа из вызовов функций."""
        count = 0

        for file_path, parsed in file_analysis.items():
            for func in parsed.functions:
                caller = nodes[NodeKey(file_path, func.name)]

                for call_name in func.calls:
                    callee_key = self._resolve_callee(
                        call_name, file_path, parsed.dependencies, by_file
                    )
                    if callee_key is None:
                        continue

                    edge = CallEdge(
                        caller=caller.key,
                        callee=callee_key,
                        file=file_path,
                        line=func.line,
                    )
                    caller.callees.append(edge)
                    nodes[callee_key].callers.append(edge)
                    count += 1

        return count

    def _resolve_callee(
        self,
        call_name: str,
        current_file: str,
        dependencies: list[DependencyFact],
        by_file: dict[str, dict[str, NodeKey]],
    ) -> NodeKey | None:
        """
        Резолвить вызов в ключ графа.

        Сначала ищем в том же файле, потом в импортах по порядку объявления.
        """
        local = by_file.get(current_file, {})
        if call_name in local:
            return local[call_name]

        for dep in dependencies:
            dep_file = self._resolve_import_path(dep, current_file, by_file)
            if dep_file is None:
                continue

            functions = by_file.get(dep_file, {})
            if call_name in functions:
                return functions[call_name]

        logger.debug(f"[Graph] Unresolved call {call_name} in {current_file}")
        return None

    def _resolve_import_path(
        self,
        dep: DependencyFact,
        current_file: str,
        by_file: dict[str, dict[str, NodeKey]],
    ) -> str | None:
        """Резолвить путь импорта в ключ файла."""
        # Обработка алиасов
        for alias, real_path in self.config.path_aliases.items():
            if dep.source.startswith(alias):
                resolved = posixpath.normpath(dep.source.replace(alias, real_path, 1))
                return self._try_suffixes(resolved, by_file)

        if dep.is_external:
            return None

        # Обработка относительных путей
        current_dir = posixpath.dirname(current_file)
        resolved = posixpath.normpath(posixpath.join(current_dir, dep.source))
        return self._try_suffixes(resolved, by_file)

    def _try_suffixes(
        self, base_path: str, by_file: dict[str, dict[str, NodeKey]]
    ) -> str:
        """Попробовать суффиксы из конфига среди известных файлов."""
        if base_path in by_file:
            return base_path
        for suffix in self.config.import_resolution_suffixes:
            if base_path + suffix in by_file:
                return base_path + suffix
        return base_path
