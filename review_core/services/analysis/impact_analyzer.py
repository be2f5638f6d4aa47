"""Анализ импакта и зависимостей через граф вызовов."""

import logging
from collections import deque

from .models import CallEdge, ImpactResult, NodeKey
from .call_graph import CallGraph
from .config import AnalysisConfig

logger = logging.getLogger(__name__)


class ImpactAnalyzer:
    """Запросы с ограниченной глубиной к графу вызовов."""

    def __init__(self, call_graph: CallGraph, config: AnalysisConfig | None = None):
        self.call_graph = call_graph
        self.config = config if config is not None else AnalysisConfig()

    def callers(self, file_path: str, name: str) -> list[CallEdge]:
        """Прямые вызывающие функции."""
        node = self.call_graph.get_node(NodeKey(file_path, name))
        return list(node.callers) if node else []

    def callees(self, file_path: str, name: str) -> list[CallEdge]:
        """Прямые вызываемые функции."""
        node = self.call_graph.get_node(NodeKey(file_path, name))
        return list(node.callees) if node else []

    def transitive_dependencies(
        self, file_path: str, name: str, max_depth: int | None = None
    ) -> set[NodeKey]:
        """
        Все функции, которые вызывает данная (транзитивно, BFS).

        Узлы на глубине max_depth попадают в результат, но не раскрываются.
        Сама функция в результат не входит.
        """
        if max_depth is None:
            max_depth = self.config.dependency_depth

        start = NodeKey(file_path, name)
        visited = {start}
        queue = deque([(start, 0)])

        while queue:
            key, depth = queue.popleft()
            if depth >= max_depth:
                continue

            node = self.call_graph.get_node(key)
            if not node:
                continue

            for edge in node.callees:
                if edge.callee not in visited:
                    visited.add(edge.callee)
                    queue.append((edge.callee, depth + 1))

        visited.discard(start)
        return visited

    def impact(
        self, file_path: str, name: str, max_depth: int | None = None
    ) -> ImpactResult:
        """
        Анализ импакта: какие функции затронет изменение данной.

        Returns:
            ImpactResult с прямыми и транзитивными вызывающими
        """
        if max_depth is None:
            max_depth = self.config.max_depth

        start = NodeKey(file_path, name)
        visited = {start}
        queue = deque([(start, 0)])

        direct: list[NodeKey] = []
        all_callers: list[NodeKey] = []
        files: dict[str, None] = {}
        depth_reached = 0

        while queue:
            key, depth = queue.popleft()
            if depth >= max_depth:
                continue

            node = self.call_graph.get_node(key)
            if not node:
                continue

            for edge in node.callers:
                if depth == 0 and edge.caller not in direct:
                    direct.append(edge.caller)

                if edge.caller in visited:
                    continue

                visited.add(edge.caller)
                all_callers.append(edge.caller)
                files[edge.file] = None
                depth_reached = max(depth_reached, depth + 1)
                queue.append((edge.caller, depth + 1))

        logger.debug(
            f"[Impact] {start}: direct {len(direct)}, total {len(all_callers)}"
        )

        return ImpactResult(
            target=start,
            direct_callers=direct,
            all_callers=all_callers,
            impacted_files=list(files),
            depth_reached=depth_reached,
        )

    def describe(self, file_path: str, name: str, max_depth: int = 2) -> str:
        """Текстовое представление графа вызовов вокруг функции."""
        lines = [f"Call Graph for {name} ({file_path})", "═" * 60]

        lines.append("\nCalls:")
        callees = self.callees(file_path, name)
        if not callees:
            lines.append("  (no calls)")
        for edge in callees:
            lines.append(f"  → {edge.callee.name} ({edge.callee.file}:{edge.line})")

        lines.append("\nCalled by:")
        callers = self.callers(file_path, name)
        if not callers:
            lines.append("  (not called)")
        for edge in callers:
            lines.append(f"  ← {edge.caller.name} ({edge.caller.file}:{edge.line})")

        impact = self.impact(file_path, name, max_depth)
        lines.append("\nImpact Analysis:")
        lines.append(f"  Direct callers: {len(impact.direct_callers)}")
        lines.append(f"  Total affected: {len(impact.all_callers)}")
        lines.append(f"  Impacted files: {len(impact.impacted_files)}")
        lines.append(f"  Call depth: {impact.depth_reached}")

        return "\n".join(lines)
