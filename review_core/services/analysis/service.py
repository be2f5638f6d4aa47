"""Главный сервис анализа кода рабочей копии (фасад)."""

import os
import logging

from review_core.services.chunking.models import FileChange
from .models import ImpactResult, SourceModel
from .config import AnalysisConfig
from .file_scanner import FileScanner
from .ast_parser import SourceModelExtractor
from .call_graph import CallGraph, CallGraphBuilder
from .impact_analyzer import ImpactAnalyzer

logger = logging.getLogger(__name__)


class AnalysisService:
    """Сервис для разбора файлов, построения графа и анализа импакта.

    Граф строится один раз на экземпляр сервиса, то есть на один запрос.
    """

    def __init__(self, repo_path: str, config: AnalysisConfig | None = None):
        self.repo_path = repo_path
        self.config = config if config is not None else AnalysisConfig()

        self.scanner = FileScanner(repo_path, self.config)
        self.extractor = SourceModelExtractor()
        self.builder = CallGraphBuilder(self.config)

        self._file_analysis: dict[str, SourceModel] = {}
        self._graph: CallGraph | None = None
        self._analyzer: ImpactAnalyzer | None = None

    @property
    def file_analysis(self) -> dict[str, SourceModel]:
        return self._file_analysis

    @property
    def graph(self) -> CallGraph:
        if self._graph is None:
            self._scan_and_parse()
            self._graph = self.builder.build(self._file_analysis)
        return self._graph

    @property
    def analyzer(self) -> ImpactAnalyzer:
        if self._analyzer is None:
            self._analyzer = ImpactAnalyzer(self.graph, self.config)
        return self._analyzer

    def analyze_file(self, file_path: str) -> SourceModel:
        """
        Разобрать один файл рабочей копии.

        Raises:
            OSError: если файл нельзя прочитать
            ValueError: если путь выходит за пределы репозитория
        """
        if file_path in self._file_analysis:
            return self._file_analysis[file_path]
        return self.extractor.extract(self._read(file_path), file_path)

    def analyze_changes(self, changes: list[FileChange]) -> dict[str, list[ImpactResult]]:
        """
        Анализировать импакт для всех функций изменённых файлов.

        Returns:
            словарь где ключ - путь к файлу, значение - список ImpactResult
        """
        logger.info("[Impact] Starting impact analysis...")
        result = {}

        for change in changes:
            if change.status == "removed":
                continue

            nodes = self.graph.nodes_in_file(change.filename)
            if not nodes:
                continue

            impacts = [
                self.analyzer.impact(node.file, node.name, self.config.max_depth)
                for node in nodes
            ]
            result[change.filename] = impacts
            self._log_impacts(impacts, change.filename)

        logger.info(f"[Impact] Complete. Analyzed {len(result)} files")
        return result

    def _scan_and_parse(self) -> None:
        """Сканировать и парсить все файлы проекта."""
        for file_path in self.scanner.scan():
            try:
                content = self._read(file_path)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.debug(f"Failed to read {file_path}: {e}")
                continue

            self._file_analysis[file_path] = self.extractor.extract(content, file_path)

        logger.info(f"[Impact] Parsed {len(self._file_analysis)} files")

    def _read(self, file_path: str) -> str:
        root = os.path.realpath(self.repo_path)
        full_path = os.path.realpath(os.path.join(root, file_path))
        if os.path.commonpath([root, full_path]) != root:
            raise ValueError(f"Path outside repository: {file_path}")

        with open(full_path, encoding="utf-8") as f:
            return f.read()

    def _log_impacts(self, impacts: list[ImpactResult], file_path: str) -> None:
        for impact in impacts:
            if not impact.all_callers:
                continue
            logger.info(
                f"[Impact] {impact.target.name} in {file_path}: "
                f"Direct: {len(impact.direct_callers)}, Total: {len(impact.all_callers)}"
            )
