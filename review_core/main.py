"""Подготовка контекста для ревью ветки: чанки, метрики, импакт."""

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from datetime import datetime

from review_core.config import Config
from review_core.services.git_service import GitService, BranchDiffResult
from review_core.services.analysis.config import AnalysisConfig
from review_core.services.analysis.models import ImpactResult, SourceModel
from review_core.services.analysis.service import AnalysisService
from review_core.services.analysis.ast_parser import SourceModelExtractor
from review_core.services.chunking.models import Chunk, ChunkStrategy, FileChange
from review_core.services.chunking.partitioner import ChunkPartitioner, chunking_stats

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


class Pipeline:
    """Пайплайн подготовки контекста для ревью ветки."""

    def __init__(self, config: Config):
        self.config = config
        self.git_service = GitService(repo_path=config.repo_path)
        self.extractor = SourceModelExtractor()
        self.analysis_service = AnalysisService(
            repo_path=config.repo_path,
            config=AnalysisConfig(
                max_depth=config.impact_max_depth,
                dependency_depth=config.dependency_max_depth,
            ),
        )
        self.partitioner = ChunkPartitioner(
            ChunkStrategy(
                max_tokens_per_chunk=config.max_tokens_per_chunk,
                group_by_module=config.group_by_module,
            )
        )

        # Папка для артефактов текущего запуска
        branch_name = config.target_branch.replace("/", "-")
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self.artifacts_dir = Path(config.artifacts_dir) / f"{timestamp}.{branch_name}"
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)

    async def run(self) -> None:
        """Запустить пайплайн."""
        logger.info("╔═══════════════════════════════════════════════════════════╗")
        logger.info("║          REVIEW CONTEXT PIPELINE                          ║")
        logger.info("╚═══════════════════════════════════════════════════════════╝")

        # Шаг 1: diff ветки относительно базовой
        diff_result = await self.get_branch_diff()
        logger.info(
            f"Branch: {diff_result.branch_name} (from merge-base with {self.config.base_branch})"
        )
        logger.info(
            f"Commits: {diff_result.base_commit[:8]}..{diff_result.head_commit[:8]}\n"
        )
        logger.info(f"[1/4] Branch diff: {len(diff_result.files)} files changed")

        # Шаг 2: нарезка на чанки
        chunks = self.partitioner.partition(diff_result.files)
        self._log_chunks(chunks)
        self._save_file(
            "chunks.json",
            json.dumps([c.to_dict() for c in chunks], ensure_ascii=False, indent=2),
        )

        # Шаг 3: метрики изменённых файлов
        models = await self.extract_changed_files(diff_result.files)
        self._log_models(models)
        self._save_file(
            "metrics.json",
            json.dumps(
                {path: asdict(m.metrics) for path, m in models.items()},
                ensure_ascii=False,
                indent=2,
            ),
        )

        # Шаг 4: граф вызовов и импакт
        impact_result = await self.analyze_impact(diff_result.files)
        self._log_impact_result(impact_result)
        self._save_file("impact.md", self._format_impact(impact_result))

        logger.info("\n✓ Pipeline completed")

    async def get_branch_diff(self) -> BranchDiffResult:
        return self.git_service.get_branch_diff(
            branch=self.config.target_branch, base_branch=self.config.base_branch
        )

    async def extract_changed_files(
        self, files: list[FileChange]
    ) -> dict[str, SourceModel]:
        """
        Разобрать изменённые файлы параллельно.

        Returns:
            словарь {file_path: SourceModel} для прочитанных файлов
        """

        async def process_file(file: FileChange) -> tuple[str, SourceModel | None]:
            path = Path(self.config.repo_path) / file.filename
            try:
                content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Failed to read {file.filename}: {e}")
                return file.filename, None

            model = await asyncio.to_thread(
                self.extractor.extract, content, file.filename
            )
            return file.filename, model

        tasks = [process_file(f) for f in files if f.status != "removed"]
        results = await asyncio.gather(*tasks)

        return {path: model for path, model in results if model is not None}

    async def analyze_impact(
        self, files: list[FileChange]
    ) -> dict[str, list[ImpactResult]]:
        """Построить граф по рабочей копии и посчитать импакт изменённых функций."""
        return await asyncio.to_thread(self.analysis_service.analyze_changes, files)

    def _log_chunks(self, chunks: list[Chunk]) -> None:
        stats = chunking_stats(chunks)
        logger.info(
            f"[2/4] Chunks: {stats.total_chunks} "
            f"(avg {stats.avg_files_per_chunk} files, {stats.avg_tokens_per_chunk:,} tokens; "
            f"largest {stats.largest_chunk:,}, smallest {stats.smallest_chunk:,})"
        )
        for chunk in chunks:
            logger.info(
                f"  ↳ {chunk.id}: {len(chunk.files)} files, "
                f"~{chunk.estimated_tokens:,} tokens ({chunk.reason})"
            )

    def _log_models(self, models: dict[str, SourceModel]) -> None:
        parsed = [m for m in models.values() if m.parsed]
        total_functions = sum(len(m.functions) for m in parsed)
        logger.info(
            f"[3/4] Files analyzed: {len(models)} ({len(parsed)} parsed), "
            f"{total_functions} functions"
        )

    def _log_impact_result(self, impact_result: dict[str, list[ImpactResult]]) -> None:
        total_functions = sum(len(impacts) for impacts in impact_result.values())
        total_callers = sum(
            len(impact.all_callers)
            for impacts in impact_result.values()
            for impact in impacts
        )
        affected_files = set()
        for impacts in impact_result.values():
            for impact in impacts:
                affected_files.update(impact.impacted_files)

        logger.info(
            f"[4/4] Impact analyzed: {total_functions} functions, {total_callers} callers, "
            f"{len(affected_files)} affected files"
        )

    def _format_impact(self, impact_result: dict[str, list[ImpactResult]]) -> str:
        lines = ["# Impact of changed functions", ""]

        for file_path, impacts in impact_result.items():
            lines.append(f"## {file_path}")
            for impact in impacts:
                lines.append(
                    f"- **{impact.target.name}**: {len(impact.direct_callers)} direct, "
                    f"{len(impact.all_callers)} total, "
                    f"{len(impact.impacted_files)} files (depth {impact.depth_reached})"
                )
                for caller in impact.direct_callers:
                    lines.append(f"  - ← `{caller}`")
            lines.append("")

        return "\n".join(lines)

    def _save_file(self, filename: str, content: str) -> None:
        """Сохранить содержимое в файл в папке текущего запуска."""
        file_path = self.artifacts_dir / filename
        file_path.write_text(content, encoding="utf-8")


if __name__ == "__main__":
    config = Config.model_validate(
        {}
    )  # https://github.com/pydantic/pydantic/issues/3753
    pipeline = Pipeline(config)
    asyncio.run(pipeline.run())
