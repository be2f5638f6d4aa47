"""Нарезка изменённых файлов на чанки по бюджету токенов."""

import logging
import posixpath
import re

from .models import Chunk, ChunkingStats, ChunkStrategy, FileChange
from .tokens import TokenEstimator

logger = logging.getLogger(__name__)

# Имя файла + метаданные
FILE_OVERHEAD_TOKENS = 20
# Токенов на изменённую строку, если патча нет
TOKENS_PER_CHANGED_LINE = 3

ROOT_MODULE = "root"
SIZE_REASON = "size-based grouping"


class ChunkPartitioner:
    """Группировка файлов в чанки, каждый помещается в окно контекста."""

    def __init__(
        self,
        strategy: ChunkStrategy | None = None,
        estimator: TokenEstimator | None = None,
    ):
        self.strategy = strategy if strategy is not None else ChunkStrategy()
        self.estimator = estimator if estimator is not None else TokenEstimator()

    def partition(
        self,
        files: list[FileChange],
        budget_tokens: int | None = None,
        group_by_module: bool | None = None,
    ) -> list[Chunk]:
        """
        Нарезать файлы на чанки.

        1. Сортировка по (директория, расширение, имя)
        2. Группировка по модулям (если включена)
        3. Модуль, не влезающий в бюджет, режется жадно по размеру

        Каждый файл попадает ровно в один чанк, файлы не режутся.

        Returns:
            Список чанков в детерминированном порядке
        """
        if budget_tokens is None:
            budget_tokens = self.strategy.max_tokens_per_chunk
        if group_by_module is None:
            group_by_module = self.strategy.group_by_module

        sorted_files = sorted(files, key=self._sort_key)
        chunks: list[Chunk] = []

        if group_by_module:
            self._chunk_by_module(sorted_files, budget_tokens, chunks)
        else:
            self._chunk_by_size(sorted_files, budget_tokens, chunks)

        logger.info(
            f"[Chunks] {len(files)} files -> {len(chunks)} chunks (budget {budget_tokens})"
        )
        return chunks

    def file_tokens(self, file: FileChange) -> int:
        """Оценка токенов для одного файла."""
        tokens = self.estimator.estimate(file.filename) + FILE_OVERHEAD_TOKENS

        if file.patch:
            tokens += self.estimator.estimate_diff(file.patch)
        else:
            tokens += file.changes * TOKENS_PER_CHANGED_LINE

        return tokens

    def module_name(self, filename: str) -> str:
        """Модуль файла: src/<module>, первый сегмент пути или root."""
        parts = filename.split("/")

        if parts[0] in self.strategy.source_roots and len(parts) > 2:
            return f"{parts[0]}/{parts[1]}"

        if len(parts) > 1:
            return parts[0]

        return ROOT_MODULE

    def _sort_key(self, file: FileChange) -> tuple[str, str, str]:
        dirname, basename = posixpath.split(file.filename)
        return dirname, posixpath.splitext(basename)[1], file.filename

    def _chunk_by_module(
        self, files: list[FileChange], budget: int, chunks: list[Chunk]
    ) -> None:
        modules: dict[str, list[FileChange]] = {}
        for file in files:
            modules.setdefault(self.module_name(file.filename), []).append(file)

        for module, module_files in modules.items():
            costs = [self.file_tokens(f) for f in module_files]
            total = sum(costs)

            if total <= budget:
                self._close_chunk(
                    chunks, module_files, total, f"module: {module}", module
                )
            else:
                logger.debug(
                    f"[Chunks] Module {module} needs {total} tokens, splitting by size"
                )
                self._chunk_by_size(module_files, budget, chunks, module)

    def _chunk_by_size(
        self,
        files: list[FileChange],
        budget: int,
        chunks: list[Chunk],
        module: str = "",
    ) -> None:
        reason = f"part of {module}" if module else SIZE_REASON
        current: list[FileChange] = []
        current_tokens = 0

        for file in files:
            tokens = self.file_tokens(file)

            if current_tokens + tokens > budget and current:
                self._close_chunk(chunks, current, current_tokens, reason, module)
                current = []
                current_tokens = 0

            if tokens > budget:
                logger.debug(
                    f"[Chunks] {file.filename} alone exceeds budget ({tokens} tokens)"
                )

            current.append(file)
            current_tokens += tokens

        if current:
            self._close_chunk(chunks, current, current_tokens, reason, module)

    def _close_chunk(
        self,
        chunks: list[Chunk],
        files: list[FileChange],
        tokens: int,
        reason: str,
        module: str,
    ) -> None:
        chunk_id = f"chunk-{len(chunks) + 1}"
        if module:
            chunk_id += f"-{sanitize_module_name(module)}"

        chunks.append(
            Chunk(
                id=chunk_id,
                files=list(files),
                total_changes=sum(f.changes for f in files),
                estimated_tokens=tokens,
                reason=reason,
            )
        )


def sanitize_module_name(name: str) -> str:
    """Имя модуля для id чанка."""
    return re.sub(r"[^a-zA-Z0-9-]", "-", name).lower()


def chunking_stats(chunks: list[Chunk]) -> ChunkingStats:
    """Статистика по чанкам."""
    if not chunks:
        return ChunkingStats()

    token_counts = [c.estimated_tokens for c in chunks]
    file_count = sum(len(c.files) for c in chunks)

    return ChunkingStats(
        total_chunks=len(chunks),
        avg_files_per_chunk=round(file_count / len(chunks)),
        avg_tokens_per_chunk=round(sum(token_counts) / len(chunks)),
        largest_chunk=max(token_counts),
        smallest_chunk=min(token_counts),
    )
