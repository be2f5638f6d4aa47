"""Сканирование исходников рабочей копии с учётом .gitignore."""

import os
import logging
from pathlib import Path

import pathspec

from .config import AnalysisConfig

logger = logging.getLogger(__name__)

ALWAYS_SKIPPED_DIRS = (".git", "node_modules")


class FileScanner:
    """Поиск файлов, которые можно разобрать парсером."""

    def __init__(self, repo_path: str, config: AnalysisConfig):
        self.repo_path = repo_path
        self.config = config
        self._gitignore_spec = self._load_gitignore()

    def _load_gitignore(self) -> pathspec.GitIgnoreSpec | None:
        gitignore_path = Path(self.repo_path) / ".gitignore"
        if not gitignore_path.exists():
            return None

        with open(gitignore_path, encoding="utf-8") as f:
            return pathspec.GitIgnoreSpec.from_lines(f)

    def scan(self) -> list[str]:
        """
        Сканировать проект.

        Returns:
            Отсортированный список путей относительно корня (через "/")
        """
        logger.info("[Scanner] Scanning files...")
        files = []

        for root, dirs, filenames in os.walk(self.repo_path):
            rel_root = Path(os.path.relpath(root, self.repo_path)).as_posix()
            if rel_root == ".":
                rel_root = ""

            dirs[:] = sorted(d for d in dirs if not self._is_ignored_dir(d, rel_root))

            for filename in filenames:
                rel_path = f"{rel_root}/{filename}" if rel_root else filename
                if self._should_include_file(rel_path):
                    files.append(rel_path)

        files.sort()
        logger.info(f"[Scanner] Found {len(files)} files")
        return files

    def _is_ignored_dir(self, dirname: str, rel_root: str) -> bool:
        if dirname in ALWAYS_SKIPPED_DIRS:
            return True
        if not self._gitignore_spec:
            return False
        rel_dir = f"{rel_root}/{dirname}/" if rel_root else f"{dirname}/"
        return self._gitignore_spec.match_file(rel_dir)

    def _should_include_file(self, rel_path: str) -> bool:
        if not rel_path.endswith(self.config.file_extensions):
            return False
        if self._gitignore_spec and self._gitignore_spec.match_file(rel_path):
            return False
        return True
