"""Git-сервис: изменённые файлы ветки относительно базовой."""

import logging
from pathlib import Path
from dataclasses import dataclass
from git import Repo

from review_core.constants import detect_language
from review_core.services.chunking.models import FileChange

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "A": "added",
    "M": "modified",
    "D": "removed",
    "R": "renamed",
}


@dataclass
class BranchDiffResult:
    """Результат сравнения ветки с базовой."""

    branch_name: str
    base_commit: str  # merge-base
    head_commit: str  # последний коммит в ветке
    files: list[FileChange]


def count_patch_lines(patch: str) -> tuple[int, int]:
    """Количество добавленных и удалённых строк в unified diff."""
    additions = deletions = 0

    for line in patch.split("\n"):
        if line.startswith("+++") or line.startswith("---"):
            continue
        if line.startswith("+"):
            additions += 1
        elif line.startswith("-"):
            deletions += 1

    return additions, deletions


def parse_name_status_line(line: str) -> tuple[str, str, str | None] | None:
    """
    Разобрать строку `git diff --name-status`.

    Returns:
        (status, path, previous_path) или None для мусорных строк
    """
    parts = line.split("\t")
    if len(parts) < 2:
        return None

    status = STATUS_MAP.get(parts[0][0], "modified")
    previous = parts[1] if status == "renamed" and len(parts) > 2 else None
    return status, parts[-1], previous


class GitService:
    """Сервис для получения изменений между веткой и базовой веткой."""

    def __init__(self, repo_path: str):
        self.repo_path = Path(repo_path)
        self.repo = Repo(self.repo_path)

    def get_branch_diff(self, branch: str, base_branch: str) -> BranchDiffResult:
        """
        Получить изменения ветки относительно base_branch.

        Args:
            branch: ветка для анализа
            base_branch: базовая ветка

        Returns:
            BranchDiffResult со списком FileChange
        """
        logger.info(f"Getting diff for branch '{branch}' from '{base_branch}'")

        merge_base_commit = self.repo.merge_base(base_branch, branch)[0]
        head_commit = self.repo.commit(branch)
        commit_range = f"{merge_base_commit.hexsha}..{head_commit.hexsha}"

        logger.info(f"Merge base: {merge_base_commit.hexsha}")
        logger.info(f"Head commit: {head_commit.hexsha}")

        diff_output = self.repo.git.diff(commit_range, "--name-status")

        files = []
        for line in diff_output.strip().split("\n"):
            parsed = parse_name_status_line(line)
            if parsed is None:
                continue

            status, file_path, previous = parsed
            patch = self.repo.git.diff(commit_range, "--", file_path)
            additions, deletions = count_patch_lines(patch)

            files.append(
                FileChange(
                    filename=file_path,
                    status=status,
                    additions=additions,
                    deletions=deletions,
                    patch=patch or None,
                    previous_filename=previous,
                    language=detect_language(file_path),
                )
            )

        return BranchDiffResult(
            branch_name=branch,
            base_commit=merge_base_commit.hexsha,
            head_commit=head_commit.hexsha,
            files=files,
        )
