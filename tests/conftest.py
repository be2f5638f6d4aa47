from __future__ import annotations

from pathlib import Path

import pytest

from review_core.services.analysis.ast_parser import SourceModelExtractor


@pytest.fixture
def extractor() -> SourceModelExtractor:
    return SourceModelExtractor()


@pytest.fixture
def write_repo(tmp_path: Path):
    """Создать файлы рабочей копии: {relative_path: content}."""

    def _write(files: dict[str, str]) -> Path:
        for rel_path, content in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
