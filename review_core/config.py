"""Настройки конфигурации."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Config(BaseSettings):
    """Конфигурация приложения."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Репозиторий (обязательно)
    repo_path: str
    base_branch: str
    target_branch: str

    # Нарезка на чанки
    max_tokens_per_chunk: int = Field(default=6000, gt=0)
    group_by_module: bool = Field(default=True)

    # Глубина обхода графа вызовов
    impact_max_depth: int = Field(default=5, ge=0)
    dependency_max_depth: int = Field(default=3, ge=0)

    # Папка для артефактов
    artifacts_dir: str = Field(default="__artifacts__")
