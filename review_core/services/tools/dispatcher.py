"""Выполнение вызовов инструментов от модели."""

import logging
from dataclasses import dataclass, field
from typing import Any

from review_core.services.analysis.service import AnalysisService
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    """Вызов инструмента."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Результат вызова. При ошибке result пустой, error заполнен."""

    name: str
    result: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ToolDispatcher:
    """Диспетчер вызовов: исключения наружу не пробрасываются."""

    def __init__(self, registry: ToolRegistry, service: AnalysisService):
        self.registry = registry
        self.service = service

    def dispatch(self, call: ToolCall) -> ToolResult:
        """
        Выполнить вызов инструмента.

        Returns:
            ToolResult с текстовым отчётом или текстом ошибки
        """
        logger.info(f"[Tools] {call.name}({call.arguments})")

        try:
            spec = self.registry.get(call.name)
            args = spec.args_model.model_validate(call.arguments)
            result = spec.handler(args, self.service)
        except Exception as e:
            logger.warning(f"[Tools] {call.name} failed: {e}")
            return ToolResult(name=call.name, result="", error=str(e))

        return ToolResult(name=call.name, result=result)
