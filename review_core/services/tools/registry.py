"""Реестр инструментов анализа, доступных модели."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

from review_core.services.analysis.service import AnalysisService
from review_core.services.analysis.models import FunctionFact
from . import reports


class FileArgs(BaseModel):
    path: str = Field(description="Path to the file relative to repository root")


class FunctionArgs(BaseModel):
    function_name: str = Field(description="Name of the function")
    file_path: str = Field(description="Path to the file containing the function")


class DependencyArgs(FunctionArgs):
    max_depth: int = Field(
        default=3, ge=0, le=10, description="Depth of the transitive search"
    )


class GraphArgs(FunctionArgs):
    max_depth: int = Field(
        default=2, ge=0, le=10, description="Depth of the impact summary"
    )


Handler = Callable[[Any, AnalysisService], str]


@dataclass(frozen=True)
class ToolSpec:
    """Описание инструмента: имя, назначение, схема аргументов, обработчик."""

    name: str
    description: str
    args_model: type[BaseModel]
    handler: Handler

    def schema(self) -> dict:
        """Описание в формате function calling."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(),
            },
        }


class ToolRegistry:
    """Неизменяемый набор инструментов, создаётся один раз и передаётся явно."""

    def __init__(self, specs: list[ToolSpec]):
        by_name = {}
        for spec in specs:
            if spec.name in by_name:
                raise ValueError(f"Duplicate tool name: {spec.name}")
            by_name[spec.name] = spec
        self._specs = MappingProxyType(by_name)

    def get(self, name: str) -> ToolSpec:
        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        return spec

    def names(self) -> list[str]:
        return list(self._specs)

    def schemas(self) -> list[dict]:
        return [spec.schema() for spec in self._specs.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


def _find_function(service: AnalysisService, args: FunctionArgs) -> FunctionFact:
    model = service.analyze_file(args.file_path)
    func = model.find_function(args.function_name)
    if func is None:
        raise LookupError(
            f"Function {args.function_name} not found in {args.file_path}"
        )
    return func


def _analyze_file_ast(args: FileArgs, service: AnalysisService) -> str:
    return reports.format_file_analysis(args.path, service.analyze_file(args.path))


def _find_function_callers(args: FunctionArgs, service: AnalysisService) -> str:
    analyzer = service.analyzer
    edges = analyzer.callers(args.file_path, args.function_name)
    impact = analyzer.impact(args.file_path, args.function_name)
    return reports.format_callers(args.function_name, edges, impact)


def _find_function_dependencies(args: DependencyArgs, service: AnalysisService) -> str:
    func = _find_function(service, args)
    analyzer = service.analyzer
    edges = analyzer.callees(args.file_path, args.function_name)
    transitive = analyzer.transitive_dependencies(
        args.file_path, args.function_name, args.max_depth
    )
    return reports.format_dependencies(func, edges, transitive, args.max_depth)


def _analyze_function_complexity(args: FunctionArgs, service: AnalysisService) -> str:
    return reports.format_complexity(args.file_path, _find_function(service, args))


def _visualize_call_graph(args: GraphArgs, service: AnalysisService) -> str:
    return service.analyzer.describe(args.file_path, args.function_name, args.max_depth)


def default_registry() -> ToolRegistry:
    """Инструменты анализа кода."""
    return ToolRegistry(
        [
            ToolSpec(
                name="analyze_file_ast",
                description="Perform AST analysis on a file. Returns functions, imports, and code metrics.",
                args_model=FileArgs,
                handler=_analyze_file_ast,
            ),
            ToolSpec(
                name="find_function_callers",
                description="Find all places where a function is called. Useful for understanding the impact of changes.",
                args_model=FunctionArgs,
                handler=_find_function_callers,
            ),
            ToolSpec(
                name="find_function_dependencies",
                description="Find all functions that a given function depends on (calls). Shows the dependency tree.",
                args_model=DependencyArgs,
                handler=_find_function_dependencies,
            ),
            ToolSpec(
                name="analyze_function_complexity",
                description="Analyze cyclomatic complexity and other metrics for a specific function.",
                args_model=FunctionArgs,
                handler=_analyze_function_complexity,
            ),
            ToolSpec(
                name="visualize_call_graph",
                description="Show what a function calls, who calls it, and a short impact summary.",
                args_model=GraphArgs,
                handler=_visualize_call_graph,
            ),
        ]
    )
