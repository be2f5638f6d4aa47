"""Текстовые отчёты для инструментов анализа."""

from review_core.services.analysis.models import (
    CallEdge,
    FunctionFact,
    ImpactResult,
    NodeKey,
    SourceModel,
)

# Пороги оценки цикломатической сложности
COMPLEXITY_LEVELS = (
    (5, "Low complexity - easy to understand and maintain"),
    (10, "Moderate complexity - consider refactoring if it grows"),
    (20, "High complexity - should be refactored"),
)
VERY_HIGH_COMPLEXITY = "Very high complexity - refactoring required"


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def format_file_analysis(path: str, model: SourceModel) -> str:
    """Отчёт по структуре файла."""
    metrics = model.metrics
    lines = [
        f"## AST Analysis: {path}",
        "",
        "### Metrics",
        f"- Language: {model.language}",
        f"- Lines of code: {metrics.lines_of_code}",
        f"- Complexity: {metrics.complexity}",
        f"- Maintainability: {metrics.maintainability_index}",
        f"- Functions: {metrics.function_count}",
        f"- Classes: {metrics.class_count}",
        f"- Comment ratio: {metrics.comment_ratio * 100:.1f}%",
        "",
    ]

    if not model.parsed:
        lines.append("_Structure not available: file was not parsed._")
        return "\n".join(lines)

    if model.functions:
        lines.append(f"### Functions ({len(model.functions)})")
        for func in model.functions:
            lines.extend(_format_function(func))
        lines.append("")

    if model.dependencies:
        lines.append(f"### Dependencies ({len(model.dependencies)})")
        for dep in model.dependencies:
            origin = "external" if dep.is_external else "local"
            lines.append(f"- {origin} {dep.kind}: {dep.source} (line {dep.line})")
            if dep.specifiers:
                lines.append(f"  - Imports: {', '.join(dep.specifiers)}")

    return "\n".join(lines)


def _format_function(func: FunctionFact) -> list[str]:
    lines = [
        f"- **{func.name}** (line {func.line})",
        f"  - Params: {', '.join(func.params) or 'none'}",
        f"  - Complexity: {func.complexity}",
        f"  - Async: {_yes_no(func.is_async)}",
        f"  - Exported: {_yes_no(func.is_exported)}",
    ]
    if func.calls:
        lines.append(f"  - Calls: {', '.join(func.calls)}")
    return lines


def format_callers(
    name: str, edges: list[CallEdge], impact: ImpactResult
) -> str:
    """Отчёт по вызывающим функции."""
    if not edges:
        return f"No callers found for {name} in {impact.target.file}"

    lines = [f"## Callers of {name}", "", f"Found {len(edges)} direct call site(s):", ""]
    for edge in edges:
        lines.append(f"- `{edge.caller.file}:{edge.line}` - {edge.caller.name}")

    lines.extend(
        [
            "",
            "### Impact",
            f"- **Usage count:** {len(impact.all_callers)} (direct: {len(impact.direct_callers)})",
            f"- **Affected files:** {len(impact.impacted_files)}",
            f"- **Depth reached:** {impact.depth_reached}",
        ]
    )
    for file_path in impact.impacted_files:
        lines.append(f"  - {file_path}")

    return "\n".join(lines)


def format_dependencies(
    func: FunctionFact, edges: list[CallEdge], transitive: set[NodeKey], max_depth: int
) -> str:
    """Отчёт по зависимостям функции."""
    lines = [f"## Dependencies of {func.name}", ""]

    if not func.calls:
        lines.append("This function does not call any other functions.")
        return "\n".join(lines)

    lines.append(f"Directly calls {len(func.calls)} function(s):")
    lines.append("")

    resolved = {edge.callee.name: edge.callee for edge in edges}
    for call in func.calls:
        target = resolved.get(call)
        location = f" ({target.file})" if target else " (unresolved)"
        lines.append(f"- {call}{location}")

    indirect = sorted(transitive - set(resolved.values()))
    if indirect:
        lines.extend(["", f"### Transitive (depth ≤ {max_depth})"])
        for key in indirect:
            lines.append(f"- {key.name} ({key.file})")

    return "\n".join(lines)


def format_complexity(path: str, func: FunctionFact) -> str:
    """Отчёт по сложности функции."""
    lines = [
        f"## Complexity Analysis: {func.name}",
        "",
        f"File: {path}",
        f"Line: {func.line}",
        "",
        "### Metrics",
        f"- Cyclomatic Complexity: {func.complexity}",
        f"- Parameters: {len(func.params)}",
        f"- Async: {_yes_no(func.is_async)}",
        f"- Exported: {_yes_no(func.is_exported)}",
        f"- Function calls: {len(func.calls)}",
        "",
        "### Assessment",
        assess_complexity(func.complexity),
    ]
    return "\n".join(lines)


def assess_complexity(complexity: int) -> str:
    for limit, text in COMPLEXITY_LEVELS:
        if complexity <= limit:
            return text
    return VERY_HIGH_COMPLEXITY
