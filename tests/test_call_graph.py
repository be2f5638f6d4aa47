"""Тесты построения графа вызовов и запросов импакта."""

from __future__ import annotations

from review_core.services.analysis.ast_parser import SourceModelExtractor
from review_core.services.analysis.call_graph import CallGraphBuilder
from review_core.services.analysis.config import AnalysisConfig
from review_core.services.analysis.impact_analyzer import ImpactAnalyzer
from review_core.services.analysis.models import (
    AggregateMetrics,
    DependencyFact,
    FunctionFact,
    NodeKey,
    SourceModel,
)


def _fn(name: str, file: str, calls: list[str] | None = None, line: int = 1) -> FunctionFact:
    return FunctionFact(
        name=name, file=file, line=line, column=0, end_line=line, calls=calls or []
    )


def _import(source: str) -> DependencyFact:
    return DependencyFact(
        kind="import",
        source=source,
        specifiers=[],
        line=1,
        is_external=not source.startswith("."),
    )


def _model(functions, dependencies=None) -> SourceModel:
    return SourceModel(
        language="typescript",
        parsed=True,
        functions=functions,
        dependencies=dependencies or [],
        metrics=AggregateMetrics(0, 0, 0, 0, len(functions), 0),
    )


def _analyzer(files: dict[str, SourceModel], config: AnalysisConfig | None = None):
    graph = CallGraphBuilder(config).build(files)
    return graph, ImpactAnalyzer(graph)


def test_same_file_and_imported_calls_create_edges() -> None:
    graph, analyzer = _analyzer(
        {
            "a": _model([_fn("f", "a")]),
            "b": _model(
                [_fn("g", "b", ["f", "local"], line=3), _fn("local", "b")],
                [_import("./a")],
            ),
        }
    )

    assert len(graph) == 3
    assert graph.has_node(NodeKey("b", "local"))
    assert not graph.has_node(NodeKey("b", "f"))
    assert graph.edge_count == 2

    [edge] = analyzer.callers("a", "f")
    assert edge.caller == NodeKey("b", "g")
    assert edge.callee == NodeKey("a", "f")
    assert edge.file == "b"
    assert edge.line == 3

    assert [e.callee for e in analyzer.callees("b", "g")] == [
        NodeKey("a", "f"),
        NodeKey("b", "local"),
    ]


def test_unresolved_calls_are_dropped() -> None:
    graph, analyzer = _analyzer(
        {"a": _model([_fn("f", "a", ["console.log", "missing"])], [_import("react")])}
    )

    assert graph.edge_count == 0
    assert analyzer.callees("a", "f") == []


def test_relative_parent_segments_are_resolved() -> None:
    _, analyzer = _analyzer(
        {
            "src/shared/util": _model([_fn("fmt", "src/shared/util")]),
            "src/app/main": _model(
                [_fn("run", "src/app/main", ["fmt"])], [_import("../shared/util")]
            ),
        }
    )

    assert [e.callee for e in analyzer.callees("src/app/main", "run")] == [
        NodeKey("src/shared/util", "fmt")
    ]


def test_no_extension_probing_by_default() -> None:
    files = {
        "src/util.ts": _model([_fn("fmt", "src/util.ts")]),
        "src/main.ts": _model([_fn("run", "src/main.ts", ["fmt"])], [_import("./util")]),
    }

    graph, _ = _analyzer(files)
    assert graph.edge_count == 0

    graph, _ = _analyzer(files, AnalysisConfig(import_resolution_suffixes=(".ts",)))
    assert graph.edge_count == 1


def test_path_aliases() -> None:
    files = {
        "src/lib/util.ts": _model([_fn("fmt", "src/lib/util.ts")]),
        "src/main.ts": _model([_fn("run", "src/main.ts", ["fmt"])], [_import("@lib/util")]),
    }
    config = AnalysisConfig(
        path_aliases={"@lib/": "src/lib/"}, import_resolution_suffixes=(".ts",)
    )

    graph, _ = _analyzer(files, config)
    assert graph.edge_count == 1


def test_first_declared_import_wins() -> None:
    _, analyzer = _analyzer(
        {
            "a": _model([_fn("f", "a")]),
            "b": _model([_fn("f", "b")]),
            "c": _model([_fn("g", "c", ["f"])], [_import("./a"), _import("./b")]),
        }
    )

    assert [e.callee for e in analyzer.callees("c", "g")] == [NodeKey("a", "f")]


def test_duplicate_names_last_wins() -> None:
    graph, _ = _analyzer(
        {"a": _model([_fn("dup", "a", line=1), _fn("dup", "a", line=10)])}
    )

    assert len(graph) == 1
    assert graph.get_node(NodeKey("a", "dup")).line == 10


def test_absent_keys_return_empty_results() -> None:
    _, analyzer = _analyzer({})

    assert analyzer.callers("nope", "x") == []
    assert analyzer.callees("nope", "x") == []
    assert analyzer.transitive_dependencies("nope", "x") == set()

    impact = analyzer.impact("nope", "x")
    assert impact.direct_callers == []
    assert impact.all_callers == []
    assert impact.impacted_files == []
    assert impact.depth_reached == 0


def test_transitive_dependencies_terminate_on_cycle() -> None:
    _, analyzer = _analyzer(
        {"x": _model([_fn("A", "x", ["B"]), _fn("B", "x", ["A"])])}
    )

    assert analyzer.transitive_dependencies("x", "A", max_depth=10) == {
        NodeKey("x", "B")
    }


def test_nodes_at_depth_limit_are_included_but_not_expanded() -> None:
    _, analyzer = _analyzer(
        {
            "x": _model(
                [
                    _fn("a", "x", ["b"]),
                    _fn("b", "x", ["c"]),
                    _fn("c", "x", ["d"]),
                    _fn("d", "x"),
                ]
            )
        }
    )

    assert analyzer.transitive_dependencies("x", "a", max_depth=2) == {
        NodeKey("x", "b"),
        NodeKey("x", "c"),
    }
    assert len(analyzer.transitive_dependencies("x", "a")) == 3

    impact = analyzer.impact("x", "d", max_depth=2)
    assert impact.direct_callers == [NodeKey("x", "c")]
    assert impact.all_callers == [NodeKey("x", "c"), NodeKey("x", "b")]
    assert impact.depth_reached == 2


def test_impact_of_exported_function() -> None:
    _, analyzer = _analyzer(
        {
            "a": _model([_fn("f", "a")]),
            "b": _model([_fn("g", "b", ["f"])], [_import("./a")]),
            "c": _model([_fn("h", "c", ["g"])], [_import("./b")]),
        }
    )

    assert analyzer.impact("a", "f", max_depth=1).direct_callers == [NodeKey("b", "g")]

    impact = analyzer.impact("a", "f")
    assert impact.all_callers == [NodeKey("b", "g"), NodeKey("c", "h")]
    assert impact.impacted_files == ["b", "c"]
    assert impact.depth_reached == 2


def test_impact_terminates_on_mutual_recursion() -> None:
    _, analyzer = _analyzer(
        {"x": _model([_fn("A", "x", ["B"]), _fn("B", "x", ["A"])])}
    )

    impact = analyzer.impact("x", "A", max_depth=10)
    assert impact.all_callers == [NodeKey("x", "B")]


def test_describe_renders_both_directions() -> None:
    _, analyzer = _analyzer(
        {"x": _model([_fn("A", "x", ["B"]), _fn("B", "x")])}
    )

    text = analyzer.describe("x", "B")
    assert "Call Graph for B (x)" in text
    assert "(no calls)" in text
    assert "← A (x:1)" in text
    assert "Direct callers: 1" in text


def test_graph_from_parsed_sources(extractor: SourceModelExtractor) -> None:
    sources = {
        "src/a.ts": "export function f(x: number) { return x + 1; }\n",
        "src/b.ts": 'import { f } from "./a.ts";\nexport const g = () => f(2);\n',
    }
    models = {path: extractor.extract(text, path) for path, text in sources.items()}

    _, analyzer = _analyzer(models)

    assert analyzer.impact("src/a.ts", "f").direct_callers == [NodeKey("src/b.ts", "g")]
