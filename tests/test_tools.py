"""Тесты реестра и диспетчера инструментов."""

from __future__ import annotations

import pytest

from review_core.services.analysis.service import AnalysisService
from review_core.services.tools.dispatcher import ToolCall, ToolDispatcher
from review_core.services.tools.registry import ToolRegistry, default_registry

REPO = {
    "src/a.js": "export function f(x) {\n  if (x > 1 && x < 5) {\n    return x;\n  }\n  return helper(x);\n}\n\nfunction helper(x) {\n  return x + 1;\n}\n",
    "src/b.js": 'import { f } from "./a.js";\n\nexport const g = () => f(2);\n',
    "src/c.js": 'import { g } from "./b.js";\n\nexport function h() {\n  return g();\n}\n',
}


@pytest.fixture
def dispatcher(write_repo) -> ToolDispatcher:
    repo = write_repo(REPO)
    return ToolDispatcher(default_registry(), AnalysisService(str(repo)))


def test_registry_exposes_schemas() -> None:
    registry = default_registry()

    assert registry.names() == [
        "analyze_file_ast",
        "find_function_callers",
        "find_function_dependencies",
        "analyze_function_complexity",
        "visualize_call_graph",
    ]
    schema = registry.get("find_function_callers").schema()
    assert schema["function"]["name"] == "find_function_callers"
    assert set(schema["function"]["parameters"]["required"]) == {
        "function_name",
        "file_path",
    }


def test_registry_rejects_duplicates() -> None:
    spec = default_registry().get("analyze_file_ast")
    with pytest.raises(ValueError):
        ToolRegistry([spec, spec])


def test_analyze_file_ast(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.dispatch(ToolCall("analyze_file_ast", {"path": "src/a.js"}))

    assert result.ok
    assert "## AST Analysis: src/a.js" in result.result
    assert "**f** (line 1)" in result.result
    assert "**helper**" in result.result


def test_find_function_callers(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.dispatch(
        ToolCall("find_function_callers", {"function_name": "f", "file_path": "src/a.js"})
    )

    assert result.ok
    assert "`src/b.js:3` - g" in result.result
    assert "**Usage count:** 2 (direct: 1)" in result.result


def test_find_function_dependencies(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.dispatch(
        ToolCall(
            "find_function_dependencies",
            {"function_name": "h", "file_path": "src/c.js", "max_depth": 3},
        )
    )

    assert result.ok
    assert "- g (src/b.js)" in result.result
    assert "- f (src/a.js)" in result.result
    assert "- helper (src/a.js)" in result.result


def test_analyze_function_complexity(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.dispatch(
        ToolCall(
            "analyze_function_complexity", {"function_name": "f", "file_path": "src/a.js"}
        )
    )

    assert result.ok
    assert "Cyclomatic Complexity: 3" in result.result
    assert "Low complexity" in result.result


def test_visualize_call_graph(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.dispatch(
        ToolCall("visualize_call_graph", {"function_name": "g", "file_path": "src/b.js"})
    )

    assert result.ok
    assert "→ f (src/a.js:3)" in result.result
    assert "← h (src/c.js:3)" in result.result


@pytest.mark.parametrize(
    "call",
    [
        ToolCall("no_such_tool", {}),
        ToolCall("analyze_file_ast", {}),
        ToolCall("analyze_file_ast", {"path": "src/missing.js"}),
        ToolCall("analyze_file_ast", {"path": "../outside.js"}),
        ToolCall(
            "analyze_function_complexity",
            {"function_name": "nope", "file_path": "src/a.js"},
        ),
        ToolCall(
            "find_function_dependencies",
            {"function_name": "f", "file_path": "src/a.js", "max_depth": -1},
        ),
    ],
)
def test_failures_are_returned_not_raised(
    dispatcher: ToolDispatcher, call: ToolCall
) -> None:
    result = dispatcher.dispatch(call)

    assert not result.ok
    assert result.name == call.name
    assert result.result == ""
    assert result.error


def test_unknown_tool_message(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.dispatch(ToolCall("no_such_tool"))
    assert result.error == "Unknown tool: no_such_tool"
