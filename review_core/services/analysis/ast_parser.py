"""Парсинг AST для извлечения функций, зависимостей и метрик."""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, cast

from tree_sitter import Node
from tree_sitter_language_pack import get_parser, SupportedLanguage

from review_core.constants import LANGUAGE_MAP, detect_language
from .models import AggregateMetrics, DependencyFact, FunctionFact, SourceModel

logger = logging.getLogger(__name__)


FUNCTION_TYPES = (
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "generator_function",
    "method_definition",
)

DECISION_TYPES = (
    "if_statement",
    "ternary_expression",
    "switch_case",
    "switch_default",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "catch_clause",
)

CLASS_TYPES = ("class_declaration", "abstract_class_declaration", "class")

LOGICAL_OPERATORS = ("&&", "||")

COMMENT_PREFIXES = ("//", "/*", "*")


def _text(node: Node) -> str:
    return node.text.decode("utf8", errors="replace") if node.text else ""


def _string_value(node: Node | None) -> str | None:
    """Значение строкового литерала без кавычек."""
    if node is None or node.type != "string":
        return None
    return _text(node)[1:-1]


@dataclass
class _Scope:
    """Область видимости функции во время обхода."""

    fact: FunctionFact | None
    calls: dict[str, None]
    decisions: int = 0


@dataclass
class _SourceWalker:
    """Один проход в глубину по дереву tree-sitter."""

    file_path: str
    functions: list[FunctionFact] = field(default_factory=list)
    dependencies: list[DependencyFact] = field(default_factory=list)
    class_count: int = 0
    _scopes: list[_Scope] = field(default_factory=list)

    def __post_init__(self):
        handlers: dict[str, Callable[[Node], None]] = {}
        for node_type in FUNCTION_TYPES:
            handlers[node_type] = self._visit_function
        for node_type in DECISION_TYPES:
            handlers[node_type] = self._visit_decision
        for node_type in CLASS_TYPES:
            handlers[node_type] = self._visit_class
        handlers["binary_expression"] = self._visit_binary
        handlers["call_expression"] = self._visit_call
        handlers["import_statement"] = self._visit_import
        self._handlers = handlers

    def walk(self, node: Node) -> None:
        # ключевые слова class/function совпадают по типу с узлами выражений
        if not node.is_named:
            return
        self._handlers.get(node.type, self._visit_children)(node)

    def _visit_children(self, node: Node) -> None:
        for child in node.children:
            self.walk(child)

    # --- функции ---

    def _visit_function(self, node: Node) -> None:
        name, is_exported = self._function_name(node)

        fact = None
        if name:
            fact = FunctionFact(
                name=name,
                file=self.file_path,
                line=node.start_point[0] + 1,
                column=node.start_point[1],
                end_line=node.end_point[0] + 1,
                params=self._params(node),
                is_async=any(child.type == "async" for child in node.children),
                is_exported=is_exported,
            )
            self.functions.append(fact)
            calls: dict[str, None] = {}
        else:
            # Анонимные колбэки отдают вызовы ближайшей именованной функции
            calls = self._scopes[-1].calls if self._scopes else {}

        scope = _Scope(fact=fact, calls=calls)
        self._scopes.append(scope)
        try:
            self._visit_children(node)
        finally:
            self._scopes.pop()

        if fact:
            fact.complexity = 1 + scope.decisions
            fact.calls = list(scope.calls)

    def _function_name(self, node: Node) -> tuple[str | None, bool]:
        """Имя функции и признак экспорта."""
        if node.type in ("function_declaration", "generator_function_declaration"):
            name_node = node.child_by_field_name("name")
            exported = node.parent is not None and node.parent.type == "export_statement"
            return (_text(name_node) if name_node else None), exported

        if node.type == "method_definition":
            name_node = node.child_by_field_name("name")
            if not name_node:
                return None, False
            return _string_value(name_node) or _text(name_node), False

        # function/arrow expression, привязанная к переменной
        parent = node.parent
        if parent is None or parent.type != "variable_declarator":
            return None, False
        name_node = parent.child_by_field_name("name")
        if not name_node or name_node.type != "identifier":
            return None, False

        declaration = parent.parent
        exported = (
            declaration is not None
            and declaration.parent is not None
            and declaration.parent.type == "export_statement"
        )
        return _text(name_node), exported

    def _params(self, node: Node) -> list[str]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            # x => x * 2
            single = node.child_by_field_name("parameter")
            return [self._param_name(single)] if single else []

        return [
            self._param_name(p)
            for p in params_node.named_children
            if p.type != "comment"
        ]

    def _param_name(self, node: Node | None) -> str:
        if node is None:
            return "<complex>"
        if node.type == "identifier":
            return _text(node)
        if node.type in ("required_parameter", "optional_parameter"):
            return self._param_name(node.child_by_field_name("pattern"))
        if node.type == "assignment_pattern":
            return self._param_name(node.child_by_field_name("left"))
        if node.type == "rest_pattern":
            inner = node.named_children[0] if node.named_children else None
            return "..." + self._param_name(inner)
        return "<complex>"

    # --- сложность ---

    def _visit_decision(self, node: Node) -> None:
        if self._scopes:
            self._scopes[-1].decisions += 1
        self._visit_children(node)

    def _visit_binary(self, node: Node) -> None:
        operator = node.child_by_field_name("operator")
        if self._scopes and operator is not None and operator.type in LOGICAL_OPERATORS:
            self._scopes[-1].decisions += 1
        self._visit_children(node)

    def _visit_class(self, node: Node) -> None:
        self.class_count += 1
        self._visit_children(node)

    # --- вызовы и зависимости ---

    def _visit_call(self, node: Node) -> None:
        func = node.child_by_field_name("function")

        if func is not None and func.type == "import":
            source = _string_value(self._first_argument(node)) or "<dynamic>"
            self._add_dependency("dynamic", source, [], node)

        elif func is not None:
            callee = self._callee_name(func)

            if callee == "require":
                source = _string_value(self._first_argument(node))
                if source is not None:
                    self._add_dependency("require", source, [], node)

            if callee:
                # вызов принадлежит и всем объемлющим функциям
                for scope in self._scopes:
                    scope.calls[callee] = None

        self._visit_children(node)

    def _callee_name(self, node: Node) -> str | None:
        """Имя вызываемой функции, a.b.c() -> "a.b.c"."""
        if node.type in ("identifier", "this", "super"):
            return _text(node)

        if node.type == "member_expression":
            obj = node.child_by_field_name("object")
            prop = node.child_by_field_name("property")
            if obj is None or prop is None:
                return None
            obj_name = self._callee_name(obj)
            if obj_name is None:
                return None
            return f"{obj_name}.{_text(prop)}"

        return None

    def _first_argument(self, call: Node) -> Node | None:
        args = call.child_by_field_name("arguments")
        if args is None:
            return None
        for child in args.named_children:
            if child.type != "comment":
                return child
        return None

    def _visit_import(self, node: Node) -> None:
        source = _string_value(node.child_by_field_name("source"))
        if source is not None:
            self._add_dependency("import", source, self._import_specifiers(node), node)
        self._visit_children(node)

    def _import_specifiers(self, node: Node) -> list[str]:
        names = []

        for clause in node.children:
            if clause.type != "import_clause":
                continue

            for child in clause.named_children:
                if child.type == "identifier":
                    names.append(_text(child))
                elif child.type == "namespace_import":
                    names.extend(
                        _text(c) for c in child.named_children if c.type == "identifier"
                    )
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        local = spec.child_by_field_name(
                            "alias"
                        ) or spec.child_by_field_name("name")
                        if local:
                            names.append(_string_value(local) or _text(local))

        return names

    def _add_dependency(
        self, kind: str, source: str, specifiers: list[str], node: Node
    ) -> None:
        self.dependencies.append(
            DependencyFact(
                kind=kind,
                source=source,
                specifiers=specifiers,
                line=node.start_point[0] + 1,
                is_external=not source.startswith("."),
            )
        )


class SourceModelExtractor:
    """Извлечение функций, зависимостей и метрик из одного файла."""

    def extract(self, content: str, file_path: str) -> SourceModel:
        """
        Разобрать файл.

        Ошибки парсинга наружу не пробрасываются: вместо них возвращаются
        пустые списки и базовые метрики (только строки кода).

        Returns:
            SourceModel с функциями, зависимостями и метриками
        """
        language = detect_language(file_path)
        grammar = self._detect_grammar(file_path)
        if not grammar:
            return self._basic_model(content, language)

        try:
            parser = get_parser(cast(SupportedLanguage, grammar))
            tree = parser.parse(bytes(content, "utf8"))

            if tree.root_node.has_error:
                logger.warning(
                    f"[Parser] Syntax errors in {file_path}, using basic metrics"
                )
                return self._basic_model(content, language)

            walker = _SourceWalker(file_path)
            walker.walk(tree.root_node)

        except Exception as e:
            logger.warning(f"[Parser] Failed to parse {file_path}: {e}")
            return self._basic_model(content, language)

        return SourceModel(
            language=language,
            parsed=True,
            functions=walker.functions,
            dependencies=walker.dependencies,
            metrics=self._calculate_metrics(
                content, walker.functions, walker.class_count
            ),
        )

    def _detect_grammar(self, file_path: str) -> str | None:
        """Определить грамматику tree-sitter по расширению файла."""
        for ext, lang in LANGUAGE_MAP.items():
            if file_path.lower().endswith(f".{ext}"):
                return lang
        return None

    def _calculate_metrics(
        self, content: str, functions: list[FunctionFact], class_count: int
    ) -> AggregateMetrics:
        lines = content.split("\n")
        stripped = [line.strip() for line in lines]

        code_lines = [
            line
            for line in stripped
            if line and not line.startswith("//") and not line.startswith("/*")
        ]
        comment_lines = [line for line in stripped if line.startswith(COMMENT_PREFIXES)]

        avg_complexity = (
            sum(f.complexity for f in functions) / len(functions) if functions else 0
        )

        maintainability = 171 - 5.2 * math.log(len(lines)) - 0.23 * avg_complexity
        maintainability = max(0, min(100, maintainability))

        return AggregateMetrics(
            lines_of_code=len(code_lines),
            complexity=round(avg_complexity, 1),
            maintainability_index=round(maintainability),
            comment_ratio=round(len(comment_lines) / len(lines), 2),
            function_count=len(functions),
            class_count=class_count,
        )

    def _basic_model(self, content: str, language: str) -> SourceModel:
        """Базовые метрики без AST."""
        lines = content.split("\n")
        return SourceModel(
            language=language,
            parsed=False,
            functions=[],
            dependencies=[],
            metrics=AggregateMetrics(
                lines_of_code=len([line for line in lines if line.strip()]),
                complexity=0,
                maintainability_index=0,
                comment_ratio=0,
                function_count=0,
                class_count=0,
            ),
        )
