"""Taint-source entry points matched declaratively against syntax trees."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from .ast_utils import node_text, start_position
from .grammars import Grammar, grammar_by_name


@dataclass(frozen=True, slots=True)
class EntryPointPattern:
    """Methods named one of ``methods`` whose first parameter has one of ``parameter_types``.

    An empty ``parameter_types`` accepts any first parameter, or none.
    """

    language: str
    methods: frozenset[str]
    parameter_types: frozenset[str] = frozenset()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntryPointPattern":
        try:
            language = str(data["language"]).lower()
            methods = data["methods"]
        except (KeyError, TypeError):
            raise ValueError(f"Entry point pattern needs 'language' and 'methods': {data!r}") from None
        parameter_types = data.get("parameter_types", [])
        for key, value in (("methods", methods), ("parameter_types", parameter_types)):
            if not isinstance(value, list):
                raise ValueError(f"Entry point '{key}' must be a list, got {value!r}")
        grammar_by_name(language)
        return cls(
            language=language,
            methods=frozenset(str(name) for name in methods),
            parameter_types=frozenset(str(name) for name in parameter_types),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "methods": sorted(self.methods),
            "parameter_types": sorted(self.parameter_types),
        }

    def applies_to(self, grammar: Grammar) -> bool:
        if self.language == grammar.name:
            return True
        # .tsx files share the TypeScript patterns
        return self.language == "typescript" and grammar.name == "tsx"

    def accepts_type(self, type_text: str | None) -> bool:
        if not self.parameter_types:
            return True
        if not type_text:
            return False
        simple_name = type_text.rsplit(".", 1)[-1]
        return type_text in self.parameter_types or simple_name in self.parameter_types


DEFAULT_ENTRY_POINTS: Tuple[EntryPointPattern, ...] = (
    EntryPointPattern(
        language="java",
        methods=frozenset({"doGet", "doPost", "doPatch"}),
        parameter_types=frozenset({"HttpServletRequest"}),
    ),
)


@dataclass(frozen=True, slots=True)
class EntryPoint:
    """A method whose first parameter is a taint source."""

    path: Path | None
    line: int
    column: int
    method: str
    parameter: str | None
    parameter_type: str | None
    container_path: Tuple[str, ...]

    @property
    def parameter_path(self) -> Tuple[str, ...]:
        """Container path of the method's own scope, usable with ``DataFlow.lookup``."""

        return self.container_path + (self.method,)

    @property
    def position(self) -> Tuple[int, int]:
        return self.line, self.column

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": str(self.path) if self.path is not None else None,
            "line": self.line,
            "column": self.column,
            "method": self.method,
            "parameter": self.parameter,
            "parameterType": self.parameter_type,
            "containerPath": list(self.container_path),
        }


def _first_parameter(node, grammar: Grammar):
    parameters = node.child_by_field_name(grammar.parameters_field)
    if parameters is None:
        return None
    for child in parameters.named_children:
        if child.type in grammar.parameter_kinds:
            return child
    return None


def _parameter_name(node, grammar: Grammar, source: bytes) -> str | None:
    current = node
    while current is not None and current.type not in grammar.identifier_kinds:
        target = None
        for field_name in grammar.parameter_name_fields:
            target = current.child_by_field_name(field_name)
            if target is not None:
                break
        if target is None:
            target = next(
                (
                    child
                    for child in current.named_children
                    if child.type in grammar.identifier_kinds or child.type in grammar.declarator_kinds
                ),
                None,
            )
        current = target
    return node_text(current, source) if current is not None else None


def _parameter_type(node, grammar: Grammar, source: bytes) -> str | None:
    if grammar.parameter_type_field is None:
        return None
    type_node = node.child_by_field_name(grammar.parameter_type_field)
    if type_node is None:
        return None
    # TypeScript annotations include the leading colon
    text = node_text(type_node, source).strip().lstrip(":").strip()
    return text or None


def _match(node, grammar: Grammar, source: bytes, patterns: List[EntryPointPattern]):
    name_node = node.child_by_field_name(grammar.name_field)
    if name_node is None:
        return None
    method = node_text(name_node, source)
    candidates = [pattern for pattern in patterns if method in pattern.methods]
    if not candidates:
        return None
    parameter = _first_parameter(node, grammar)
    type_text = _parameter_type(parameter, grammar, source) if parameter is not None else None
    for pattern in candidates:
        if pattern.parameter_types and parameter is None:
            continue
        if pattern.accepts_type(type_text):
            parameter_name = _parameter_name(parameter, grammar, source) if parameter is not None else None
            return method, parameter_name, type_text
    return None


def find_entry_points(
    tree,
    source: bytes,
    grammar: Grammar,
    patterns: Iterable[EntryPointPattern],
    path: Path | None = None,
) -> List[EntryPoint]:
    """Return methods matching any pattern for ``grammar``, in source order."""

    active = [pattern for pattern in patterns if pattern.applies_to(grammar)]
    if not active:
        return []
    root = getattr(tree, "root_node", tree)
    results: List[EntryPoint] = []
    # (node, enclosing container names, inside a function body)
    stack: List[Tuple[Any, Tuple[str, ...], bool]] = [(root, (), False)]
    while stack:
        node, prefix, in_function = stack.pop()
        kind = node.type
        child_prefix, child_in_function = prefix, in_function
        if kind in grammar.method_kinds or kind in grammar.function_kinds:
            matched = _match(node, grammar, source, active)
            if matched is not None:
                method, parameter, parameter_type = matched
                line, column = start_position(node)
                results.append(
                    EntryPoint(
                        path=path,
                        line=line,
                        column=column,
                        method=method,
                        parameter=parameter,
                        parameter_type=parameter_type,
                        container_path=prefix,
                    )
                )
            opens_scope = kind in grammar.function_kinds or not in_function
            name_node = node.child_by_field_name(grammar.name_field)
            if opens_scope and name_node is not None:
                child_prefix = prefix + (node_text(name_node, source),)
                child_in_function = True
        elif kind in grammar.class_kinds:
            name_node = node.child_by_field_name(grammar.name_field)
            if name_node is not None:
                child_prefix = prefix + (node_text(name_node, source),)
                child_in_function = False
        for child in reversed(node.named_children):
            stack.append((child, child_prefix, child_in_function))
    return results
