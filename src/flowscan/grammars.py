"""Per-language grammar profiles for the data-flow walker.

The walker is written against a small vocabulary (classes, methods,
parameters, assignments, declarators, calls, constructions and binary
expressions). Each profile maps that vocabulary onto the node kinds and field
names of one tree-sitter grammar.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from tree_sitter import Language, Parser
import tree_sitter_java
from tree_sitter_javascript import language as javascript_language
from tree_sitter_typescript import language_tsx, language_typescript


_JAVA_LANGUAGE = Language(tree_sitter_java.language())
_JS_LANGUAGE = Language(javascript_language())
_TS_LANGUAGE = Language(language_typescript())
_TSX_LANGUAGE = Language(language_tsx())


@dataclass(frozen=True, slots=True)
class Grammar:
    """Node kinds and field names the walker needs for one language."""

    name: str
    extensions: frozenset[str]
    identifier_kinds: frozenset[str] = frozenset({"identifier"})
    class_kinds: frozenset[str] = frozenset({"class_declaration"})
    method_kinds: frozenset[str] = frozenset()
    function_kinds: frozenset[str] = frozenset()
    field_kinds: frozenset[str] = frozenset()
    parameter_kinds: frozenset[str] = frozenset()
    parameter_name_fields: Tuple[str, ...] = ("name",)
    parameter_type_field: str | None = None
    assignment_kinds: frozenset[str] = frozenset({"assignment_expression"})
    declarator_kinds: frozenset[str] = frozenset({"variable_declarator"})
    call_kinds: frozenset[str] = frozenset()
    callee_field: str | None = None
    member_kinds: frozenset[str] = frozenset()
    receiver_field: str = "object"
    construction_kinds: frozenset[str] = frozenset()
    lambda_kinds: frozenset[str] = frozenset()
    binary_kinds: frozenset[str] = frozenset({"binary_expression"})
    name_field: str = "name"
    body_field: str = "body"
    parameters_field: str = "parameters"
    arguments_field: str = "arguments"
    left_field: str = "left"
    right_field: str = "right"
    value_field: str = "value"


JAVA = Grammar(
    name="java",
    extensions=frozenset({".java"}),
    class_kinds=frozenset(
        {"class_declaration", "interface_declaration", "enum_declaration", "record_declaration"}
    ),
    method_kinds=frozenset({"method_declaration", "constructor_declaration"}),
    field_kinds=frozenset({"field_declaration"}),
    parameter_kinds=frozenset({"formal_parameter", "spread_parameter"}),
    parameter_type_field="type",
    call_kinds=frozenset({"method_invocation"}),
    construction_kinds=frozenset({"object_creation_expression"}),
    lambda_kinds=frozenset({"lambda_expression"}),
)

JAVASCRIPT = Grammar(
    name="javascript",
    extensions=frozenset({".js", ".mjs", ".cjs", ".jsx"}),
    method_kinds=frozenset({"method_definition"}),
    function_kinds=frozenset({"function_declaration", "generator_function_declaration"}),
    parameter_kinds=frozenset({"identifier", "assignment_pattern", "rest_pattern"}),
    parameter_name_fields=("left",),
    assignment_kinds=frozenset({"assignment_expression", "augmented_assignment_expression"}),
    call_kinds=frozenset({"call_expression"}),
    callee_field="function",
    member_kinds=frozenset({"member_expression"}),
    construction_kinds=frozenset({"new_expression"}),
    lambda_kinds=frozenset({"arrow_function", "function_expression", "generator_function"}),
)

TYPESCRIPT = Grammar(
    name="typescript",
    extensions=frozenset({".ts", ".mts"}),
    class_kinds=frozenset({"class_declaration", "abstract_class_declaration"}),
    method_kinds=frozenset({"method_definition"}),
    function_kinds=frozenset({"function_declaration", "generator_function_declaration"}),
    parameter_kinds=frozenset({"required_parameter", "optional_parameter"}),
    parameter_name_fields=("pattern", "left"),
    parameter_type_field="type",
    assignment_kinds=frozenset({"assignment_expression", "augmented_assignment_expression"}),
    call_kinds=frozenset({"call_expression"}),
    callee_field="function",
    member_kinds=frozenset({"member_expression"}),
    construction_kinds=frozenset({"new_expression"}),
    lambda_kinds=frozenset({"arrow_function", "function_expression", "generator_function"}),
)

TSX = Grammar(
    name="tsx",
    extensions=frozenset({".tsx"}),
    class_kinds=TYPESCRIPT.class_kinds,
    method_kinds=TYPESCRIPT.method_kinds,
    function_kinds=TYPESCRIPT.function_kinds,
    parameter_kinds=TYPESCRIPT.parameter_kinds,
    parameter_name_fields=TYPESCRIPT.parameter_name_fields,
    parameter_type_field=TYPESCRIPT.parameter_type_field,
    assignment_kinds=TYPESCRIPT.assignment_kinds,
    call_kinds=TYPESCRIPT.call_kinds,
    callee_field=TYPESCRIPT.callee_field,
    member_kinds=TYPESCRIPT.member_kinds,
    construction_kinds=TYPESCRIPT.construction_kinds,
    lambda_kinds=TYPESCRIPT.lambda_kinds,
)

GRAMMARS: Dict[str, Grammar] = {grammar.name: grammar for grammar in (JAVA, JAVASCRIPT, TYPESCRIPT, TSX)}

_LANGUAGES: Dict[str, Language] = {
    "java": _JAVA_LANGUAGE,
    "javascript": _JS_LANGUAGE,
    "typescript": _TS_LANGUAGE,
    "tsx": _TSX_LANGUAGE,
}

SUPPORTED_EXTENSIONS = frozenset(ext for grammar in GRAMMARS.values() for ext in grammar.extensions)


def grammar_for_extension(ext: str) -> Grammar | None:
    ext = ext.lower()
    for grammar in GRAMMARS.values():
        if ext in grammar.extensions:
            return grammar
    return None


def grammar_by_name(name: str) -> Grammar:
    try:
        return GRAMMARS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown language: {name}") from None


def new_parser(grammar: Grammar) -> Parser:
    """Create a fresh parser; parsers must not be shared between threads."""

    parser = Parser()
    parser.language = _LANGUAGES[grammar.name]
    return parser
