"""Build a data-flow graph by walking a syntax tree scope by scope."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

from .ast_utils import collect_nodes_of_kind, node_text, start_position
from .extraction import call_receiver, extract_read_identifiers
from .grammars import Grammar
from .model import Container, ContainerKind, DataFlow, NodeKind, ScopePolicy, add_flow

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WalkOptions:
    scope_policy: ScopePolicy = ScopePolicy.ISOLATED
    receiver_reads: bool = False


class GraphWalker:
    """Recursive descent over classes and methods, iterative inside bodies.

    Every rule that does not match falls back to visiting the named children,
    so unsupported syntax is skipped rather than reported.
    """

    def __init__(self, source: bytes, grammar: Grammar, options: WalkOptions | None = None) -> None:
        self.source = source
        self.grammar = grammar
        self.options = options or WalkOptions()

    def walk_root(self, node, container: Container) -> None:
        grammar = self.grammar
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type in grammar.class_kinds:
                self._enter_class(current, container)
            elif current.type in grammar.function_kinds:
                self._enter_function(current, container)
            else:
                stack.extend(reversed(current.named_children))

    def walk_class(self, node, container: Container) -> None:
        grammar = self.grammar
        stack = list(reversed(node.named_children))
        while stack:
            child = stack.pop()
            if child.type in grammar.method_kinds or child.type in grammar.function_kinds:
                self._enter_function(child, container)
            elif child.type in grammar.class_kinds:
                self._enter_class(child, container)
            elif child.type in grammar.field_kinds:
                self.walk_statement(child, container)
            else:
                stack.extend(reversed(child.named_children))

    def walk_method(self, node, container: Container) -> None:
        grammar = self.grammar
        parameters = node.child_by_field_name(grammar.parameters_field)
        if parameters is not None:
            for parameter in parameters.named_children:
                if parameter.type not in grammar.parameter_kinds:
                    continue
                identifier = self._parameter_identifier(parameter)
                if identifier is None:
                    continue
                container.register(self._text(identifier), NodeKind.PARAMETER, identifier)
        body = node.child_by_field_name(grammar.body_field)
        if body is None:
            return
        for child in body.named_children:
            self.walk_statement(child, container)

    def walk_statement(self, node, container: Container) -> None:
        grammar = self.grammar
        stack = [node]
        while stack:
            current = stack.pop()
            kind = current.type
            if (
                (kind in grammar.assignment_kinds and self._handle_assignment(current, container))
                or (kind in grammar.declarator_kinds and self._handle_declarator(current, container))
                or (kind in grammar.call_kinds and self._handle_call(current, container))
            ):
                if container.kind is ContainerKind.FUNCTION:
                    stack.extend(reversed(self._lambda_bodies(current)))
                continue
            if kind in grammar.class_kinds:
                self._enter_class(current, container)
                continue
            if kind in grammar.function_kinds:
                self._enter_function(current, container)
                continue
            stack.extend(reversed(current.named_children))

    def _enter_class(self, node, parent: Container) -> None:
        name = self._declared_name(node)
        if name is None:
            logger.debug("skipping unnamed %s at %s", node.type, node.start_point)
            return
        line, column = start_position(node)
        container = Container(kind=ContainerKind.CLASS, name=name, parent=parent, line=line, column=column)
        body = node.child_by_field_name(self.grammar.body_field)
        if body is not None:
            self.walk_class(body, container)
        parent.containers.append(container)

    def _enter_function(self, node, parent: Container) -> None:
        name = self._declared_name(node)
        if name is None:
            logger.debug("skipping unnamed %s at %s", node.type, node.start_point)
            return
        line, column = start_position(node)
        container = Container(kind=ContainerKind.FUNCTION, name=name, parent=parent, line=line, column=column)
        self.walk_method(node, container)
        parent.containers.append(container)

    def _handle_assignment(self, node, container: Container) -> bool:
        left = node.child_by_field_name(self.grammar.left_field)
        if left is None or left.type not in self.grammar.identifier_kinds:
            return False
        self._bind(left, node.child_by_field_name(self.grammar.right_field), container, declares=False)
        return True

    def _handle_declarator(self, node, container: Container) -> bool:
        name = node.child_by_field_name(self.grammar.name_field)
        if name is None or name.type not in self.grammar.identifier_kinds:
            return False
        self._bind(name, node.child_by_field_name(self.grammar.value_field), container, declares=True)
        return True

    def _handle_call(self, node, container: Container) -> bool:
        grammar = self.grammar
        receiver = call_receiver(node, grammar)
        if receiver is None or receiver.type not in grammar.identifier_kinds:
            return False
        receiver_name = self._text(receiver)
        arguments = node.child_by_field_name(grammar.arguments_field)
        for identifier in collect_nodes_of_kind(arguments, grammar.identifier_kinds):
            add_flow(self._text(identifier), receiver_name, container, self.options.scope_policy)
        return True

    def _lambda_bodies(self, node) -> list:
        """Bodies of the outermost lambdas below ``node``; they share the method's scope."""

        grammar = self.grammar
        bodies = []
        stack = list(reversed(node.named_children))
        while stack:
            current = stack.pop()
            if current.type in grammar.lambda_kinds:
                body = current.child_by_field_name(grammar.body_field)
                if body is not None:
                    bodies.append(body)
            elif current.type not in grammar.class_kinds | grammar.method_kinds | grammar.function_kinds:
                stack.extend(reversed(current.named_children))
        return bodies

    def _bind(self, target, value, container: Container, declares: bool) -> None:
        policy = self.options.scope_policy
        target_name = self._text(target)
        # under LEXICAL an assignment writes to the visible binding; a declaration shadows it
        if declares or container.resolve(target_name, policy) is None:
            container.register(target_name, NodeKind.VARIABLE, target)
        if value is None:
            return
        for read in extract_read_identifiers(value, self.grammar, self.options.receiver_reads):
            add_flow(self._text(read), target_name, container, policy)

    def _parameter_identifier(self, node):
        grammar = self.grammar
        if node.type in grammar.identifier_kinds:
            return node
        for field_name in grammar.parameter_name_fields:
            target = node.child_by_field_name(field_name)
            if target is not None:
                return self._parameter_identifier(target)
        for child in node.named_children:
            if child.type in grammar.declarator_kinds:
                return self._parameter_identifier(child)
            if child.type in grammar.identifier_kinds:
                return child
        return None

    def _declared_name(self, node) -> str | None:
        name = node.child_by_field_name(self.grammar.name_field)
        if name is None:
            return None
        return self._text(name) or None

    def _text(self, node) -> str:
        return node_text(node, self.source)


def build_graph(
    tree,
    source: bytes,
    grammar: Grammar,
    options: WalkOptions | None = None,
    path: Path | None = None,
) -> DataFlow:
    """Walk ``tree`` and return the container forest for the file."""

    root = getattr(tree, "root_node", tree)
    file_container = Container(kind=ContainerKind.FILE, name=path.name if path else None)
    GraphWalker(source, grammar, options).walk_root(root, file_container)
    return DataFlow(language=grammar.name, path=path, containers=[file_container])
