"""Scope containers and variable nodes that make up a data-flow graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


class ContainerKind(str, Enum):
    FILE = "FILE"
    CLASS = "CLASS"
    FUNCTION = "FUNCTION"


class NodeKind(str, Enum):
    PARAMETER = "PARAMETER"
    VARIABLE = "VARIABLE"


class ScopePolicy(str, Enum):
    """How a name used inside a container is resolved to a node.

    ``ISOLATED`` only consults the container's own table. ``LEXICAL`` falls
    back to the enclosing containers, innermost first.
    """

    ISOLATED = "isolated"
    LEXICAL = "lexical"

    @classmethod
    def parse(cls, value: "str | ScopePolicy") -> "ScopePolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(policy.value for policy in cls)
            raise ValueError(f"Unknown scope policy {value!r} (expected one of: {choices})") from None


@dataclass(eq=False, slots=True)
class Node:
    """A parameter or variable binding and the bindings it exchanges data with."""

    name: str
    kind: NodeKind
    line: int = 0
    column: int = 0
    inbound: List["Node"] = field(default_factory=list)
    outbound: List["Node"] = field(default_factory=list)
    ast_node: object = field(default=None, repr=False)

    def __repr__(self) -> str:
        return f"Node(name={self.name!r}, kind={self.kind.value})"

    @property
    def inbound_names(self) -> List[str]:
        return [other.name for other in self.inbound]

    @property
    def outbound_names(self) -> List[str]:
        return [other.name for other in self.outbound]


@dataclass(eq=False, slots=True)
class Container:
    """A lexical scope: a file, a class or a function."""

    kind: ContainerKind
    name: Optional[str] = None
    containers: List["Container"] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    nodes_by_name: Dict[str, Node] = field(default_factory=dict)
    parent: Optional["Container"] = field(default=None, repr=False)
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return f"Container(kind={self.kind.value}, name={self.name!r})"

    def register(self, name: str, kind: NodeKind, ast_node=None) -> Node:
        """Return the node bound to ``name`` here, creating it on first sight."""

        existing = self.nodes_by_name.get(name)
        if existing is not None:
            return existing
        line = column = 0
        if ast_node is not None:
            row, col = ast_node.start_point
            line, column = row + 1, col + 1
        node = Node(name=name, kind=kind, line=line, column=column, ast_node=ast_node)
        self.nodes.append(node)
        self.nodes_by_name[name] = node
        return node

    def get(self, name: str) -> Optional[Node]:
        return self.nodes_by_name.get(name)

    def resolve(self, name: str, policy: ScopePolicy = ScopePolicy.ISOLATED) -> Optional[Node]:
        scope: Optional[Container] = self
        while scope is not None:
            node = scope.nodes_by_name.get(name)
            if node is not None or policy is ScopePolicy.ISOLATED:
                return node
            scope = scope.parent
        return None

    def children_named(self, name: str) -> Iterator["Container"]:
        # overloaded methods share a name
        return (container for container in self.containers if container.name == name)


def add_flow(
    source_name: str,
    dest_name: str,
    container: Container,
    policy: ScopePolicy = ScopePolicy.ISOLATED,
) -> bool:
    """Record that data flows from ``source_name`` into ``dest_name``.

    Silently does nothing when the names are equal or either one cannot be
    resolved from ``container``. Returns True when a new edge was inserted.
    """

    if source_name == dest_name:
        return False
    source = container.resolve(source_name, policy)
    dest = container.resolve(dest_name, policy)
    if source is None or dest is None or source is dest:
        return False
    if dest in source.outbound:
        return False
    source.outbound.append(dest)
    dest.inbound.append(source)
    return True


@dataclass(slots=True)
class DataFlow:
    """The container forest built for one source file."""

    language: str
    path: Path | None = None
    containers: List[Container] = field(default_factory=list)

    def iter_containers(self) -> Iterator[Tuple[Tuple[str, ...], Container]]:
        """Yield every container below the roots with its name path."""

        stack: List[Tuple[Tuple[str, ...], Container]] = [((), root) for root in reversed(self.containers)]
        while stack:
            prefix, container = stack.pop()
            yield prefix, container
            for child in reversed(container.containers):
                stack.append((prefix + (child.name or "",), child))

    def iter_nodes(self) -> Iterator[Tuple[Tuple[str, ...], Node]]:
        for prefix, container in self.iter_containers():
            for node in container.nodes:
                yield prefix, node

    def containers_at(self, path: Sequence[str]) -> Iterator[Container]:
        """Yield every container reached by ``path``, in source order."""

        stack: List[Tuple[int, Container]] = [(0, root) for root in reversed(self.containers)]
        while stack:
            depth, container = stack.pop()
            if depth == len(path):
                yield container
                continue
            matches = list(container.children_named(path[depth]))
            stack.extend((depth + 1, child) for child in reversed(matches))

    def find_container(self, path: Sequence[str]) -> Optional[Container]:
        """Return the first container at ``path`` (names below the file container)."""

        return next(self.containers_at(path), None)

    def lookup(
        self,
        path: Sequence[str],
        name: str,
        position: Optional[Tuple[int, int]] = None,
    ) -> Optional[Node]:
        """Return ``name`` from the first container at ``path`` that declares it.

        ``position`` is the 1-based (line, column) where the container's
        declaration starts; it picks one overload among same-named siblings.
        """

        for container in self.containers_at(path):
            if position is not None and (container.line, container.column) != tuple(position):
                continue
            node = container.get(name)
            if node is not None:
                return node
        return None
