"""Shared helper functions for walking tree-sitter syntax trees."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Iterator, List


def node_text(node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def source_slice(node, source: bytes) -> str:
    """Return the exact source text covered by ``node``."""

    if node is None:
        return ""
    return node_text(node, source)


def contains_identifier(node, name: str, source: bytes, identifier_kinds: Iterable[str] = ("identifier",)) -> bool:
    """Return True if any identifier in the subtree of ``node`` reads ``name``."""

    if node is None:
        return False
    kinds = _as_kinds(identifier_kinds)
    for current in walk(node):
        if current.type in kinds and node_text(current, source) == name:
            return True
    return False


def collect_nodes_of_kind(node, kinds: str | Iterable[str]) -> List:
    """Pre-order list of nodes in the subtree of ``node`` whose type is in ``kinds``."""

    if node is None:
        return []
    wanted = _as_kinds(kinds)
    return [current for current in walk(node) if current.type in wanted]


def walk(node) -> Iterator:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def start_position(node) -> tuple[int, int]:
    line, column = node.start_point
    return line + 1, column + 1


def iter_source_files(
    root: Path,
    extensions: Iterable[str],
    ignore: Iterable[str] | None = None,
) -> List[Path]:
    extensions = {ext.lower() for ext in extensions}
    patterns = list(ignore or [])
    candidates: List[Path] = []
    for path in root.rglob("*"):
        if not path.is_file() or path.is_symlink():
            continue
        if path.suffix.lower() not in extensions:
            continue
        relative = path.relative_to(root).as_posix()
        if any(_ignored(relative, pattern) for pattern in patterns):
            continue
        candidates.append(path)
    return sorted(candidates)


def _ignored(relative: str, pattern: str) -> bool:
    if fnmatch(relative, pattern):
        return True
    # a bare directory name excludes everything below it
    return pattern in relative.split("/")[:-1]


def _as_kinds(kinds: str | Iterable[str]) -> frozenset[str]:
    if isinstance(kinds, str):
        return frozenset({kinds})
    return frozenset(kinds)
