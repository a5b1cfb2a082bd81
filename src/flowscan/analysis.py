"""Per-file and per-project analysis drivers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Dict, Iterable, List

from .ast_utils import iter_source_files
from .config import FlowscanConfig
from .entry_points import EntryPoint, EntryPointPattern, find_entry_points
from .errors import FlowscanError, SourceParseError, SourceReadError, UnsupportedLanguageError
from .grammars import SUPPORTED_EXTENSIONS, Grammar, grammar_for_extension, new_parser
from .model import DataFlow
from .walker import WalkOptions, build_graph

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileAnalysis:
    graph: DataFlow
    entry_points: List[EntryPoint] = field(default_factory=list)
    has_syntax_errors: bool = False

    @property
    def path(self) -> Path | None:
        return self.graph.path


@dataclass(frozen=True, slots=True)
class FileError:
    path: Path
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {"path": str(self.path), "error": self.message}


@dataclass(slots=True)
class ProjectAnalysis:
    root: Path
    files: List[FileAnalysis] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    truncated: int = 0

    @property
    def entry_points(self) -> List[EntryPoint]:
        return [entry for analysis in self.files for entry in analysis.entry_points]


def analyze_source(
    source: bytes,
    grammar: Grammar,
    options: WalkOptions | None = None,
    patterns: Iterable[EntryPointPattern] = (),
    path: Path | None = None,
    strict_parse: bool = False,
) -> FileAnalysis:
    """Parse ``source`` and build its graph and entry points."""

    tree = new_parser(grammar).parse(source)
    if tree is None:
        raise SourceParseError(path, f"{grammar.name} parser produced no tree")
    has_errors = tree.root_node.has_error
    if has_errors:
        if strict_parse:
            raise SourceParseError(path, "source contains syntax errors")
        logger.warning("%s: syntax errors, graph is best-effort", path or "<source>")
    graph = build_graph(tree, source, grammar, options, path)
    entry_points = find_entry_points(tree, source, grammar, patterns, path)
    logger.debug(
        "%s: %d containers, %d nodes, %d entry points",
        path or "<source>",
        sum(1 for _ in graph.iter_containers()),
        sum(1 for _ in graph.iter_nodes()),
        len(entry_points),
    )
    return FileAnalysis(graph=graph, entry_points=entry_points, has_syntax_errors=has_errors)


def analyze_file(path: Path, config: FlowscanConfig) -> FileAnalysis:
    grammar = grammar_for_extension(path.suffix)
    if grammar is None:
        raise UnsupportedLanguageError(path, f"no grammar for extension {path.suffix or '<none>'!r}")
    try:
        source = path.read_bytes()
    except OSError as exc:
        raise SourceReadError(path, exc.strerror or str(exc)) from exc
    return analyze_source(
        source,
        grammar,
        options=config.walk_options,
        patterns=config.entry_points,
        path=path,
        strict_parse=config.strict_parse,
    )


def analyze_project(project_root: Path, config: FlowscanConfig) -> ProjectAnalysis:
    """Analyse every supported file below ``project_root``.

    Files are walked independently, ``config.jobs`` at a time. A file that
    cannot be read or parsed is logged and recorded in ``errors``; it never
    stops the batch.
    """

    root = project_root.expanduser().resolve()
    result = ProjectAnalysis(root=root)
    paths = iter_source_files(root, SUPPORTED_EXTENSIONS, config.ignore)
    if len(paths) > config.max_files:
        result.truncated = len(paths) - config.max_files
        logger.warning("%s: analysing the first %d of %d files", root, config.max_files, len(paths))
        paths = paths[: config.max_files]
    if config.jobs <= 1 or len(paths) <= 1:
        outcomes = [_analyze_or_error(path, config) for path in paths]
    else:
        with ThreadPoolExecutor(max_workers=config.jobs) as pool:
            outcomes = list(pool.map(lambda path: _analyze_or_error(path, config), paths))
    for outcome in outcomes:
        if isinstance(outcome, FileError):
            result.errors.append(outcome)
        else:
            result.files.append(outcome)
    return result


def _analyze_or_error(path: Path, config: FlowscanConfig) -> FileAnalysis | FileError:
    try:
        return analyze_file(path, config)
    except FlowscanError as exc:
        logger.warning("skipping %s", exc)
        return FileError(path=path, message=exc.message)
