"""Command-line entry points for the analyzer."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Any, Dict

from .analysis import analyze_file, analyze_project
from .config import load_config
from .errors import FlowscanError
from .model import ScopePolicy
from .reporters import render_json, render_text, report_for_file, report_for_project

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_MATCHES = 1
EXIT_INPUT_ERROR = 2


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        help="Path to configuration file (.flowscanrc.json by default)",
    )
    common.add_argument(
        "--scope-policy",
        choices=[policy.value for policy in ScopePolicy],
        help="Name resolution: only the current scope, or enclosing scopes too",
    )
    common.add_argument(
        "--receiver-reads",
        action="store_true",
        help="Count an identifier receiver as read by the call (obj in obj.m(x))",
    )
    common.add_argument(
        "--strict",
        action="store_true",
        help="Treat files with syntax errors as unparseable",
    )
    common.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text)",
    )
    common.add_argument(
        "--output",
        help="Write the report to this file instead of stdout",
    )
    return common


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowscan",
        description="Flow-insensitive data-flow graphs for taint analysis seeding",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")
    common = _common_options()

    graph_parser = subparsers.add_parser("graph", parents=[common], help="Print the data-flow graph of a file")
    graph_parser.add_argument("file", help="Source file to analyse")

    sources_parser = subparsers.add_parser(
        "sources",
        parents=[common],
        help="List taint-source entry points in a file (exit 1 when none)",
    )
    sources_parser.add_argument("file", help="Source file to analyse")

    scan_parser = subparsers.add_parser("scan", parents=[common], help="Analyse every supported file of a project")
    scan_parser.add_argument(
        "--project",
        default=".",
        help="Project root to scan (defaults to cwd)",
    )
    scan_parser.add_argument("--jobs", type=int, help="Number of files analysed in parallel")
    scan_parser.add_argument("--max-files", type=int, help="Stop after this many files")
    return parser


def _config_overrides(ns: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if ns.scope_policy:
        overrides["scope_policy"] = ns.scope_policy
    if ns.receiver_reads:
        overrides["receiver_reads"] = True
    if ns.strict:
        overrides["strict_parse"] = True
    if getattr(ns, "jobs", None) is not None:
        overrides["jobs"] = ns.jobs
    if getattr(ns, "max_files", None) is not None:
        overrides["max_files"] = ns.max_files
    return overrides


def _load(ns: argparse.Namespace, project_root: Path, config_from_cwd: bool = False):
    config_path = Path(ns.config) if ns.config else None
    # single-file commands read --config relative to the working directory
    if config_path is not None and config_from_cwd:
        config_path = config_path.resolve()
    return load_config(
        project_root=project_root,
        config_path=config_path,
        overrides=_config_overrides(ns) or None,
    )


def _emit(report: Dict[str, object], ns: argparse.Namespace) -> None:
    content = render_json(report) if ns.format == "json" else render_text(report)
    if ns.output:
        path = Path(ns.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content + "\n")
        logger.info("report written to %s", path)
    else:
        print(content)


def _handle_graph(ns: argparse.Namespace) -> int:
    path = Path(ns.file)
    config = _load(ns, path.parent, config_from_cwd=True)
    analysis = analyze_file(path, config)
    _emit(report_for_file(analysis, include_entry_points=False), ns)
    return EXIT_OK


def _handle_sources(ns: argparse.Namespace) -> int:
    path = Path(ns.file)
    config = _load(ns, path.parent, config_from_cwd=True)
    analysis = analyze_file(path, config)
    _emit(report_for_file(analysis, include_graph=False), ns)
    if not analysis.entry_points:
        print("no entry points found", file=sys.stderr)
        return EXIT_NO_MATCHES
    return EXIT_OK


def _handle_scan(ns: argparse.Namespace) -> int:
    project_root = Path(ns.project)
    if not project_root.is_dir():
        raise FlowscanError(project_root, "not a directory")
    config = _load(ns, project_root)
    project = analyze_project(project_root, config)
    _emit(report_for_project(project, config), ns)
    return EXIT_OK


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1
    _configure_logging(args.verbose)
    handlers = {
        "graph": _handle_graph,
        "sources": _handle_sources,
        "scan": _handle_scan,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.error(f"Unknown command: {args.command}")
        return 1
    try:
        return handler(args)
    except (FlowscanError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
