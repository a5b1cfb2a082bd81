"""Report builders and renderers for the CLI output."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Dict, List

from .model import Container, DataFlow, Node

if TYPE_CHECKING:
    from .analysis import FileAnalysis, ProjectAnalysis
    from .config import FlowscanConfig

PRINT_INDENTATION = 3


def node_to_dict(node: Node) -> Dict[str, object]:
    return {
        "name": node.name,
        "kind": node.kind.value,
        "line": node.line,
        "column": node.column,
        "inbound": node.inbound_names,
        "outbound": node.outbound_names,
    }


def container_to_dict(container: Container) -> Dict[str, object]:
    return {
        "name": container.name,
        "kind": container.kind.value,
        "containers": [container_to_dict(child) for child in container.containers],
        "nodes": [node_to_dict(node) for node in container.nodes],
    }


def graph_to_dict(graph: DataFlow) -> Dict[str, object]:
    return {
        "path": str(graph.path) if graph.path is not None else None,
        "language": graph.language,
        "containers": [container_to_dict(container) for container in graph.containers],
    }


def report_for_file(
    analysis: "FileAnalysis",
    include_graph: bool = True,
    include_entry_points: bool = True,
) -> Dict[str, object]:
    report: Dict[str, object] = {}
    if include_graph:
        report["graphs"] = [graph_to_dict(analysis.graph)]
    if include_entry_points:
        report["entryPoints"] = [entry.to_dict() for entry in analysis.entry_points]
    return report


def report_for_project(project: "ProjectAnalysis", config: "FlowscanConfig") -> Dict[str, object]:
    return {
        "projectRoot": str(project.root),
        "config": config.to_dict(),
        "graphs": [graph_to_dict(analysis.graph) for analysis in project.files],
        "entryPoints": [entry.to_dict() for entry in project.entry_points],
        "errors": [error.to_dict() for error in project.errors],
        "truncated": project.truncated,
    }


def render_json(report: Dict[str, object]) -> str:
    return json.dumps(report, indent=2)


def _container_lines(container: Dict[str, object], indent: int, lines: List[str]) -> None:
    pad = " " * indent
    lines.append(f"{pad}[container] name={container.get('name') or '<no name>'} kind={container['kind']}")
    for child in container.get("containers", []):
        _container_lines(child, indent + PRINT_INDENTATION, lines)
    node_pad = " " * (indent + PRINT_INDENTATION)
    edge_pad = " " * (indent + 2 * PRINT_INDENTATION)
    for node in container.get("nodes", []):
        lines.append(f"{node_pad}[node] name={node['name']} kind={node['kind']}")
        for name in node.get("inbound", []):
            lines.append(f"{edge_pad}<- name={name}")
        for name in node.get("outbound", []):
            lines.append(f"{edge_pad}-> name={name}")


def render_graph(graph: Dict[str, object]) -> str:
    """Indented dump of one graph dictionary (see ``graph_to_dict``)."""

    lines: List[str] = []
    for container in graph.get("containers", []):
        _container_lines(container, 0, lines)
    return "\n".join(lines)


def _entry_point_line(entry: Dict[str, object]) -> str:
    scope = ".".join(entry.get("containerPath") or [])
    method = f"{scope}.{entry['method']}" if scope else str(entry["method"])
    parameter = " ".join(
        part for part in (entry.get("parameterType"), entry.get("parameter")) if part
    )
    location = f"{entry.get('path') or '<source>'}:{entry['line']}:{entry['column']}"
    return f"  {location} {method}({parameter})"


def render_text(report: Dict[str, object]) -> str:
    sections: List[str] = []
    if report.get("projectRoot"):
        sections.append(f"Project: {report['projectRoot']}")
    for graph in report.get("graphs", []):
        sections.append(f"== {graph.get('path') or '<source>'} ({graph.get('language')})")
        body = render_graph(graph)
        if body:
            sections.append(body)
    if "entryPoints" in report:
        entry_points = report["entryPoints"]
        sections.append(f"Found {len(entry_points)} entry point(s)")
        sections.extend(_entry_point_line(entry) for entry in entry_points)
    errors = report.get("errors") or []
    if errors:
        sections.append(f"Skipped {len(errors)} file(s):")
        sections.extend(f"  {item['path']}: {item['error']}" for item in errors)
    if report.get("truncated"):
        sections.append(f"Not analysed (max_files reached): {report['truncated']} file(s)")
    return "\n".join(sections)
