from __future__ import annotations

from pathlib import Path
import json
import unittest

from flowscan.analysis import FileError, ProjectAnalysis, analyze_source
from flowscan.config import load_config
from flowscan.entry_points import DEFAULT_ENTRY_POINTS
from flowscan.grammars import JAVA
from flowscan.reporters import (
    graph_to_dict,
    render_graph,
    render_json,
    render_text,
    report_for_file,
    report_for_project,
)

SOURCE = b"""class Servlet {
    void doGet(HttpServletRequest req) {
        String a = req.getHeader("x");
        String b = a;
    }
}
"""


class GraphDumpTests(unittest.TestCase):
    def setUp(self) -> None:
        self.analysis = analyze_source(
            SOURCE, JAVA, options=None, patterns=DEFAULT_ENTRY_POINTS, path=Path("web/Servlet.java")
        )

    def test_graph_dict_shape(self) -> None:
        data = graph_to_dict(self.analysis.graph)
        self.assertEqual(data["path"], str(Path("web/Servlet.java")))
        self.assertEqual(data["language"], "java")
        (file_container,) = data["containers"]
        self.assertEqual(file_container["name"], "Servlet.java")
        self.assertEqual(file_container["nodes"], [])
        method = file_container["containers"][0]["containers"][0]
        self.assertEqual(
            method["nodes"][1],
            {"name": "a", "kind": "VARIABLE", "line": 3, "column": 16, "inbound": [], "outbound": ["b"]},
        )

    def test_render_graph_lines(self) -> None:
        self.assertEqual(
            render_graph(graph_to_dict(self.analysis.graph)).splitlines(),
            [
                "[container] name=Servlet.java kind=FILE",
                "   [container] name=Servlet kind=CLASS",
                "      [container] name=doGet kind=FUNCTION",
                "         [node] name=req kind=PARAMETER",
                "         [node] name=a kind=VARIABLE",
                "            -> name=b",
                "         [node] name=b kind=VARIABLE",
                "            <- name=a",
            ],
        )

    def test_unnamed_file_container(self) -> None:
        analysis = analyze_source(b"class A {}", JAVA)
        self.assertEqual(
            render_graph(graph_to_dict(analysis.graph)).splitlines(),
            ["[container] name=<no name> kind=FILE", "   [container] name=A kind=CLASS"],
        )

    def test_file_report_sections(self) -> None:
        report = report_for_file(self.analysis)
        self.assertEqual(sorted(report), ["entryPoints", "graphs"])
        text = render_text(report)
        self.assertTrue(text.startswith(f"== {Path('web/Servlet.java')} (java)"))
        self.assertIn("Found 1 entry point(s)", text)
        self.assertIn(f"  {Path('web/Servlet.java')}:2:5 Servlet.doGet(HttpServletRequest req)", text)
        self.assertNotIn("entryPoints", report_for_file(self.analysis, include_entry_points=False))
        self.assertNotIn("graphs", report_for_file(self.analysis, include_graph=False))

    def test_json_round_trips(self) -> None:
        report = report_for_file(self.analysis)
        self.assertEqual(json.loads(render_json(report)), report)


class ProjectReportTests(unittest.TestCase):
    def test_project_report_lists_errors_and_truncation(self) -> None:
        config = load_config(Path("."))
        analysis = analyze_source(SOURCE, JAVA, patterns=DEFAULT_ENTRY_POINTS, path=Path("/p/Servlet.java"))
        project = ProjectAnalysis(
            root=Path("/p"),
            files=[analysis],
            errors=[FileError(path=Path("/p/Bad.java"), message="source contains syntax errors")],
            truncated=3,
        )
        report = report_for_project(project, config)
        self.assertEqual(report["projectRoot"], str(Path("/p")))
        self.assertEqual(len(report["graphs"]), 1)
        self.assertEqual(report["entryPoints"][0]["method"], "doGet")
        self.assertEqual(report["errors"], [{"path": str(Path("/p/Bad.java")), "error": "source contains syntax errors"}])
        lines = render_text(report).splitlines()
        self.assertEqual(lines[0], f"Project: {Path('/p')}")
        self.assertIn("Skipped 1 file(s):", lines)
        self.assertIn(f"  {Path('/p/Bad.java')}: source contains syntax errors", lines)
        self.assertEqual(lines[-1], "Not analysed (max_files reached): 3 file(s)")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
