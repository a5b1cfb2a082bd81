from __future__ import annotations

import json
from pathlib import Path
import tempfile
import unittest

from flowscan.config import DEFAULT_CONFIG, load_config
from flowscan.entry_points import DEFAULT_ENTRY_POINTS
from flowscan.model import ScopePolicy


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.project_root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write(self, relative: str, data) -> Path:
        path = self.project_root / relative
        path.write_text(json.dumps(data))
        return path

    def test_uses_defaults_when_no_files_present(self) -> None:
        config = load_config(self.project_root)
        self.assertEqual(config.project_root, self.project_root.resolve())
        self.assertIs(config.scope_policy, ScopePolicy.ISOLATED)
        self.assertFalse(config.receiver_reads)
        self.assertFalse(config.strict_parse)
        self.assertEqual(config.max_files, DEFAULT_CONFIG["max_files"])
        self.assertEqual(config.ignore, [])
        self.assertEqual(config.entry_points, list(DEFAULT_ENTRY_POINTS))

    def test_merges_default_file(self) -> None:
        self._write(
            ".flowscanrc.json",
            {"scope_policy": "lexical", "ignore": ["build"]},
        )
        config = load_config(self.project_root)
        self.assertIs(config.scope_policy, ScopePolicy.LEXICAL)
        self.assertEqual(config.ignore, ["build"])
        self.assertIs(config.walk_options.scope_policy, ScopePolicy.LEXICAL)

    def test_cli_overrides_take_precedence(self) -> None:
        self._write(
            ".flowscanrc.json",
            {"receiver_reads": False, "jobs": 8},
        )
        config = load_config(
            self.project_root,
            overrides={"receiver_reads": True, "jobs": 2},
        )
        self.assertTrue(config.receiver_reads)
        self.assertTrue(config.walk_options.receiver_reads)
        self.assertEqual(config.jobs, 2)

    def test_additional_config_file(self) -> None:
        self._write(".flowscanrc.json", {"ignore": ["vendor"]})
        custom = self._write(
            "custom.json",
            {
                "ignore": ["dist"],
                "entry_points": [{"language": "javascript", "methods": ["handler"]}],
            },
        )
        config = load_config(self.project_root, config_path=custom)
        self.assertEqual(config.ignore, ["dist"])
        self.assertEqual([pattern.language for pattern in config.entry_points], ["javascript"])
        self.assertEqual(config.entry_points[0].methods, frozenset({"handler"}))

    def test_relative_config_path_resolves_against_project(self) -> None:
        self._write("custom.json", {"strict_parse": True})
        config = load_config(self.project_root, config_path=Path("custom.json"))
        self.assertTrue(config.strict_parse)

    def test_missing_explicit_config_is_an_error(self) -> None:
        with self.assertRaises(ValueError):
            load_config(self.project_root, config_path=Path("absent.json"))

    def test_invalid_values_raise(self) -> None:
        with self.assertRaises(ValueError):
            load_config(self.project_root, overrides={"scope_policy": "global"})
        with self.assertRaises(ValueError):
            load_config(self.project_root, overrides={"max_files": 0})
        with self.assertRaises(ValueError):
            load_config(self.project_root, overrides={"jobs": "many"})

    def test_invalid_json_raises(self) -> None:
        (self.project_root / ".flowscanrc.json").write_text("{not json")
        with self.assertRaises(ValueError):
            load_config(self.project_root)
        self._write(".flowscanrc.json", ["not", "an", "object"])
        with self.assertRaises(ValueError):
            load_config(self.project_root)

    def test_to_dict_is_json_ready(self) -> None:
        data = load_config(self.project_root).to_dict()
        self.assertEqual(data["scope_policy"], "isolated")
        self.assertEqual(data["entry_points"], DEFAULT_CONFIG["entry_points"])
        json.dumps(data)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
