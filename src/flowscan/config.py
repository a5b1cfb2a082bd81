"""Configuration loading helpers for the analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .entry_points import DEFAULT_ENTRY_POINTS, EntryPointPattern
from .model import ScopePolicy
from .walker import WalkOptions


CONFIG_FILENAME = ".flowscanrc.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "scope_policy": ScopePolicy.ISOLATED.value,
    "receiver_reads": False,
    "strict_parse": False,
    "max_files": 400,
    "jobs": 4,
    "ignore": [],
    "entry_points": [pattern.to_dict() for pattern in DEFAULT_ENTRY_POINTS],
}


@dataclass(slots=True)
class FlowscanConfig:
    """Represents the flattened analyzer configuration."""

    project_root: Path
    scope_policy: ScopePolicy = ScopePolicy.ISOLATED
    receiver_reads: bool = False
    strict_parse: bool = False
    max_files: int = 400
    jobs: int = 4
    ignore: list[str] = field(default_factory=list)
    entry_points: List[EntryPointPattern] = field(default_factory=lambda: list(DEFAULT_ENTRY_POINTS))

    @property
    def walk_options(self) -> WalkOptions:
        return WalkOptions(scope_policy=self.scope_policy, receiver_reads=self.receiver_reads)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_root": str(self.project_root),
            "scope_policy": self.scope_policy.value,
            "receiver_reads": self.receiver_reads,
            "strict_parse": self.strict_parse,
            "max_files": self.max_files,
            "jobs": self.jobs,
            "ignore": list(self.ignore),
            "entry_points": [pattern.to_dict() for pattern in self.entry_points],
        }


def _merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = {**base}
    for key, value in updates.items():
        if (
            isinstance(value, dict)
            and isinstance(merged.get(key), dict)
        ):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_json_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data


def _config_sources(project_root: Path, user_config: Path | None) -> Iterable[Path]:
    default_file = project_root / CONFIG_FILENAME
    if default_file.exists():
        yield default_file
    if user_config is not None:
        user_file = user_config
        if not user_file.is_absolute():
            user_file = project_root / user_file
        if not user_file.exists():
            raise ValueError(f"Config file not found: {user_file}")
        yield user_file


def _positive_int(value: Any, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {value!r}") from None
    if number < 1:
        raise ValueError(f"{key} must be at least 1, got {number}")
    return number


def load_config(
    project_root: Path,
    config_path: Path | None = None,
    overrides: Dict[str, Any] | None = None,
) -> FlowscanConfig:
    """Load configuration from defaults, files, and CLI overrides."""

    root = project_root.expanduser().resolve()
    config_data: Dict[str, Any] = {**DEFAULT_CONFIG}
    for path in _config_sources(root, config_path):
        config_data = _merge(config_data, _read_json_file(path))
    if overrides:
        config_data = _merge(config_data, overrides)
    return FlowscanConfig(
        project_root=root,
        scope_policy=ScopePolicy.parse(config_data.get("scope_policy", DEFAULT_CONFIG["scope_policy"])),
        receiver_reads=bool(config_data.get("receiver_reads", False)),
        strict_parse=bool(config_data.get("strict_parse", False)),
        max_files=_positive_int(config_data.get("max_files", DEFAULT_CONFIG["max_files"]), "max_files"),
        jobs=_positive_int(config_data.get("jobs", DEFAULT_CONFIG["jobs"]), "jobs"),
        ignore=list(config_data.get("ignore", [])),
        entry_points=[EntryPointPattern.from_dict(item) for item in config_data.get("entry_points", [])],
    )
