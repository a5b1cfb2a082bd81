"""Errors raised at the file boundary of the analyzer."""

from __future__ import annotations

from pathlib import Path


class FlowscanError(Exception):
    """Base class for failures that prevent analysing one input file."""

    def __init__(self, path: Path | None, message: str) -> None:
        self.path = path
        self.message = message
        location = str(path) if path is not None else "<source>"
        super().__init__(f"{location}: {message}")


class SourceReadError(FlowscanError):
    pass


class SourceParseError(FlowscanError):
    pass


class UnsupportedLanguageError(FlowscanError):
    pass
