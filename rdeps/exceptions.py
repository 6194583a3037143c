"""Custom exceptions for rdeps."""

from __future__ import annotations

from pathlib import Path


class RdepsError(Exception):
    """Base exception for all rdeps errors."""


class RParseError(RdepsError):
    """Raised when R source cannot be parsed."""

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class UnsupportedFormatError(RdepsError):
    """Raised when a single-file extraction is requested for an unknown extension."""

    def __init__(self, path: Path | str):
        self.path = str(path)
        super().__init__(f"Unrecognized file type '{self.path}'")


class ManifestError(RdepsError):
    """Raised when a DCF manifest is malformed."""


class ManifestNotFoundError(RdepsError):
    """Raised when a required DESCRIPTION file does not exist."""

    def __init__(self, path: Path | str):
        self.path = str(path)
        super().__init__(f"No DESCRIPTION file at path '{self.path}'")


class FrontMatterError(RdepsError):
    """Raised when a document's YAML header cannot be parsed."""


class RenderError(RdepsError):
    """Raised when a literate document cannot be tangled into plain R code."""


class ProjectNotFoundError(RdepsError):
    """Raised when the project directory does not exist."""

    def __init__(self, path: Path | str):
        self.path = str(path)
        super().__init__(f"Project path not found: {self.path}")
