"""Project classification and implicit framework detection."""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from rdeps.discovery.manifest import read_description
from rdeps.discovery.models import ProjectType

log = structlog.get_logger("rdeps.engine")

SHINY_PACKAGE = "shiny"

# Entry files that make a directory a Shiny app without any library(shiny)
_SHINY_ENTRY_PROBES: list[tuple[str, re.Pattern[str]]] = [
    ("server.R", re.compile(r"shinyServer\s*\(")),
    ("app.R", re.compile(r"shinyApp\s*\(")),
]

__all__ = ["ProjectType", "SHINY_PACKAGE", "classify_project", "is_shiny_app"]


def classify_project(path: Path | str) -> ProjectType:
    """A DESCRIPTION without ``Type``, or with ``Type: Package``, marks a library."""
    root = Path(path)
    if not (root / "DESCRIPTION").is_file():
        return ProjectType.APPLICATION
    declared = read_description(root).get("Type")
    if declared is None or declared == "Package":
        return ProjectType.LIBRARY
    return ProjectType.APPLICATION


def _file_matches(path: Path, pattern: re.Pattern[str]) -> bool:
    if not path.is_file():
        return False
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        log.warning("project.probe_unreadable", path=str(path), error=str(exc))
        return False
    return pattern.search(text) is not None


def is_shiny_app(path: Path | str) -> bool:
    root = Path(path)
    declared = read_description(root).get("Type", "")
    if declared.lower() == SHINY_PACKAGE:
        return True
    return any(_file_matches(root / name, pattern) for name, pattern in _SHINY_ENTRY_PROBES)
