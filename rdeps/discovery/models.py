"""Data models for dependency discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SourceFormat(Enum):
    """Analyzable source formats, keyed by lower-case file extension."""

    PLAIN = "r"
    MARKDOWN = "rmd"
    WEAVE = "rnw"
    SLIDES = "rpres"


class ProjectType(Enum):
    LIBRARY = "library"
    APPLICATION = "application"


@dataclass
class SourceArtifact:
    """One discoverable source file under a project root."""

    path: Path
    format: SourceFormat


@dataclass
class DiscoveryResult:
    """Outcome of a full discovery run on one project."""

    project_path: str
    project_type: ProjectType
    direct: list[str] = field(default_factory=list)  # sorted, ignore list applied
    packages: list[str] = field(default_factory=list)  # sorted final output
    implicit: list[str] = field(default_factory=list)  # added by policy, sorted
