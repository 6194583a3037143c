"""Extractor registry: discover R source files and match them to extractors."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from rdeps.discovery.models import SourceArtifact, SourceFormat
from rdeps.discovery.render import LiterateRenderer


@runtime_checkable
class SourceExtractor(Protocol):
    """Interface that every source extractor must satisfy."""

    formats: tuple[SourceFormat, ...]

    def extract(self, path: Path, renderer: LiterateRenderer | None) -> set[str]: ...


EXTRACTOR_REGISTRY: dict[SourceFormat, SourceExtractor] = {}


def register_extractor(extractor: SourceExtractor) -> None:
    """Register an extractor instance for each format it handles."""
    for fmt in extractor.formats:
        EXTRACTOR_REGISTRY[fmt] = extractor


def format_for_path(path: Path | str) -> SourceFormat | None:
    """``analysis.Rmd`` -> ``SourceFormat.MARKDOWN``; unknown extensions give None."""
    name = Path(path).name.lower()
    if "." not in name:
        return None
    suffix = name.rsplit(".", 1)[1]
    try:
        return SourceFormat(suffix)
    except ValueError:
        return None


def discover_sources(project: Path, reserved_dir: str = "packrat") -> list[SourceArtifact]:
    """Walk *project* for analyzable sources, skipping ``<project>/<reserved_dir>``.

    Results are sorted by path relative to the project root so that the
    scan order never depends on the file system.
    """
    found: list[tuple[str, SourceArtifact]] = []
    for dirpath, dirnames, filenames in os.walk(project):
        current = Path(dirpath)
        if current == project and reserved_dir in dirnames:
            dirnames.remove(reserved_dir)
        for filename in filenames:
            fmt = format_for_path(filename)
            if fmt is None:
                continue
            path = current / filename
            if not path.is_file():
                continue
            rel = path.relative_to(project).as_posix()
            found.append((rel, SourceArtifact(path=path, format=fmt)))
    found.sort(key=lambda item: item[0])
    return [artifact for _, artifact in found]
