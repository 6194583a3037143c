"""Extractor for plain R scripts (``.R``)."""

from __future__ import annotations

from pathlib import Path

import structlog

from rdeps.discovery.models import SourceFormat
from rdeps.discovery.registry import register_extractor
from rdeps.discovery.render import LiterateRenderer
from rdeps.discovery.walker import source_dependencies
from rdeps.exceptions import RParseError

log = structlog.get_logger("rdeps.engine")


def code_dependencies(text: str, path: Path) -> set[str]:
    """Packages used by R code *text* read from (or tangled out of) *path*.

    Code that does not parse contributes nothing; a warning names *path*.
    """
    try:
        return source_dependencies(text)
    except RParseError as exc:
        log.warning(
            "extract.parse_failed",
            path=str(path),
            error=str(exc),
            hint="dependencies from this file could not be determined",
        )
        return set()


def script_dependencies(path: Path) -> set[str]:
    if not path.is_file():
        log.warning("extract.file_missing", path=str(path))
        return set()
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        log.warning("extract.unreadable", path=str(path), error=str(exc))
        return set()
    return code_dependencies(text, path)


class PlainExtractor:
    formats = (SourceFormat.PLAIN,)

    def extract(self, path: Path, renderer: LiterateRenderer | None = None) -> set[str]:
        return script_dependencies(path)


register_extractor(PlainExtractor())
