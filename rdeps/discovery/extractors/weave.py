"""Extractor for Sweave / knitr noweb documents (``.Rnw``)."""

from __future__ import annotations

import tempfile
from pathlib import Path

import structlog

from rdeps.discovery.extractors.markdown import markdown_dependencies
from rdeps.discovery.extractors.plain import code_dependencies
from rdeps.discovery.models import SourceFormat
from rdeps.discovery.registry import register_extractor
from rdeps.discovery.render import LiterateRenderer
from rdeps.exceptions import RenderError

log = structlog.get_logger("rdeps.engine")


class WeaveExtractor:
    """Stangle the document; if that fails, treat it as R Markdown."""

    formats = (SourceFormat.WEAVE,)

    def extract(self, path: Path, renderer: LiterateRenderer | None) -> set[str]:
        if renderer is not None:
            with tempfile.TemporaryDirectory(prefix="rdeps-stangle-") as tmpdir:
                output = Path(tmpdir) / f"{path.stem}.R"
                try:
                    renderer.stangle(path, output)
                    code = output.read_text(encoding="utf-8", errors="replace")
                except (RenderError, OSError) as exc:
                    log.debug("extract.stangle_failed", path=str(path), error=str(exc))
                else:
                    return code_dependencies(code, path)
        return markdown_dependencies(path, renderer)


register_extractor(WeaveExtractor())
