"""Extractor for R Markdown (``.Rmd``) and R Presentation (``.Rpres``) documents.

A document always needs the rendering engine itself. Its YAML header may
add more (``runtime: shiny``, an ``rticles::`` output format, parameters
whose defaults are R expressions), and its ``{r}`` chunks are tangled to
plain R and scanned like any script.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import structlog

from rdeps.discovery.extractors.plain import code_dependencies
from rdeps.discovery.frontmatter import (
    SHINY_PACKAGE,
    header_dependencies,
    report_parameters,
    split_front_matter,
)
from rdeps.discovery.models import SourceFormat
from rdeps.discovery.registry import register_extractor
from rdeps.discovery.render import LiterateRenderer
from rdeps.discovery.walker import source_dependencies
from rdeps.exceptions import FrontMatterError, RenderError, RParseError

log = structlog.get_logger("rdeps.engine")

RENDER_ENGINE_PACKAGE = "rmarkdown"


def front_matter_dependencies(yaml_text: str, path: Path) -> set[str]:
    deps = header_dependencies(yaml_text)
    try:
        params = report_parameters(yaml_text)
    except FrontMatterError as exc:
        log.warning("extract.front_matter_invalid", path=str(path), error=str(exc))
        return deps

    # rendering a parameterized report can bring up a shiny parameter UI
    if params:
        deps.add(SHINY_PACKAGE)
    for param in params:
        if param.expr is None:
            continue
        try:
            deps |= source_dependencies(param.expr)
        except RParseError as exc:
            log.warning(
                "extract.param_parse_failed", path=str(path), param=param.name, error=str(exc)
            )
    return deps


def markdown_dependencies(path: Path, renderer: LiterateRenderer | None) -> set[str]:
    deps = {RENDER_ENGINE_PACKAGE}
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        log.warning("extract.unreadable", path=str(path), error=str(exc))
        return deps

    yaml_text, body = split_front_matter(text.splitlines())
    if yaml_text is not None:
        deps |= front_matter_dependencies(yaml_text, path)
    # nothing but a header (or nothing at all): no code to tangle
    if not "".join(body).strip():
        return deps

    if renderer is None:
        log.warning(
            "extract.renderer_unavailable",
            path=str(path),
            hint="only header dependencies were collected",
        )
        return deps

    with tempfile.TemporaryDirectory(prefix="rdeps-tangle-") as tmpdir:
        output = Path(tmpdir) / f"{path.stem}.R"
        try:
            renderer.tangle(path, output)
            code = output.read_text(encoding="utf-8", errors="replace")
        except (RenderError, OSError) as exc:
            log.warning("extract.tangle_failed", path=str(path), error=str(exc))
            return deps
    return deps | code_dependencies(code, path)


class MarkdownExtractor:
    formats = (SourceFormat.MARKDOWN, SourceFormat.SLIDES)

    def extract(self, path: Path, renderer: LiterateRenderer | None) -> set[str]:
        return markdown_dependencies(path, renderer)


register_extractor(MarkdownExtractor())
