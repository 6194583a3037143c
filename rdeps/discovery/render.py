"""Literate renderers: reduce R Markdown and Sweave documents to plain R code.

Two implementations:

    ChunkRenderer: built in, pure Python; pulls code out of fenced
                   ```{r} chunks and noweb <<>>= chunks.
    KnitrRenderer: delegates to R itself (knitr::knit(tangle = TRUE) and
                   utils::Stangle) through Rscript.

Both write the tangled code to a caller-chosen output path and raise
RenderError on failure.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

import structlog

from rdeps.exceptions import RenderError

log = structlog.get_logger("rdeps.engine")

# knitr's markdown chunk delimiters (fences may sit inside blockquotes / lists)
_MD_BEGIN_RE = re.compile(r"^([\t >]*)```+\s*\{([a-zA-Z0-9_]+)(.*)\}\s*$")
_MD_END_RE = re.compile(r"^[\t >]*```+\s*$")

# noweb (Sweave / knitr .Rnw) chunk delimiters
_NOWEB_BEGIN_RE = re.compile(r"^\s*<<(.*)>>=.*$")
_NOWEB_END_RE = re.compile(r"^\s*@\s*(%+.*|)$")
_NOWEB_REF_RE = re.compile(r"^\s*<<(.*)>>\s*$")

_EXCLUDED_RE = re.compile(r"\b(eval|purl)\s*=\s*(FALSE|F)\b")


class LiterateRenderer(Protocol):
    def tangle(self, source: Path, output: Path) -> None:
        """Write the R code of a markdown-style document to *output*."""
        ...

    def stangle(self, source: Path, output: Path) -> None:
        """Write the R code of a noweb-style document to *output*."""
        ...


def _read(source: Path) -> list[str]:
    try:
        return source.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        raise RenderError(f"cannot read '{source}': {exc}") from exc


def _write(output: Path, chunks: list[list[str]]) -> None:
    text = "\n\n".join("\n".join(chunk) for chunk in chunks)
    output.write_text(text + "\n" if text else "", encoding="utf-8")


class ChunkRenderer:
    """Pure-Python tangler. Chunks marked ``eval=FALSE`` or ``purl=FALSE`` are dropped."""

    def tangle(self, source: Path, output: Path) -> None:
        chunks: list[list[str]] = []
        current: list[str] | None = None
        keep = False
        start = 0
        prefix = ""
        for lineno, line in enumerate(_read(source), start=1):
            if current is None:
                m = _MD_BEGIN_RE.match(line)
                if m:
                    current = []
                    prefix = m.group(1)
                    keep = m.group(2).lower() == "r" and not _EXCLUDED_RE.search(m.group(3))
                    start = lineno
                continue
            if _MD_END_RE.match(line):
                if keep:
                    chunks.append(current)
                current = None
                continue
            # chunks inside blockquotes or lists carry the fence's indent
            if prefix and line.startswith(prefix):
                line = line[len(prefix) :]
            current.append(line)
        if current is not None:
            raise RenderError(f"unterminated code chunk starting at line {start} in '{source}'")
        _write(output, chunks)

    def stangle(self, source: Path, output: Path) -> None:
        chunks: list[list[str]] = []
        current: list[str] | None = None
        keep = False
        for line in _read(source):
            m = _NOWEB_BEGIN_RE.match(line)
            if m:
                if current is not None and keep:
                    chunks.append(current)
                current = []
                keep = not _EXCLUDED_RE.search(m.group(1))
                continue
            if current is None:
                continue
            if _NOWEB_END_RE.match(line):
                if keep:
                    chunks.append(current)
                current = None
                continue
            if not _NOWEB_REF_RE.match(line):
                current.append(line)
        # Sweave lets the last chunk run to end of file
        if current is not None and keep:
            chunks.append(current)
        _write(output, chunks)


def _r_string(value: Path | str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class KnitrRenderer:
    """Tangle through an R installation (requires ``Rscript`` and knitr)."""

    def __init__(self, rscript: str = "Rscript", timeout: float | None = None) -> None:
        self.rscript = rscript
        self.timeout = timeout

    @staticmethod
    def available(rscript: str = "Rscript") -> bool:
        return shutil.which(rscript) is not None

    def tangle(self, source: Path, output: Path) -> None:
        self._run(
            f"invisible(knitr::knit({_r_string(source)}, output = {_r_string(output)}, "
            "tangle = TRUE, quiet = TRUE))"
        )

    def stangle(self, source: Path, output: Path) -> None:
        self._run(f"utils::Stangle({_r_string(source)}, output = {_r_string(output)}, quiet = TRUE)")

    def _run(self, expr: str) -> None:
        cmd = [self.rscript, "--vanilla", "-e", expr]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            raise RenderError(f"failed to run {self.rscript}: {exc}") from exc
        if result.returncode != 0:
            raise RenderError(
                f"{self.rscript} exited with code {result.returncode}: {result.stderr.strip()}"
            )


def renderer_from_config(name: str) -> LiterateRenderer | None:
    """Build the renderer named *name*: ``builtin``, ``knitr`` or ``none``.

    ``None`` means no rendering capability: literate documents contribute
    only what their headers declare.
    """
    name = name.lower()
    if name == "builtin":
        return ChunkRenderer()
    if name == "knitr":
        if KnitrRenderer.available():
            return KnitrRenderer()
        log.warning("render.unavailable", renderer=name, reason="Rscript not found on PATH")
        return None
    if name == "none":
        return None
    raise ValueError(f"unknown renderer '{name}' (expected builtin, knitr or none)")
