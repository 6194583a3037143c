"""YAML front matter of R Markdown documents.

Only two things are read from the header: regex flags for packages the
output format implies, and ``params:`` entries whose values are R
expressions (tagged ``!r`` or ``!expr``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import yaml

from rdeps.exceptions import FrontMatterError

_DELIMITER_RE = re.compile(r"^(---|\.\.\.)\s*$")
_OPENER_RE = re.compile(r"^---\s*$")

_RUNTIME_SHINY_RE = re.compile(r"runtime:\s*shiny")
_RTICLES_RE = re.compile(r"rticles::")

SHINY_PACKAGE = "shiny"
RTICLES_PACKAGE = "rticles"


@dataclass(frozen=True)
class ParamExpression:
    """An R expression given as a parameter value, e.g. ``value: !r Sys.Date()``."""

    text: str


@dataclass
class ReportParameter:
    name: str
    expr: str | None = None


class _ParamLoader(yaml.SafeLoader):
    pass


def _construct_expression(loader: yaml.Loader, node: yaml.Node) -> ParamExpression:
    return ParamExpression(str(loader.construct_scalar(node)))  # type: ignore[arg-type]


def _construct_unknown(loader: yaml.Loader, suffix: str, node: yaml.Node) -> object:
    if isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    return loader.construct_scalar(node)  # type: ignore[arg-type]


_ParamLoader.add_constructor("!r", _construct_expression)
_ParamLoader.add_constructor("!expr", _construct_expression)
_ParamLoader.add_multi_constructor("!", _construct_unknown)


def _delimiters(lines: list[str]) -> list[int]:
    return [i for i, line in enumerate(lines) if _DELIMITER_RE.match(line)]


def has_front_matter(lines: list[str]) -> bool:
    """First line is ``---`` and some later line closes it with ``---`` or ``...``."""
    delimiters = _delimiters(lines)
    return (
        len(delimiters) >= 2
        and delimiters[0] == 0
        and _OPENER_RE.match(lines[0]) is not None
    )


def split_front_matter(lines: list[str]) -> tuple[str | None, list[str]]:
    """Split a document into its YAML header text (or None) and the body lines after it."""
    if not has_front_matter(lines):
        return None, lines
    start, end = _delimiters(lines)[:2]
    return "\n".join(lines[start + 1 : end]), lines[end + 1 :]


def extract_front_matter(lines: list[str]) -> str | None:
    return split_front_matter(lines)[0]


def header_dependencies(yaml_text: str) -> set[str]:
    deps: set[str] = set()
    if _RUNTIME_SHINY_RE.search(yaml_text):
        deps.add(SHINY_PACKAGE)
    if _RTICLES_RE.search(yaml_text):
        deps.add(RTICLES_PACKAGE)
    return deps


def report_parameters(yaml_text: str) -> list[ReportParameter]:
    """Entries of the header's ``params:`` mapping.

    Raises :class:`FrontMatterError` if the header is not valid YAML.
    """
    try:
        data = yaml.load(yaml_text, Loader=_ParamLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid YAML header: {exc}") from exc

    if not isinstance(data, dict):
        return []
    params = data.get("params")
    if not isinstance(params, dict):
        return []

    result: list[ReportParameter] = []
    for name, entry in params.items():
        value = entry.get("value") if isinstance(entry, dict) else entry
        expr = value.text if isinstance(value, ParamExpression) else None
        result.append(ReportParameter(str(name), expr))
    return result
