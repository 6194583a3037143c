"""DCF reader for R ``DESCRIPTION`` manifests and repository ``PACKAGES`` indexes."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

import structlog

from rdeps.exceptions import ManifestError, ManifestNotFoundError

log = structlog.get_logger("rdeps.engine")

# Fields whose packages are required to build, load or link against a package.
DEFAULT_FIELDS: tuple[str, ...] = ("Depends", "Imports", "LinkingTo")

# For a package project itself, Suggests matter too (vignettes, tests).
LIBRARY_FIELDS: tuple[str, ...] = ("Depends", "Imports", "Suggests", "LinkingTo")

_FIELD_RE = re.compile(r"^([^\s:]+):\s*(.*)$")
_VERSION_RE = re.compile(r"\([^)]*\)")


def parse_dcf(text: str) -> list[dict[str, str]]:
    """Parse Debian Control File text into one dict per record.

    Records are separated by blank lines; indented lines continue the
    previous field. Raises :class:`ManifestError` on a malformed line.
    """
    records: list[dict[str, str]] = []
    current: dict[str, str] = {}
    last_field: str | None = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip()
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            last_field = None
            continue
        if line[0] in " \t":
            if last_field is None:
                raise ManifestError(f"continuation line without a field at line {lineno}")
            current[last_field] = f"{current[last_field]}\n{line.strip()}".strip()
            continue
        m = _FIELD_RE.match(line)
        if not m:
            raise ManifestError(f"malformed line {lineno}: {line!r}")
        last_field = m.group(1)
        current[last_field] = m.group(2).strip()

    if current:
        records.append(current)
    return records


def read_description(path: Path | str, required: bool = False) -> dict[str, str]:
    """Read the first record of a DESCRIPTION file.

    *path* may be the file or the directory holding it. A missing file gives
    ``{}`` unless *required*, in which case :class:`ManifestNotFoundError` is
    raised. A malformed file is logged and treated as empty.
    """
    path = Path(path)
    if path.is_dir():
        path = path / "DESCRIPTION"
    if not path.is_file():
        if required:
            raise ManifestNotFoundError(path)
        return {}

    try:
        records = parse_dcf(path.read_text(encoding="utf-8", errors="replace"))
    except (ManifestError, OSError) as exc:
        log.warning("manifest.unreadable", path=str(path), error=str(exc))
        return {}
    return records[0] if records else {}


def parse_package_field(value: str) -> list[str]:
    """``"R (>= 3.0), shiny,\\n  httr (>= 1.0)"`` -> ``["shiny", "httr"]``."""
    names: list[str] = []
    for entry in value.split(","):
        name = re.sub(r"\s+", "", _VERSION_RE.sub("", entry))
        if not name or name == "R" or name in names:
            continue
        names.append(name)
    return names


def description_dependencies(
    fields: dict[str, str], field_names: Iterable[str] = DEFAULT_FIELDS
) -> list[str]:
    """Package names declared across *field_names*, in first-seen order."""
    names: list[str] = []
    for field_name in field_names:
        for name in parse_package_field(fields.get(field_name, "")):
            if name not in names:
                names.append(name)
    return names
