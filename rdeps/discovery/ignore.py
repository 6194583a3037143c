"""Project-scoped lists of packages to leave out of discovery results."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

import structlog

from rdeps.discovery.manifest import parse_dcf
from rdeps.exceptions import ManifestError

log = structlog.get_logger("rdeps.engine")

OPTIONS_FILE = "packrat.opts"
IGNORED_PACKAGES_OPTION = "ignored.packages"

_SEPARATOR_RE = re.compile(r"[\s,]+")


@runtime_checkable
class IgnoreListProvider(Protocol):
    def ignored_packages(self) -> set[str]: ...


class StaticIgnoreList:
    """A fixed set of names, e.g. from ``--ignore`` flags."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self.names = {name for name in names if name}

    def ignored_packages(self) -> set[str]:
        return set(self.names)


class OptionsIgnoreList:
    """``ignored.packages`` from ``<project>/<reserved_dir>/packrat.opts``.

    The options file is DCF; the value lists package names separated by
    commas and/or whitespace. A missing or unreadable file ignores nothing.
    """

    def __init__(self, project: Path | str, reserved_dir: str = "packrat") -> None:
        self.path = Path(project) / reserved_dir / OPTIONS_FILE

    def ignored_packages(self) -> set[str]:
        if not self.path.is_file():
            return set()
        try:
            records = parse_dcf(self.path.read_text(encoding="utf-8", errors="replace"))
        except (ManifestError, OSError) as exc:
            log.warning("ignore.options_unreadable", path=str(self.path), error=str(exc))
            return set()
        if not records:
            return set()
        value = records[0].get(IGNORED_PACKAGES_OPTION, "")
        return {name for name in _SEPARATOR_RE.split(value) if name}
