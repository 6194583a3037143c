"""Package metadata index: where a package's declared dependencies come from."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from rdeps.discovery.manifest import description_dependencies, parse_dcf, read_description

# Packages of priority "base": shipped with R itself, never installed separately.
BASE_PACKAGES = frozenset(
    {
        "base",
        "compiler",
        "datasets",
        "graphics",
        "grDevices",
        "grid",
        "methods",
        "parallel",
        "splines",
        "stats",
        "stats4",
        "tcltk",
        "tools",
        "utils",
    }
)


@runtime_checkable
class PackageMetadataIndex(Protocol):
    """Read-only query service over package metadata."""

    def lookup(self, name: str, fields: Iterable[str]) -> list[str]: ...

    def exists(self, name: str) -> bool: ...


class LibraryIndex:
    """Resolve package records from installed libraries, then a repository table.

    *lib_paths* are searched in order for ``<lib>/<name>/DESCRIPTION``; the
    first hit wins. Packages not installed anywhere fall back to *available*,
    a ``{name: record}`` mapping as read from a repository ``PACKAGES`` file.
    """

    def __init__(
        self,
        lib_paths: Iterable[Path | str] = (),
        available: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self.lib_paths = [Path(p) for p in lib_paths]
        self.available = dict(available or {})
        self._records: dict[str, dict[str, str] | None] = {}

    @classmethod
    def from_paths(
        cls, lib_paths: Iterable[Path | str] = (), packages_file: Path | str | None = None
    ) -> LibraryIndex:
        available = cls.load_available(packages_file) if packages_file else None
        return cls(lib_paths, available)

    @staticmethod
    def load_available(path: Path | str) -> dict[str, dict[str, str]]:
        """Read a repository ``PACKAGES`` file. The first record for a name wins."""
        records = parse_dcf(Path(path).read_text(encoding="utf-8", errors="replace"))
        available: dict[str, dict[str, str]] = {}
        for record in records:
            name = record.get("Package")
            if name and name not in available:
                available[name] = record
        return available

    def record(self, name: str) -> dict[str, str] | None:
        if name not in self._records:
            self._records[name] = self._find(name)
        return self._records[name]

    def _find(self, name: str) -> dict[str, str] | None:
        for lib in self.lib_paths:
            desc = lib / name / "DESCRIPTION"
            if desc.is_file():
                return read_description(desc)
        return self.available.get(name)

    def exists(self, name: str) -> bool:
        return self.record(name) is not None

    def lookup(self, name: str, fields: Iterable[str]) -> list[str]:
        record = self.record(name)
        if record is None:
            return []
        return description_dependencies(record, fields)
