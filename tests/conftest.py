"""Shared pytest fixtures for rdeps tests."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


class FakeLibrary:
    """An R library directory on disk holding ``<name>/DESCRIPTION`` files."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)

    def install(self, name: str, **fields: str) -> None:
        lines = [f"Package: {name}", "Version: 1.0.0"]
        lines += [f"{key}: {value}" for key, value in fields.items()]
        write(self.path / name / "DESCRIPTION", "\n".join(lines) + "\n")


class DictIndex:
    """In-memory PackageMetadataIndex: ``{name: {field: [deps]}}``."""

    def __init__(self, graph: dict[str, dict[str, list[str]]]) -> None:
        self.graph = graph
        self.lookups: list[str] = []

    def exists(self, name: str) -> bool:
        return name in self.graph

    def lookup(self, name: str, fields) -> list[str]:
        self.lookups.append(name)
        record = self.graph.get(name, {})
        deps: list[str] = []
        for field_name in fields:
            for dep in record.get(field_name, []):
                if dep not in deps:
                    deps.append(dep)
        return deps


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def library(tmp_path: Path) -> FakeLibrary:
    return FakeLibrary(tmp_path / "library")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "RDEPS_LIB_PATHS",
        "RDEPS_PACKAGES_FILE",
        "RDEPS_RENDERER",
        "RDEPS_IMPLICIT_RUNTIME",
        "RDEPS_DROP_BASE",
        "RDEPS_RESERVED_DIR",
        "RDEPS_LOG_LEVEL",
        "RDEPS_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
