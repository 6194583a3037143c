"""Runtime settings read from RDEPS_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_DEFAULT_RENDERER = "builtin"
_DEFAULT_RESERVED_DIR = "packrat"


def _env_flag(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_paths(key: str) -> list[Path]:
    raw = os.environ.get(key, "")
    return [Path(p) for p in raw.split(os.pathsep) if p.strip()]


@dataclass
class Settings:
    """Discovery settings. CLI flags override these."""

    lib_paths: list[Path] = field(default_factory=list)
    packages_file: Path | None = None
    renderer: str = _DEFAULT_RENDERER
    implicit_runtime: bool = True
    drop_base: bool = False
    reserved_dir: str = _DEFAULT_RESERVED_DIR

    @classmethod
    def from_env(cls) -> Settings:
        packages_file = os.environ.get("RDEPS_PACKAGES_FILE")
        return cls(
            lib_paths=_env_paths("RDEPS_LIB_PATHS"),
            packages_file=Path(packages_file) if packages_file else None,
            renderer=os.environ.get("RDEPS_RENDERER", _DEFAULT_RENDERER).lower(),
            implicit_runtime=_env_flag("RDEPS_IMPLICIT_RUNTIME", True),
            drop_base=_env_flag("RDEPS_DROP_BASE", False),
            reserved_dir=os.environ.get("RDEPS_RESERVED_DIR", _DEFAULT_RESERVED_DIR),
        )
