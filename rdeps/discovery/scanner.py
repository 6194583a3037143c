"""Discovery entry point: project -> direct dependencies -> closure -> final list."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import structlog

# Ensure extractors are registered before any scan runs.
import rdeps.discovery.extractors  # noqa: F401
from rdeps.discovery.closure import resolve_closure
from rdeps.discovery.ignore import IgnoreListProvider, OptionsIgnoreList
from rdeps.discovery.index import BASE_PACKAGES, PackageMetadataIndex
from rdeps.discovery.manifest import (
    DEFAULT_FIELDS,
    LIBRARY_FIELDS,
    description_dependencies,
    read_description,
)
from rdeps.discovery.models import DiscoveryResult, ProjectType
from rdeps.discovery.project import SHINY_PACKAGE, classify_project, is_shiny_app
from rdeps.discovery.registry import EXTRACTOR_REGISTRY, discover_sources, format_for_path
from rdeps.discovery.render import ChunkRenderer, LiterateRenderer
from rdeps.exceptions import ProjectNotFoundError, UnsupportedFormatError

log = structlog.get_logger("rdeps.engine")

# The tool's own runtime package; also the name of its reserved directory.
RUNTIME_PACKAGE = "packrat"

DEFAULT_RENDERER: LiterateRenderer = ChunkRenderer()


def file_dependencies(
    path: Path | str, renderer: LiterateRenderer | None = DEFAULT_RENDERER
) -> set[str]:
    """Direct dependencies of a single source file.

    Raises :class:`UnsupportedFormatError` if the extension is not one of
    ``.R``, ``.Rmd``, ``.Rnw`` or ``.Rpres``.
    """
    path = Path(path)
    fmt = format_for_path(path)
    if fmt is None:
        raise UnsupportedFormatError(path)
    return EXTRACTOR_REGISTRY[fmt].extract(path, renderer)


def dir_dependencies(
    project: Path | str,
    renderer: LiterateRenderer | None = DEFAULT_RENDERER,
    reserved_dir: str = RUNTIME_PACKAGE,
    drop_base: bool = False,
) -> set[str]:
    """Union of the direct dependencies of every source file under *project*."""
    root = Path(project)
    deps: set[str] = set()
    for artifact in discover_sources(root, reserved_dir):
        found = EXTRACTOR_REGISTRY[artifact.format].extract(artifact.path, renderer)
        log.debug(
            "scan.file",
            path=str(artifact.path.relative_to(root)),
            format=artifact.format.value,
            packages=sorted(found),
        )
        deps |= found
    if drop_base:
        deps -= BASE_PACKAGES
    return deps


def discover(
    project: Path | str,
    index: PackageMetadataIndex,
    *,
    fields: Iterable[str] = DEFAULT_FIELDS,
    ignore: IgnoreListProvider | None = None,
    renderer: LiterateRenderer | None = DEFAULT_RENDERER,
    implicit_runtime: bool = True,
    drop_base: bool = False,
    reserved_dir: str = RUNTIME_PACKAGE,
) -> DiscoveryResult:
    """Run a full discovery on *project*.

    Library projects (a DESCRIPTION without a non-package ``Type``) take
    their direct set from the manifest, Suggests included. Everything else
    is scanned file by file. The direct set is expanded over *index*
    through *fields*, then the implicit policy adds the runtime package
    (unless *implicit_runtime* is off) and ``shiny`` for apps that only
    show it through their entry files. Ignored names never appear in the
    result, implicit ones included.

    *ignore* defaults to the project's own options file.
    """
    root = Path(project)
    if not root.is_dir():
        raise ProjectNotFoundError(root)

    if ignore is None:
        ignore = OptionsIgnoreList(root, reserved_dir)
    ignored = ignore.ignored_packages()

    project_type = classify_project(root)
    if project_type is ProjectType.LIBRARY:
        manifest = read_description(root, required=True)
        direct = set(description_dependencies(manifest, LIBRARY_FIELDS))
    else:
        direct = dir_dependencies(root, renderer, reserved_dir, drop_base)
        direct.discard(RUNTIME_PACKAGE)
    direct -= ignored

    log.info(
        "discover.direct",
        project=str(root),
        project_type=project_type.value,
        count=len(direct),
        ignored=len(ignored),
    )

    packages = set(resolve_closure(direct, index, fields, ignored))

    implicit: set[str] = set()
    if implicit_runtime and RUNTIME_PACKAGE not in packages:
        implicit.add(RUNTIME_PACKAGE)
    if SHINY_PACKAGE not in packages and is_shiny_app(root):
        implicit.add(SHINY_PACKAGE)
    implicit -= ignored
    packages |= implicit

    log.info(
        "discover.done",
        project=str(root),
        packages=len(packages),
        implicit=sorted(implicit),
    )
    return DiscoveryResult(
        project_path=str(root),
        project_type=project_type,
        direct=sorted(direct),
        packages=sorted(packages),
        implicit=sorted(implicit),
    )


def app_dependencies(
    project: Path | str,
    index: PackageMetadataIndex,
    **options,
) -> list[str]:
    """The sorted, deduplicated package list for *project* (see :func:`discover`)."""
    return discover(project, index, **options).packages
