"""CLI entry point: rdeps.

Subcommands:
    rdeps scan /path/to/project          # Full discovery + closure
    rdeps file analysis.Rmd              # Direct dependencies of one file
    rdeps closure shiny dplyr            # Transitive closure of named packages
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from rdeps.core.config import Settings
from rdeps.core.logging import setup_logging
from rdeps.discovery.closure import resolve_closure
from rdeps.discovery.ignore import OptionsIgnoreList, StaticIgnoreList
from rdeps.discovery.index import LibraryIndex
from rdeps.discovery.manifest import DEFAULT_FIELDS
from rdeps.discovery.render import LiterateRenderer, renderer_from_config
from rdeps.discovery.scanner import discover, file_dependencies
from rdeps.exceptions import RdepsError

_RENDERERS = ["builtin", "knitr", "none"]


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _build_index(
    settings: Settings, lib_paths: tuple[Path, ...], packages_file: Path | None
) -> LibraryIndex:
    return LibraryIndex.from_paths(
        list(lib_paths) or settings.lib_paths,
        packages_file or settings.packages_file,
    )


def _build_renderer(settings: Settings, name: str | None) -> LiterateRenderer | None:
    try:
        return renderer_from_config(name or settings.renderer)
    except ValueError as e:
        _fail(str(e))
    return None


def _echo_packages(packages: list[str]) -> None:
    for name in packages:
        click.echo(name)


lib_path_option = click.option(
    "--lib-path",
    "lib_paths",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="R library to read installed DESCRIPTION files from (repeatable, searched in order)",
)
packages_option = click.option(
    "--packages",
    "packages_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Repository PACKAGES index used for packages not installed locally",
)
field_option = click.option(
    "--field",
    "fields",
    multiple=True,
    help="Dependency field followed during closure (repeatable; default Depends, Imports, LinkingTo)",
)
renderer_option = click.option(
    "--renderer",
    type=click.Choice(_RENDERERS, case_sensitive=False),
    default=None,
    help="How literate documents are tangled (default: RDEPS_RENDERER or builtin)",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """rdeps: discover the R packages a project depends on."""
    setup_logging("DEBUG" if verbose else None)


@main.command("scan")
@click.argument("project", type=click.Path(path_type=Path))
@lib_path_option
@packages_option
@field_option
@click.option("--ignore", "ignored", multiple=True, help="Package to leave out (repeatable)")
@click.option(
    "--no-implicit-runtime", is_flag=True, help="Do not add the packrat runtime package"
)
@click.option(
    "--drop-base",
    is_flag=True,
    help="Drop base R packages (stats, utils, methods, ...) found in scanned sources; "
    "they are kept by default",
)
@renderer_option
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
def scan(
    project: Path,
    lib_paths: tuple[Path, ...],
    packages_file: Path | None,
    fields: tuple[str, ...],
    ignored: tuple[str, ...],
    no_implicit_runtime: bool,
    drop_base: bool,
    renderer: str | None,
    as_json: bool,
) -> None:
    """Discover the dependencies of PROJECT and their transitive closure."""
    settings = Settings.from_env()
    literate = _build_renderer(settings, renderer)
    try:
        index = _build_index(settings, lib_paths, packages_file)
        options = OptionsIgnoreList(project, settings.reserved_dir)
        ignore = StaticIgnoreList(set(ignored) | options.ignored_packages())
        result = discover(
            project,
            index,
            fields=fields or DEFAULT_FIELDS,
            ignore=ignore,
            renderer=literate,
            implicit_runtime=settings.implicit_runtime and not no_implicit_runtime,
            drop_base=drop_base or settings.drop_base,
            reserved_dir=settings.reserved_dir,
        )
    except RdepsError as e:
        _fail(str(e))
        return

    if as_json:
        payload = {
            "project": result.project_path,
            "project_type": result.project_type.value,
            "direct": result.direct,
            "implicit": result.implicit,
            "packages": result.packages,
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        _echo_packages(result.packages)


@main.command("file")
@click.argument("path", type=click.Path(path_type=Path))
@renderer_option
def file_cmd(path: Path, renderer: str | None) -> None:
    """Print the packages a single R, Rmd, Rnw or Rpres file uses directly."""
    settings = Settings.from_env()
    literate = _build_renderer(settings, renderer)
    try:
        packages = file_dependencies(path, literate)
    except RdepsError as e:
        _fail(str(e))
        return
    _echo_packages(sorted(packages))


@main.command("closure")
@click.argument("packages", nargs=-1, required=True)
@lib_path_option
@packages_option
@field_option
def closure(
    packages: tuple[str, ...],
    lib_paths: tuple[Path, ...],
    packages_file: Path | None,
    fields: tuple[str, ...],
) -> None:
    """Print PACKAGES together with everything they need, transitively."""
    settings = Settings.from_env()
    try:
        index = _build_index(settings, lib_paths, packages_file)
    except RdepsError as e:
        _fail(str(e))
        return
    _echo_packages(resolve_closure(packages, index, fields or DEFAULT_FIELDS))


if __name__ == "__main__":
    main()
