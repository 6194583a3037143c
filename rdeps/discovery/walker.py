"""Call-pattern matcher (find the packages an R expression tree refers to).

Recognized shapes:
    pkg::fn / pkg:::fn           -> pkg
    setClass(...), setMethod(...) and friends -> methods
    library(pkg), require("pkg"), loadNamespace(...), requireNamespace(...)
                                 -> pkg, bound the way R's match.call() would

A package name computed at runtime (``library(x, character.only = TRUE)``,
``library(paste0("a", "b"))``) is never guessed.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from rdeps.rlang.nodes import Arg, Call, Node, Symbol, name_of
from rdeps.rlang.parser import parse_program

log = structlog.get_logger("rdeps.engine")

NAMESPACE_ACCESSORS = frozenset({"::", ":::"})

FORMAL_CLASS_FUNCTIONS = frozenset(
    {"setClass", "setMethod", "setRefClass", "setGeneric", "setGroupGeneric"}
)
FORMAL_CLASS_PACKAGE = "methods"

# Formal parameter lists of the base R loaders, in declaration order.
LOADER_FORMALS: dict[str, tuple[str, ...]] = {
    "library": (
        "package",
        "help",
        "pos",
        "lib.loc",
        "character.only",
        "logical.return",
        "warn.conflicts",
        "quietly",
        "verbose",
        "mask.ok",
        "exclude",
        "include.only",
        "attach.required",
    ),
    "require": (
        "package",
        "lib.loc",
        "quietly",
        "warn.conflicts",
        "character.only",
        "mask.ok",
        "exclude",
        "include.only",
        "attach.required",
    ),
    "loadNamespace": (
        "package",
        "lib.loc",
        "keep.source",
        "partial",
        "versionCheck",
        "keep.parse.data",
    ),
    "requireNamespace": ("package", "...", "quietly"),
}


class ArgumentMatchError(ValueError):
    """The actual arguments of a call cannot be bound to the formals."""


def match_arguments(formals: tuple[str, ...], args: list[Arg]) -> dict[str, Node]:
    """Bind *args* to *formals* following R's matching rules.

    1. exact name matches;
    2. unique partial (prefix) matches, only for formals before ``...``;
    3. remaining unnamed arguments fill the remaining formals before ``...``
       in order.

    Arguments swallowed by ``...`` are not returned.
    """
    dots_at = formals.index("...") if "..." in formals else len(formals)
    has_dots = dots_at < len(formals)
    bound: dict[str, Node] = {}

    for arg in args:
        if isinstance(arg.value, Symbol) and arg.value.name == "...":
            raise ArgumentMatchError("'...' forwarded into a loader call")

    pending: list[Arg] = []
    for arg in args:
        if arg.name and arg.name != "..." and arg.name in formals:
            if arg.name in bound:
                raise ArgumentMatchError(
                    f"formal argument '{arg.name}' matched by multiple actual arguments"
                )
            bound[arg.name] = arg.value
        else:
            pending.append(arg)

    rest: list[Arg] = []
    for arg in pending:
        if not arg.name:
            rest.append(arg)
            continue
        candidates = [
            f for f in formals[:dots_at] if f not in bound and f.startswith(arg.name)
        ]
        if len(candidates) > 1:
            raise ArgumentMatchError(f"argument '{arg.name}' matches multiple formal arguments")
        if candidates:
            bound[candidates[0]] = arg.value
        else:
            rest.append(arg)

    slots = [f for f in formals[:dots_at] if f not in bound]
    for arg in rest:
        if not arg.name and slots:
            bound[slots.pop(0)] = arg.value
        elif not has_dots:
            label = f"{arg.name} = ..." if arg.name else "positional"
            raise ArgumentMatchError(f"unused argument ({label})")
    return bound


class PackageCollector:
    """Accumulates the package names found while walking expression trees."""

    def __init__(self) -> None:
        self.packages: set[str] = set()

    def walk(self, root: Node) -> None:
        """Pre-order: visit a node, then (for calls only) every child in order."""
        stack = [root]
        while stack:
            node = stack.pop()
            self.visit(node)
            if isinstance(node, Call):
                stack.extend(reversed(list(node.children())))

    def visit(self, node: Node) -> None:
        if not isinstance(node, Call):
            return
        fn = name_of(node.fn)
        if fn is None:
            return

        if fn in NAMESPACE_ACCESSORS:
            if node.args:
                self._record(name_of(node.args[0].value))
            return

        if fn in FORMAL_CLASS_FUNCTIONS:
            self._record(FORMAL_CLASS_PACKAGE)
            return

        formals = LOADER_FORMALS.get(fn)
        if formals is None:
            return

        try:
            matched = match_arguments(formals, node.args)
        except ArgumentMatchError as exc:
            log.debug("walker.loader_unmatched", loader=fn, reason=str(exc))
            return

        package = matched.get("package")
        if package is None:
            return

        # for (x in pkgs) library(x, character.only = TRUE): x is a variable
        if "character.only" in matched and isinstance(package, Symbol):
            log.debug("walker.dynamic_package", loader=fn, variable=package.name)
            return

        self._record(name_of(package))

    def _record(self, name: str | None) -> None:
        if name:
            self.packages.add(name)


def expression_dependencies(node: Node) -> set[str]:
    collector = PackageCollector()
    collector.walk(node)
    return collector.packages


def program_dependencies(exprs: Iterable[Node]) -> set[str]:
    """Union of the packages used by each top-level expression."""
    collector = PackageCollector()
    for expr in exprs:
        collector.walk(expr)
    return collector.packages


def source_dependencies(text: str) -> set[str]:
    """Parse R source text and return the packages it uses.

    Raises :class:`~rdeps.exceptions.RParseError` if *text* is not valid R.
    """
    return program_dependencies(parse_program(text))
