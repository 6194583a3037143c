"""Expression tree nodes produced by the R parser.

R represents every compound form as a call: ``a + b`` is ``+``(a, b),
``if (c) x`` is ``if``(c, x), a block is ``{``(...). The tree mirrors that,
so a walker only needs to understand :class:`Call` to see everything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator


class Node:
    """Base class for all expression nodes."""


@dataclass
class Symbol(Node):
    name: str


@dataclass
class Constant(Node):
    value: object
    kind: str  # "string" | "number" | "integer" | "complex" | "logical" | "null" | "na"


@dataclass
class Missing(Node):
    """An empty argument slot, as in ``x[, 1]``."""


@dataclass
class Arg:
    value: Node
    name: str | None = None


@dataclass
class Formals(Node):
    """A function's parameter list. Not a call, so defaults are never walked."""

    params: list[Arg] = field(default_factory=list)


@dataclass
class Call(Node):
    fn: Node
    args: list[Arg] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        """Function position first, then every argument value in order."""
        yield self.fn
        for arg in self.args:
            yield arg.value


def call(name: str, *values: Node) -> Call:
    return Call(Symbol(name), [Arg(v) for v in values])


def is_string(node: Node) -> bool:
    return isinstance(node, Constant) and node.kind == "string"


def name_of(node: Node) -> str | None:
    """Text of a symbol or string constant, else None."""
    if isinstance(node, Symbol):
        return node.name
    if is_string(node):
        return str(node.value)  # type: ignore[union-attr]
    return None
