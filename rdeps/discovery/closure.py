"""Transitive closure of package requirements over a metadata index."""

from __future__ import annotations

from collections import deque
from typing import Iterable

import structlog

from rdeps.discovery.index import BASE_PACKAGES, PackageMetadataIndex
from rdeps.discovery.manifest import DEFAULT_FIELDS

log = structlog.get_logger("rdeps.engine")


def resolve_closure(
    direct: Iterable[str],
    index: PackageMetadataIndex,
    fields: Iterable[str] = DEFAULT_FIELDS,
    ignored: Iterable[str] = (),
) -> list[str]:
    """Expand *direct* to every package it needs, transitively.

    An edge A -> B exists when B is named in one of A's *fields*. Ignored
    names never enter the result and are never expanded. Packages the index
    does not know are kept as leaves; reporting them is the installer's job.
    Returns the sorted union of the direct set and everything reached.
    """
    fields = tuple(fields)
    skip = set(ignored)
    visited: set[str] = set()
    queue: deque[str] = deque()

    for name in direct:
        if name not in skip and name not in visited:
            visited.add(name)
            queue.append(name)

    while queue:
        name = queue.popleft()
        if not index.exists(name):
            if name not in BASE_PACKAGES:
                log.warning("closure.package_unknown", package=name)
            continue
        for dep in index.lookup(name, fields):
            if dep in skip or dep in visited:
                continue
            visited.add(dep)
            queue.append(dep)

    return sorted(visited)
