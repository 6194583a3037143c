"""Dependency discovery engine: find the R packages a project uses, then close over them."""

from rdeps.discovery.closure import resolve_closure
from rdeps.discovery.index import BASE_PACKAGES, LibraryIndex, PackageMetadataIndex
from rdeps.discovery.models import DiscoveryResult, ProjectType, SourceArtifact, SourceFormat
from rdeps.discovery.scanner import (
    app_dependencies,
    dir_dependencies,
    discover,
    file_dependencies,
)

__all__ = [
    "BASE_PACKAGES",
    "DiscoveryResult",
    "LibraryIndex",
    "PackageMetadataIndex",
    "ProjectType",
    "SourceArtifact",
    "SourceFormat",
    "app_dependencies",
    "dir_dependencies",
    "discover",
    "file_dependencies",
    "resolve_closure",
]
