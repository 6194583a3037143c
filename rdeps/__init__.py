"""rdeps: static dependency discovery for R projects."""

__version__ = "0.1.0"

from rdeps.discovery import (
    DiscoveryResult,
    LibraryIndex,
    PackageMetadataIndex,
    ProjectType,
    app_dependencies,
    discover,
    file_dependencies,
    resolve_closure,
)
from rdeps.exceptions import RdepsError

__all__ = [
    "DiscoveryResult",
    "LibraryIndex",
    "PackageMetadataIndex",
    "ProjectType",
    "RdepsError",
    "app_dependencies",
    "discover",
    "file_dependencies",
    "resolve_closure",
]
