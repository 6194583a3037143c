"""Source extractors, auto-registered on import."""

from rdeps.discovery.extractors import (
    markdown,  # noqa: F401
    plain,  # noqa: F401
    weave,  # noqa: F401
)
