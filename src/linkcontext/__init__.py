"""linkcontext: MCP server that turns links into AI-prompt-ready content.

The version comes from the installed distribution's metadata. A source
checkout without metadata reports ``FALLBACK_VERSION`` and warns at import.
"""

from __future__ import annotations

import warnings
from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION = "linkcontext"
FALLBACK_VERSION = "0.0.0+unknown"


def _resolve_version() -> str:
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        warnings.warn(
            f"No installed metadata for {DISTRIBUTION!r}; reporting version {FALLBACK_VERSION!r}.",
            RuntimeWarning,
            stacklevel=2,
        )
        return FALLBACK_VERSION


__version__ = _resolve_version()
