"""
cygpkg: Cygwin package manifest tool.

cygpkg reads a Cygwin ``setup.ini`` manifest, selects packages by name,
category, install subdirectory or regular expression, expands the
selection over its dependencies, compares it with a local installation
and optionally downloads the archives from a mirror with size and hash
verification.
"""

from __future__ import annotations

from cygpkg.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "cygpkg Contributors"
__license__ = "Apache-2.0"
__description__ = "Query, resolve and fetch packages from Cygwin setup.ini manifests."

__all__ = [
    "__version__",
]
