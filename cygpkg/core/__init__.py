"""
Core functionality exports for cygpkg.

This module provides convenient access to the core subsystems of cygpkg.
Importing from here keeps user-facing imports clean and stable:

    from cygpkg.core import ManifestParser, DependencyResolver
"""

from __future__ import annotations

from cygpkg.core.package_index import PackageIndex
from cygpkg.core.resolver import DependencyResolver
from cygpkg.core.downloader import FetchSummary, PackageDownloader
from cygpkg.core.mirrors import Mirror, choose_mirror, parse_mirror_list
from cygpkg.core.local_state import LocalState, LocalStateComparator, load_local_state
from cygpkg.core.manifest_parser import (
    ManifestHeader,
    ManifestParser,
    ManifestParseResult,
    ParserState,
)

__all__ = [
    "DependencyResolver",
    "FetchSummary",
    "LocalState",
    "LocalStateComparator",
    "ManifestHeader",
    "ManifestParseResult",
    "ManifestParser",
    "Mirror",
    "PackageDownloader",
    "PackageIndex",
    "ParserState",
    "choose_mirror",
    "load_local_state",
    "parse_mirror_list",
]
