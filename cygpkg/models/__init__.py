"""
Unified data model exports for cygpkg.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``cygpkg.models`` instead of individual submodules.

Example:
    >>> from cygpkg.models import Package, FileRecord, TransferState
"""

from __future__ import annotations

from cygpkg.models.transfer import TransferState
from cygpkg.models.version import NumberGroup, ParsedVersion
from cygpkg.models.package import FileRecord, Package, split_package_list
from cygpkg.models.selection import ManifestOptions, SelectionCriteria
from cygpkg.models.target_set import TargetSet

__all__ = [
    "FileRecord",
    "ManifestOptions",
    "NumberGroup",
    "Package",
    "ParsedVersion",
    "SelectionCriteria",
    "TargetSet",
    "TransferState",
    "split_package_list",
]
