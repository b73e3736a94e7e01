"""
Package data model for cygpkg.

This module defines the representation of one ``@ name`` record of a
Cygwin ``setup.ini`` manifest together with the archive descriptors
(``install:`` / ``source:`` lines) it references.

Raw field values are kept as strings; list-valued views (categories,
dependencies, provides...) are split on demand. A manifest holds tens of
thousands of records and most of them are never looked at again after
parsing.
"""

from __future__ import annotations

import re
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cygpkg.constants import HASH_ALGORITHMS_BY_LENGTH
from cygpkg.models.transfer import TransferState
from cygpkg.models.version import ParsedVersion

# ``(>= 5.30)``, ``(=1.2-1)``...
_VERSION_CONSTRAINT_RE = re.compile(r"\s*\(\s*(?:<=|>=|=|<|>)\s*\d[^)]*\)")


def strip_version_constraints(raw: str) -> str:
    """Remove every ``(<op><version>)`` suffix from a dependency string."""
    return _VERSION_CONSTRAINT_RE.sub("", raw)


def split_package_list(raw: Optional[str], *, comma_delimited: bool = False) -> List[str]:
    """Split a raw dependency-style field into bare package names.

    Version constraints are removed before splitting, so ``"perl (>= 5.30),
    cygwin"`` yields ``["perl", "cygwin"]``.

    Args:
        raw: Raw field value, or ``None``.
        comma_delimited: Split on commas (``depends2``/``provides`` style)
            instead of whitespace (``requires`` style).

    Returns:
        Non-empty names in their original order.
    """
    if not raw:
        return []

    cleaned = strip_version_constraints(raw)
    if comma_delimited:
        tokens = (token.strip() for token in cleaned.split(","))
    else:
        tokens = (token.strip(",") for token in cleaned.split())
    return [token for token in tokens if token]


@dataclass
class FileRecord:
    """Archive descriptor from an ``install:`` or ``source:`` line.

    Attributes:
        relative_path: Path below the mirror root, e.g.
            ``x86_64/release/cygwin/cygwin-3.6.1-1-x86_64.tar.xz``.
        size: Expected size in bytes.
        content_hash: Expected hex digest, or ``None`` if hashes were not
            retained while parsing.
        component: Install-subdirectory directly below ``release/``; this is
            what package-set selection matches against.
        arch_prefix: Leading architecture directory, if present.
        obsolete: True if the path runs through ``release/_obsolete/``.
        remote_timestamp: ``Last-Modified`` time reported by the mirror.
        transfer_state: Classification against the local copy.
    """

    relative_path: str
    size: int
    content_hash: Optional[str] = None
    component: str = ""
    arch_prefix: Optional[str] = None
    obsolete: bool = False
    remote_timestamp: Optional[datetime] = None
    transfer_state: Optional[TransferState] = None

    @property
    def filename(self) -> str:
        """Base name of the archive."""
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def hash_algorithm(self) -> Optional[str]:
        """Digest algorithm implied by the hash length, if recognizable."""
        if not self.content_hash:
            return None
        return HASH_ALGORITHMS_BY_LENGTH.get(len(self.content_hash))

    def to_json(self) -> Dict[str, Any]:
        """Serialize the record to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {
            "path": self.relative_path,
            "size": self.size,
        }
        if self.content_hash:
            entry["hash"] = self.content_hash
        if self.transfer_state is not None:
            entry["state"] = self.transfer_state.value
        if self.remote_timestamp is not None:
            entry["remote_timestamp"] = self.remote_timestamp.isoformat()
        return entry


@dataclass
class Package:
    """
    One package record from a manifest (its current version section only).

    Attributes:
        name: Package name; the key in :class:`~cygpkg.core.PackageIndex`.
        description: Short description (``sdesc``).
        long_description: Long description (``ldesc``), only if retained.
        message: Install-time message, only if retained.
        version: Raw version string of the current section.
        install: Binary archive descriptor.
        source: Source archive descriptor.
        category_raw: Space-delimited category list.
        requires_raw: Legacy whitespace-delimited dependency list.
        depends_raw: Comma-delimited dependency list (``depends``/``depends2``).
        build_depends_raw: Comma-delimited source-build dependency list.
        provides_raw: Comma-delimited virtual names this package satisfies.
        conflicts_raw, obsoletes_raw, replace_versions_raw: Informational
            lists, only if retained.
    """

    name: str
    description: Optional[str] = None
    long_description: Optional[str] = None
    message: Optional[str] = None
    version: Optional[str] = None
    install: Optional[FileRecord] = None
    source: Optional[FileRecord] = None
    category_raw: str = ""
    requires_raw: Optional[str] = None
    depends_raw: Optional[str] = None
    build_depends_raw: Optional[str] = None
    provides_raw: Optional[str] = None
    conflicts_raw: Optional[str] = None
    obsoletes_raw: Optional[str] = None
    replace_versions_raw: Optional[str] = None

    _parsed_version: Optional[ParsedVersion] = field(
        default=None,
        repr=False,
        compare=False,
    )

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def parsed_version(self) -> Optional[ParsedVersion]:
        """Parsed form of :attr:`version`, cached after first access."""
        if self.version is None:
            return None
        if self._parsed_version is None or self._parsed_version.raw != self.version:
            # Imported lazily: version_utils depends on the models package.
            from cygpkg.utils.version_utils import parse_version

            self._parsed_version = parse_version(self.version)
        return self._parsed_version

    @property
    def categories(self) -> List[str]:
        return self.category_raw.split()

    @property
    def dependencies(self) -> List[str]:
        """Runtime dependency names.

        ``depends`` replaces ``requires`` wholesale when both are present;
        the two are never merged.
        """
        if self.depends_raw is not None:
            return split_package_list(self.depends_raw, comma_delimited=True)
        return split_package_list(self.requires_raw)

    @property
    def build_dependencies(self) -> List[str]:
        return split_package_list(self.build_depends_raw, comma_delimited=True)

    @property
    def provides(self) -> List[str]:
        return split_package_list(self.provides_raw, comma_delimited=True)

    @property
    def conflicts(self) -> List[str]:
        return split_package_list(self.conflicts_raw, comma_delimited=True)

    @property
    def obsoletes(self) -> List[str]:
        return split_package_list(self.obsoletes_raw, comma_delimited=True)

    @property
    def replace_versions(self) -> List[str]:
        return split_package_list(self.replace_versions_raw)

    def file_records(self) -> List[FileRecord]:
        """Install and source records that are present, in that order."""
        return [r for r in (self.install, self.source) if r is not None]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> Dict[str, Any]:
        """
        Serialize the package to a JSON-compatible dictionary.

        Optional fields are only emitted when they carry a value, so the
        output reflects which supplemental fields were retained.
        """
        entry: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "categories": self.categories,
            "depends": self.dependencies,
        }

        if self.install is not None:
            entry["install"] = self.install.to_json()
        if self.source is not None:
            entry["source"] = self.source.to_json()
        if self.build_depends_raw:
            entry["build_depends"] = self.build_dependencies
        if self.provides_raw:
            entry["provides"] = self.provides
        if self.long_description is not None:
            entry["long_description"] = self.long_description
        if self.message is not None:
            entry["message"] = self.message
        if self.obsoletes_raw is not None:
            entry["obsoletes"] = self.obsoletes
        if self.conflicts_raw is not None:
            entry["conflicts"] = self.conflicts
        if self.replace_versions_raw is not None:
            entry["replace_versions"] = self.replace_versions

        return entry

    def __str__(self) -> str:
        if self.version:
            return f"{self.name} {self.version}"
        return self.name
