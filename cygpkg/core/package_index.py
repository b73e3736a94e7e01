"""Name-addressable index of manifest packages.

A :class:`PackageIndex` is filled by :class:`~cygpkg.core.manifest_parser.ManifestParser`
during its single pass over the manifest and is read-only afterwards. It
holds one :class:`~cygpkg.models.Package` per name (the current version
section) plus a ``provides`` alias map used as a fallback when a
dependency names a virtual package.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Set

from cygpkg.models import Package
from cygpkg.utils.logger import get_logger

logger = get_logger("index")

__all__ = ["PackageIndex"]


class PackageIndex:
    """Mapping of package name → :class:`Package`, with provides aliases.

    Attributes:
        by_name: Current-section package for each name.
        provides_alias: Alias name → names of the packages providing it.
    """

    __slots__ = ("by_name", "provides_alias")

    def __init__(self) -> None:
        self.by_name: Dict[str, Package] = {}
        self.provides_alias: Dict[str, Set[str]] = {}

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def add(self, package: Package) -> None:
        """Insert or replace the package stored under its name."""
        if package.name in self.by_name and self.by_name[package.name] is not package:
            logger.debug("Duplicate record for %s; keeping the later one", package.name)
        self.by_name[package.name] = package

    def register_provides(self, alias: str, provider: str) -> None:
        """Record that ``provider`` satisfies dependencies on ``alias``."""
        self.provides_alias.setdefault(alias, set()).add(provider)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[Package]:
        return self.by_name.get(name)

    def providers(self, alias: str) -> List[str]:
        """Provider names for ``alias`` in sorted order (empty if unknown)."""
        return sorted(self.provides_alias.get(alias, ()))

    def resolve_name(self, name: str) -> List[str]:
        """Concrete package names satisfying a dependency on ``name``.

        A real package wins over any alias of the same name. Unknown names
        resolve to an empty list.
        """
        if name in self.by_name:
            return [name]
        return self.providers(name)

    def __contains__(self, name: object) -> bool:
        return name in self.by_name

    def __iter__(self) -> Iterator[Package]:
        return iter(self.by_name.values())

    def __len__(self) -> int:
        return len(self.by_name)

    def __repr__(self) -> str:
        return (
            f"PackageIndex(packages={len(self.by_name)}, "
            f"aliases={len(self.provides_alias)})"
        )
