"""
Transitive dependency expansion over a :class:`PackageIndex`.

The resolver walks the target set as a work queue: a cursor moves over the
names in insertion order and every newly discovered dependency is appended
behind it, so each name is expanded exactly once and cycles terminate on
their own.
"""

from __future__ import annotations

from typing import List

from cygpkg.core.package_index import PackageIndex
from cygpkg.models import Package, TargetSet
from cygpkg.utils.logger import get_logger

logger = get_logger("resolver")

__all__ = ["DependencyResolver"]


class DependencyResolver:
    """Closes a :class:`TargetSet` under the dependency relation.

    Args:
        index: Package index to look dependencies up in.
        include_runtime_deps: Follow ``requires`` / ``depends``.
        include_build_deps: Follow ``build-depends``.

    Example:
        >>> resolver = DependencyResolver(result.index)
        >>> added = resolver.resolve(result.targets)
    """

    def __init__(
        self,
        index: PackageIndex,
        *,
        include_runtime_deps: bool = True,
        include_build_deps: bool = False,
    ) -> None:
        self.index = index
        self.include_runtime_deps = include_runtime_deps
        self.include_build_deps = include_build_deps
        self.missing: List[str] = []

    def resolve(self, targets: TargetSet) -> int:
        """Expand ``targets`` in place until no new names are found.

        Dependencies naming a real package add that package; names only
        known as a ``provides`` alias add every provider. Names known to
        neither are recorded in :attr:`missing` and otherwise ignored.

        Returns:
            How many names were appended.
        """
        if not (self.include_runtime_deps or self.include_build_deps):
            return 0

        before = len(targets)
        cursor = 0

        while cursor < len(targets):
            name = targets[cursor]
            cursor += 1

            package = self.index.get(name)
            if package is None:
                # Targeted directly but absent from the manifest
                continue

            for dependency in self._edges(package):
                resolved = self.index.resolve_name(dependency)
                if not resolved:
                    if dependency not in self.missing:
                        logger.debug("%s depends on unknown package %s", name, dependency)
                        self.missing.append(dependency)
                    continue

                for candidate in resolved:
                    if targets.add(candidate):
                        logger.debug("Added %s (required by %s)", candidate, name)

        added = len(targets) - before
        logger.info("Dependency expansion added %d package(s)", added)
        return added

    def _edges(self, package: Package) -> List[str]:
        edges: List[str] = []
        if self.include_runtime_deps:
            edges.extend(package.dependencies)
        if self.include_build_deps:
            edges.extend(package.build_dependencies)
        return edges
