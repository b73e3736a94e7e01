"""
Selection criteria and manifest retention options for cygpkg.

:class:`SelectionCriteria` describes *which* packages the user asked for;
:class:`ManifestOptions` describes *which* optional fields the manifest
parser should keep for them. Both are plain, immutable-by-convention value
objects built once per CLI invocation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Pattern

from cygpkg.exceptions import SelectionError


@dataclass
class SelectionCriteria:
    """
    Package selection criteria.

    Attributes:
        names: Exact package names.
        categories: Category names, matched case-insensitively.
        package_sets: Install-subdirectory names (the path component below
            ``release/``), matched case-insensitively.
        patterns: Compiled regular expressions searched in package names.
        include_runtime_deps: Expand the selection over requires/depends.
        include_build_deps: Expand the selection over build-depends.
    """

    names: FrozenSet[str] = frozenset()
    categories: FrozenSet[str] = frozenset()
    package_sets: FrozenSet[str] = frozenset()
    patterns: List[Pattern[str]] = field(default_factory=list)
    include_runtime_deps: bool = True
    include_build_deps: bool = False

    @classmethod
    def build(
        cls,
        *,
        names: Iterable[str] = (),
        categories: Iterable[str] = (),
        package_sets: Iterable[str] = (),
        regexes: Iterable[str] = (),
        include_runtime_deps: bool = True,
        include_build_deps: bool = False,
    ) -> "SelectionCriteria":
        """Build criteria from raw user input.

        Regular expressions are compiled here so that an invalid pattern
        fails before any manifest is read.

        Raises:
            SelectionError: A regular expression does not compile.
        """
        patterns: List[Pattern[str]] = []
        for regex in regexes:
            try:
                patterns.append(re.compile(regex))
            except re.error as exc:
                raise SelectionError(
                    f"Invalid regular expression: {exc}",
                    pattern=regex,
                ) from exc

        return cls(
            names=frozenset(n.strip() for n in names if n.strip()),
            categories=frozenset(c.strip().lower() for c in categories if c.strip()),
            package_sets=frozenset(
                s.strip().lower() for s in package_sets if s.strip()
            ),
            patterns=patterns,
            include_runtime_deps=include_runtime_deps,
            include_build_deps=include_build_deps,
        )

    @property
    def is_empty(self) -> bool:
        """True if no criterion was given at all."""
        return not (self.names or self.categories or self.package_sets or self.patterns)

    def matches_name(self, name: str) -> bool:
        """Direct-name or regular-expression match."""
        if name in self.names:
            return True
        return any(p.search(name) for p in self.patterns)

    def matches_category(self, category_raw: str) -> bool:
        if not self.categories:
            return False
        return any(c.lower() in self.categories for c in category_raw.split())

    def matches_package_set(self, component: Optional[str]) -> bool:
        if not component or not self.package_sets:
            return False
        return component.lower() in self.package_sets


@dataclass
class ManifestOptions:
    """
    Which optional manifest fields to retain while parsing.

    Everything not listed here (name, sdesc, category, version, archive
    paths and sizes, dependency lists, provides) is always kept.
    """

    keep_long_description: bool = False
    keep_message: bool = False
    keep_hash: bool = False
    keep_obsoletes: bool = False
    keep_conflicts: bool = False
    keep_replace_versions: bool = False
    track_provides: bool = True
