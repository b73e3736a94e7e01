"""
Parsed version data model for cygpkg.

Cygwin version strings mix plain release numbers, packaging release
counters, snapshot dates, VCS hashes and pre-release tags. A
:class:`ParsedVersion` is the structured form produced by
:func:`cygpkg.utils.version_utils.parse_version`; it is never mutated after
construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from cygpkg.constants import VERSION_SLOTS


@dataclass(frozen=True)
class NumberGroup:
    """One run of numeric components within a version string.

    Attributes:
        numbers: Fixed-size tuple of numeric slots, filled left to right.
        stage: Development stage tag (``"rc"``, ``"beta"``...), lower-cased.
        subversion: Numeric suffix of the stage tag (``"2"`` in ``rc2``).
    """

    numbers: Tuple[int, ...] = (0,) * VERSION_SLOTS
    stage: str = ""
    subversion: str = ""


@dataclass(frozen=True)
class ParsedVersion:
    """Comparable representation of a raw version string.

    Attributes:
        raw: The original string as handed to the parser.
        groups: Number groups in order of appearance; never empty.
        date: Embedded ``YYYYMMDD`` snapshot date, if one was recognized.
    """

    raw: str
    groups: Tuple[NumberGroup, ...] = (NumberGroup(),)
    date: Optional[str] = None

    def __str__(self) -> str:
        return self.raw


@dataclass
class _GroupBuilder:
    """Mutable accumulator used while a group is being tokenized."""

    numbers: List[int] = field(default_factory=list)
    stage: str = ""
    subversion: str = ""
    has_numeric: bool = False

    def add_number(self, value: int) -> None:
        # Runs beyond the last slot are consumed but not stored
        if len(self.numbers) < VERSION_SLOTS:
            self.numbers.append(value)
        self.has_numeric = True

    def set_stage(self, stage: str, subversion: str) -> None:
        if not self.stage:
            self.stage = stage
            self.subversion = subversion

    def build(self) -> NumberGroup:
        padded = self.numbers + [0] * (VERSION_SLOTS - len(self.numbers))
        return NumberGroup(
            numbers=tuple(padded),
            stage=self.stage,
            subversion=self.subversion,
        )
