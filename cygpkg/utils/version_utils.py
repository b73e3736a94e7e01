"""
Version parsing and comparison utilities for cygpkg.

Cygwin version strings do not follow a single scheme: upstream release
numbers, packaging release counters (``3.6.1-1``), snapshot dates
(``20230405``), VCS markers and hashes (``git.abc1234``) and pre-release
tags (``rc2``) all appear, sometimes in the same string. This module turns
such strings into :class:`~cygpkg.models.version.ParsedVersion` objects and
defines a total order over them.

Parsing never fails. Anything that is not a date, VCS marker, numeric run
or development tag is treated as a separator and discarded.

Examples:
    >>> compare_versions(parse_version("1.0"), parse_version("1.0.1"))
    -1
    >>> compare_versions(parse_version("1.0.0rc1"), parse_version("1.0.0"))
    -1
    >>> compare_versions(parse_version("2023-04-05"), parse_version("2023.4.5"))
    0
"""

from __future__ import annotations

import re
import functools
from typing import Any, Callable, List, Optional, Tuple

from cygpkg.constants import DEV_STAGE_RANKS, VCS_MARKERS
from cygpkg.models.transfer import TransferState
from cygpkg.models.version import NumberGroup, ParsedVersion, _GroupBuilder

# ---------------------------------------------------------------------------
# Token patterns
# ---------------------------------------------------------------------------

# Year 2000-2099, month, day; separators must agree. One-digit month and
# day are only accepted when separated.
_DATE_RE = re.compile(
    r"(?<!\d)(?P<year>20\d{2})"
    r"(?:"
    r"(?P<sep>[-.])(?P<month>1[0-2]|0?[1-9])(?P=sep)(?P<day>3[01]|[12]\d|0?[1-9])"
    r"|(?P<cmonth>0[1-9]|1[0-2])(?P<cday>0[1-9]|[12]\d|3[01])"
    r")"
    r"(?!\d)"
)

_VCS_RE = re.compile(r"(?:" + "|".join(VCS_MARKERS) + r")[.0-9a-fA-F]*")

_HEX_RE = re.compile(r"\.?([0-9a-fA-F]{7,})")
_DECIMAL_RE = re.compile(r"\.?(\d+)")
_DEV_TAG_RE = re.compile(r"\.?([a-zA-Z]+)(\d+(?:\.\d+)?)?")

# Longest hex run still read as a hash rather than a decimal number
_MAX_HEX_DIGITS = 8


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_version(raw: str) -> ParsedVersion:
    """Parse a raw version string into a comparable structure.

    Args:
        raw: Version string as found in a manifest or archive filename.

    Returns:
        A :class:`ParsedVersion`. The result always holds at least one
        (possibly all-zero) number group.
    """
    text = (raw or "").strip()
    text, date = _extract_date(text)
    text = _VCS_RE.sub("", text, count=1)

    groups: List[NumberGroup] = []
    current = _GroupBuilder()
    start_new_group = False
    pos = 0

    while pos < len(text):
        number, end = _match_number(text, pos)
        if number is not None:
            if start_new_group:
                groups.append(current.build())
                current = _GroupBuilder()
                start_new_group = False
            current.add_number(number)
            pos = end
            continue

        tag = _DEV_TAG_RE.match(text, pos)
        if tag:
            if start_new_group:
                groups.append(current.build())
                current = _GroupBuilder()
                start_new_group = False
            current.set_stage(tag.group(1).lower(), tag.group(2) or "")
            pos = tag.end()
            continue

        # Separator
        if current.has_numeric:
            start_new_group = True
        pos += 1

    groups.append(current.build())
    return ParsedVersion(raw=raw, groups=tuple(groups), date=date)


def _extract_date(text: str) -> Tuple[str, Optional[str]]:
    """Remove the first date-shaped substring and return it as ``YYYYMMDD``."""
    match = _DATE_RE.search(text)
    if not match:
        return text, None

    if match.group("sep"):
        month, day = match.group("month"), match.group("day")
    else:
        month, day = match.group("cmonth"), match.group("cday")

    date = f"{match.group('year')}{int(month):02d}{int(day):02d}"
    return text[: match.start()] + text[match.end() :], date


def _match_number(text: str, pos: int) -> Tuple[Optional[int], int]:
    """Match a hex hash run or, failing that, a decimal run at ``pos``."""
    hex_match = _HEX_RE.match(text, pos)
    if hex_match and len(hex_match.group(1)) <= _MAX_HEX_DIGITS:
        return int(hex_match.group(1), 16), hex_match.end()

    dec_match = _DECIMAL_RE.match(text, pos)
    if dec_match:
        return int(dec_match.group(1)), dec_match.end()

    return None, pos


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _stage_rank(stage: str) -> int:
    return DEV_STAGE_RANKS.get(stage, 0)


def _subversion_value(subversion: str) -> float:
    try:
        return float(subversion) if subversion else 0.0
    except ValueError:
        return 0.0


def _compare_groups(a: NumberGroup, b: NumberGroup) -> int:
    for left, right in zip(a.numbers, b.numbers):
        if left != right:
            return _sign(left - right)

    rank_diff = _stage_rank(a.stage) - _stage_rank(b.stage)
    if rank_diff:
        return _sign(rank_diff)

    if a.stage != b.stage:
        return -1 if a.stage < b.stage else 1

    return _sign(_subversion_value(a.subversion) - _subversion_value(b.subversion))


def compare_versions(a: ParsedVersion, b: ParsedVersion) -> int:
    """Compare two parsed versions.

    Dates decide only when *both* versions carry one; otherwise the number
    groups are compared pairwise, and a version with more groups after a
    common prefix is considered newer.

    Returns:
        ``-1`` if ``a < b``, ``0`` if equal, ``1`` if ``a > b``.
    """
    if a.date and b.date:
        return _sign(int(a.date) - int(b.date))

    for left, right in zip(a.groups, b.groups):
        result = _compare_groups(left, right)
        if result:
            return result

    return _sign(len(a.groups) - len(b.groups))


#: Sort key for :class:`ParsedVersion` objects (``sorted(vs, key=version_sort_key)``).
version_sort_key: Callable[[ParsedVersion], Any] = functools.cmp_to_key(compare_versions)


# ---------------------------------------------------------------------------
# Local state classification
# ---------------------------------------------------------------------------


def get_transfer_state(
    manifest_version: Optional[str],
    local_version: Optional[ParsedVersion],
) -> TransferState:
    """Classify a manifest version against the locally installed one.

    Args:
        manifest_version: Raw version string from the manifest.
        local_version: Parsed installed version, or ``None`` if the package
            is not installed locally.

    Returns:
        - ``TransferState.NEW``       : not installed, or manifest is newer
        - ``TransferState.UNCHANGED`` : versions compare equal
        - ``TransferState.OLDER``     : manifest is behind the installed copy

    Examples:
        >>> get_transfer_state("1.1", parse_version("1.0"))
        <TransferState.NEW: 'New'>
        >>> get_transfer_state("1.0", None)
        <TransferState.NEW: 'New'>
    """
    if local_version is None:
        return TransferState.NEW

    result = compare_versions(parse_version(manifest_version or ""), local_version)
    if result == 0:
        return TransferState.UNCHANGED
    if result < 0:
        return TransferState.OLDER
    return TransferState.NEW
