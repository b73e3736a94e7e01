"""
Local installation state for cygpkg.

Reads what is already present under a Cygwin root and classifies manifest
versions against it:

- binary packages come from ``etc/setup/installed.db``, a text file whose
  first line is a format header and whose other lines read
  ``<name> <name>-<version>.tar.<ext> <flag>``;
- source packages come from the ``usr/src`` directory, where each unpacked
  source tree is named ``<name>-<version>.src``.

A missing database or source directory is not an error; the affected
packages are simply classified as ``New``.
"""

from __future__ import annotations

import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Union

from cygpkg.constants import INSTALLED_DB_PATH, SOURCE_DIR_PATH
from cygpkg.exceptions import FileOperationError
from cygpkg.models import Package, ParsedVersion, TransferState
from cygpkg.utils.filesystem import iter_text_lines
from cygpkg.utils.logger import get_logger
from cygpkg.utils.version_utils import get_transfer_state, parse_version

logger = get_logger("local_state")

__all__ = [
    "LocalState",
    "LocalStateComparator",
    "load_local_state",
    "read_installed_database",
    "scan_source_directories",
]

# ``-x86_64``/``-x86``/``-noarch`` then ``.tar.<ext>``
_ARCHIVE_SUFFIX_RE = re.compile(r"(?:-(?:x86_64|x86|noarch))?\.tar\.[A-Za-z0-9]+$")


@dataclass
class LocalState:
    """Installed binary and source versions, keyed by package name."""

    binaries: Dict[str, ParsedVersion] = field(default_factory=dict)
    sources: Dict[str, ParsedVersion] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.binaries or self.sources)


def _archive_version(name: str, filename: str) -> Optional[str]:
    prefix = f"{name}-"
    if not filename.startswith(prefix):
        return None
    version = _ARCHIVE_SUFFIX_RE.sub("", filename[len(prefix) :])
    return version or None


def read_installed_database(lines: Iterable[str]) -> Dict[str, ParsedVersion]:
    """Parse installed-database lines into ``name -> installed version``.

    The first line is a format header and is skipped. Lines that do not
    name an archive for their package are ignored.
    """
    installed: Dict[str, ParsedVersion] = {}
    iterator = iter(lines)
    next(iterator, None)

    for line in iterator:
        parts = line.split()
        if len(parts) < 2:
            continue

        name, filename = parts[0], parts[1]
        version = _archive_version(name, filename)
        if version is None:
            logger.debug("Skipping installed.db entry %r", line.strip())
            continue
        installed[name] = parse_version(version)

    return installed


def scan_source_directories(
    entries: Iterable[str],
    names: Iterable[str],
) -> Dict[str, ParsedVersion]:
    """Match ``<name>-<version>.src`` directory entries for the given names.

    The version part must start with a digit, so ``perl-Text-1.0.src`` is
    credited to ``perl-Text`` and not to ``perl``. The longest wanted name
    prefix wins, so ``foo-2-1.0-1.src`` belongs to ``foo-2`` even when
    ``foo`` is wanted too. When several entries match one name, the last
    one listed wins.
    """
    wanted = set(names)
    found: Dict[str, ParsedVersion] = {}

    for entry in entries:
        if not entry.endswith(".src"):
            continue
        stem = entry[: -len(".src")]

        for match in reversed(list(re.finditer(r"-(?=\d)", stem))):
            name = stem[: match.start()]
            if name in wanted:
                found[name] = parse_version(stem[match.end() :])
                break

    return found


def load_local_state(
    root: Union[str, Path],
    names: Optional[Iterable[str]] = None,
) -> LocalState:
    """Read the local state of the Cygwin installation at ``root``.

    Args:
        root: Cygwin root directory.
        names: Packages whose unpacked sources should be looked up. Defaults
            to every package listed in the installed database.
    """
    root_path = Path(root)
    state = LocalState()

    db_path = root_path / INSTALLED_DB_PATH
    if db_path.is_file():
        try:
            with iter_text_lines(db_path) as lines:
                state.binaries = read_installed_database(lines)
        except FileOperationError as exc:
            logger.warning("Ignoring unreadable installed database: %s", exc)
    else:
        logger.warning("No installed database at %s; treating all packages as new", db_path)

    src_dir = root_path / SOURCE_DIR_PATH
    if src_dir.is_dir():
        wanted = list(names) if names is not None else list(state.binaries)
        try:
            entries = [p.name for p in src_dir.iterdir() if p.is_dir()]
        except OSError as exc:
            logger.warning("Cannot list %s: %s", src_dir, exc)
        else:
            state.sources = scan_source_directories(entries, wanted)

    logger.info(
        "Local state: %d installed package(s), %d source tree(s)",
        len(state.binaries),
        len(state.sources),
    )
    return state


class LocalStateComparator:
    """Annotates manifest file records with their :class:`TransferState`.

    Example:
        >>> comparator = LocalStateComparator(load_local_state("/cygwin"))
        >>> comparator.annotate(packages)
    """

    def __init__(self, state: Optional[LocalState] = None) -> None:
        self.state = state or LocalState()

    @staticmethod
    def classify(
        manifest_version: Optional[str],
        local_version: Optional[ParsedVersion],
    ) -> TransferState:
        """Classify one manifest version against one local version."""
        return get_transfer_state(manifest_version, local_version)

    def annotate(self, packages: Iterable[Package]) -> None:
        """Set ``transfer_state`` on each package's install and source record."""
        for package in packages:
            if package.install is not None:
                package.install.transfer_state = self.classify(
                    package.version, self.state.binaries.get(package.name)
                )
            if package.source is not None:
                package.source.transfer_state = self.classify(
                    package.version, self.state.sources.get(package.name)
                )
