"""Cygwin ``setup.ini`` manifest parser.

Reads a manifest in a single forward pass and builds:

- a :class:`ManifestHeader` from the ``name: value`` lines before the first
  package record (``release``, ``arch``, ``setup-timestamp``...),
- a :class:`~cygpkg.core.package_index.PackageIndex` holding the current
  version section of every ``@ name`` record,
- a :class:`~cygpkg.models.TargetSet` of the packages matched by the
  user's :class:`~cygpkg.models.SelectionCriteria`, collected on the fly so
  that the (possibly tens of megabytes large) manifest is scanned once.

Manifest grammar, as far as this parser is concerned::

    # comment
    release: cygwin
    arch: x86_64
    setup-timestamp: 1712345678

    @ cygwin
    sdesc: "The UNIX emulation engine"
    ldesc: "The UNIX emulation engine
    spanning several lines"
    category: Base
    requires: base-cygwin
    version: 3.6.1-1
    install: x86_64/release/cygwin/cygwin-3.6.1-1-x86_64.tar.xz 1234 <sha512>
    depends2: base-cygwin, libgcc1
    [prev]
    version: 3.5.7-1
    ...

Only the unlabeled (or ``[curr]``) section of a record is authoritative;
fields under ``[prev]``, ``[test]`` or any other label are skipped.

Typical usage::

    from cygpkg.core.manifest_parser import ManifestParser
    from cygpkg.models import SelectionCriteria

    selection = SelectionCriteria.build(categories=["Base"])
    result = ManifestParser(selection, expected_arch="x86_64").parse_file("setup.ini")

    for name in result.targets.sorted_names():
        print(result.index.get(name))
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from cygpkg.constants import CURRENT_LABEL, DEPENDS_FIELDS, HEADER_FIELDS, QUOTED_FIELDS
from cygpkg.exceptions import ManifestError
from cygpkg.core.package_index import PackageIndex
from cygpkg.models import (
    FileRecord,
    ManifestOptions,
    Package,
    SelectionCriteria,
    TargetSet,
    split_package_list,
)
from cygpkg.utils.filesystem import iter_text_lines
from cygpkg.utils.logger import get_logger

logger = get_logger("manifest")

__all__ = [
    "ManifestHeader",
    "ManifestParser",
    "ManifestParseResult",
    "ParserState",
    "parse_archive_line",
]

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

_HEADER_RE = re.compile(r"^@\s+(?P<name>\S+)\s*$")
_LABEL_RE = re.compile(r"^\[(?P<label>[^\]]*)\]\s*$")
_FIELD_RE = re.compile(r"^(?P<field>[A-Za-z][-A-Za-z0-9_]*):\s*(?P<value>.*?)\s*$")

# message: <id> "text..."
_MESSAGE_RE = re.compile(r'^\S+\s+"(?P<text>.*)$')

# [arch/]release/[_obsolete/]<component>/<more>... <size> <hash>
_ARCHIVE_RE = re.compile(
    r"^(?P<path>"
    r"(?:(?P<arch>[^/\s]+)/)?"
    r"release/"
    r"(?P<obsolete>_obsolete/)?"
    r"(?P<component>[^/\s]+)"
    r"(?:/[^/\s]+)+"
    r")"
    r"\s+(?P<size>\d+)"
    r"\s+(?P<hash>[0-9A-Za-z+/=]+)"
    r"\s*$"
)


def parse_archive_line(value: str, *, keep_hash: bool = True) -> Optional[FileRecord]:
    """Build a :class:`FileRecord` from the value of an install/source line.

    Returns:
        The record, or ``None`` if the value does not have the expected
        ``path size hash`` shape.
    """
    match = _ARCHIVE_RE.match(value)
    if not match:
        return None

    return FileRecord(
        relative_path=match.group("path"),
        size=int(match.group("size")),
        content_hash=match.group("hash") if keep_hash else None,
        component=match.group("component"),
        arch_prefix=match.group("arch"),
        obsolete=match.group("obsolete") is not None,
    )


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


@dataclass
class ManifestHeader:
    """Manifest-level metadata found before the first package record.

    Attributes:
        release: Release name (``cygwin``).
        arch: Architecture the manifest was generated for.
        timestamp: ``setup-timestamp`` as seconds since the epoch.
        minimum_version: Oldest installer able to read the manifest.
        setup_version: Current installer version.
        extra: Any other top-of-file ``name: value`` pairs.
    """

    release: Optional[str] = None
    arch: Optional[str] = None
    timestamp: Optional[int] = None
    minimum_version: Optional[str] = None
    setup_version: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)

    def to_json(self) -> Dict[str, object]:
        entry: Dict[str, object] = {
            "release": self.release,
            "arch": self.arch,
            "timestamp": self.timestamp,
            "minimum_version": self.minimum_version,
            "setup_version": self.setup_version,
        }
        entry.update(self.extra)
        return entry


@dataclass
class ManifestParseResult:
    """Everything produced by one manifest pass.

    Attributes:
        header: Manifest-level metadata.
        index: All packages, current version sections only.
        targets: Packages matched by the selection criteria, in discovery
            order (not yet dependency-expanded).
        unmatched_names: Explicitly requested names absent from the manifest.
    """

    header: ManifestHeader
    index: PackageIndex
    targets: TargetSet
    unmatched_names: List[str] = field(default_factory=list)


class ParserState(Enum):
    """Where the parser is within the manifest grammar."""

    AWAITING_HEADER = "awaiting_header"
    IN_RECORD = "in_record"
    IN_SUPPRESSED_VERSION = "in_suppressed_version"
    IN_QUOTED_CONTINUATION = "in_quoted_continuation"


@dataclass
class _ParseContext:
    """Mutable state threaded through every line of one parse."""

    header: ManifestHeader = field(default_factory=ManifestHeader)
    index: PackageIndex = field(default_factory=PackageIndex)
    targets: TargetSet = field(default_factory=TargetSet)
    state: ParserState = ParserState.AWAITING_HEADER
    package: Optional[Package] = None
    line_number: int = 0
    source: Optional[str] = None

    # Quoted continuation bookkeeping
    quote_field: Optional[str] = None
    quote_lines: List[str] = field(default_factory=list)
    quote_keep: bool = False
    resume_state: ParserState = ParserState.IN_RECORD


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class ManifestParser:
    """Single-pass ``setup.ini`` parser.

    A parser instance is reusable: every :meth:`parse_lines` call starts
    from a fresh context.

    Args:
        selection: Criteria used to collect targets during the pass. With
            ``None`` nothing is targeted.
        options: Which optional fields to retain.
        expected_arch: If given, a manifest declaring another architecture
            is rejected with :exc:`ManifestError`.
    """

    def __init__(
        self,
        selection: Optional[SelectionCriteria] = None,
        options: Optional[ManifestOptions] = None,
        *,
        expected_arch: Optional[str] = None,
    ) -> None:
        self.selection = selection or SelectionCriteria()
        self.options = options or ManifestOptions()
        self.expected_arch = expected_arch

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(self, path: Union[str, Path]) -> ManifestParseResult:
        """Parse a manifest file (plain, ``.xz`` or ``.bz2``).

        Raises:
            FileOperationError: The manifest is missing or unreadable.
            ManifestError: The manifest declares an unexpected architecture.
        """
        logger.info("Reading manifest %s", path)
        with iter_text_lines(path) as lines:
            return self.parse_lines(lines, source=str(path))

    def parse_lines(
        self,
        lines: Iterable[str],
        source: Optional[str] = None,
    ) -> ManifestParseResult:
        """Parse manifest text supplied line by line.

        Args:
            lines: Manifest lines, with or without trailing newlines.
            source: Name used in log and error messages.

        Returns:
            The :class:`ManifestParseResult` of the pass.
        """
        ctx = _ParseContext(source=source)

        for line in lines:
            ctx.line_number += 1
            self._process_line(ctx, line.rstrip("\r\n"))

        if ctx.state is ParserState.IN_QUOTED_CONTINUATION:
            logger.warning(
                "Unterminated quoted %s value at end of manifest (package %s)",
                ctx.quote_field,
                ctx.package.name if ctx.package else "<header>",
            )
        self._seal(ctx)

        unmatched = sorted(n for n in self.selection.names if n not in ctx.index)
        if unmatched:
            logger.warning("Packages not found in manifest: %s", ", ".join(unmatched))

        logger.debug(
            "Parsed %d package(s), %d alias(es), %d target(s) from %d line(s)",
            len(ctx.index),
            len(ctx.index.provides_alias),
            len(ctx.targets),
            ctx.line_number,
        )
        return ManifestParseResult(
            header=ctx.header,
            index=ctx.index,
            targets=ctx.targets,
            unmatched_names=unmatched,
        )

    # ------------------------------------------------------------------
    # Line dispatch
    # ------------------------------------------------------------------

    def _process_line(self, ctx: _ParseContext, line: str) -> None:
        if ctx.state is ParserState.IN_QUOTED_CONTINUATION:
            self._continue_quote(ctx, line)
            return

        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return

        header = _HEADER_RE.match(stripped)
        if header:
            self._start_record(ctx, header.group("name"))
            return

        if ctx.state is ParserState.AWAITING_HEADER:
            field_match = _FIELD_RE.match(stripped)
            if field_match:
                self._header_field(ctx, field_match.group("field"), field_match.group("value"))
            else:
                logger.debug("Line %d: ignoring %r before first record", ctx.line_number, stripped)
            return

        label = _LABEL_RE.match(stripped)
        if label:
            self._switch_label(ctx, label.group("label").strip())
            return

        field_match = _FIELD_RE.match(stripped)
        if not field_match:
            logger.debug("Line %d: unrecognized content %r", ctx.line_number, stripped)
            return

        name, value = field_match.group("field"), field_match.group("value")
        if ctx.state is ParserState.IN_SUPPRESSED_VERSION:
            # Still track quotes so a quoted body is never read as fields
            self._read_value(ctx, name, value, keep=False)
            return

        self._record_field(ctx, name, value)

    def _start_record(self, ctx: _ParseContext, name: str) -> None:
        self._seal(ctx)
        ctx.package = Package(name=name)
        ctx.state = ParserState.IN_RECORD

        if self.selection.matches_name(name):
            ctx.targets.add(name)

    def _switch_label(self, ctx: _ParseContext, label: str) -> None:
        if not label or label == CURRENT_LABEL:
            ctx.state = ParserState.IN_RECORD
            return

        # Everything below belongs to a superseded or future version
        self._seal(ctx)
        ctx.state = ParserState.IN_SUPPRESSED_VERSION

    def _seal(self, ctx: _ParseContext) -> None:
        """Add the in-progress package to the index (idempotent)."""
        if ctx.package is not None and ctx.index.get(ctx.package.name) is not ctx.package:
            ctx.index.add(ctx.package)

    # ------------------------------------------------------------------
    # Quoted values
    # ------------------------------------------------------------------

    def _read_value(
        self,
        ctx: _ParseContext,
        name: str,
        value: str,
        *,
        keep: bool,
    ) -> Optional[str]:
        """Return the unquoted value, or ``None`` if it continues on later lines.

        Only ``sdesc``, ``ldesc`` and ``message`` values are unquoted, and
        only when the value opens with the quote (``message: <id> "text"``
        for messages). Any other ``"`` is literal text.
        """
        if name not in QUOTED_FIELDS:
            return value

        message = _MESSAGE_RE.match(value) if name == "message" else None
        if value.startswith('"'):
            text = value[1:]
        elif message:
            text = message.group("text")
        else:
            return value

        if text.endswith('"'):
            return text[:-1]

        ctx.quote_field = name
        ctx.quote_lines = [text]
        ctx.quote_keep = keep
        ctx.resume_state = ctx.state
        ctx.state = ParserState.IN_QUOTED_CONTINUATION
        return None

    def _continue_quote(self, ctx: _ParseContext, line: str) -> None:
        trimmed = line.rstrip()
        if not trimmed.endswith('"'):
            ctx.quote_lines.append(line)
            return

        ctx.quote_lines.append(trimmed[:-1])
        if ctx.quote_keep and ctx.package is not None and ctx.quote_field:
            self._assign_text(ctx.package, ctx.quote_field, "\n".join(ctx.quote_lines))

        ctx.state = ctx.resume_state
        ctx.quote_field = None
        ctx.quote_lines = []
        ctx.quote_keep = False

    @staticmethod
    def _assign_text(package: Package, name: str, text: str) -> None:
        if name == "sdesc":
            package.description = text
        elif name == "ldesc":
            package.long_description = text
        elif name == "message":
            package.message = text

    # ------------------------------------------------------------------
    # Field handlers
    # ------------------------------------------------------------------

    def _header_field(self, ctx: _ParseContext, name: str, value: str) -> None:
        header = ctx.header
        attribute = HEADER_FIELDS.get(name)

        if attribute is None:
            header.extra[name] = value
            return

        if name == "arch" and self.expected_arch and value != self.expected_arch:
            raise ManifestError(
                f"Manifest is for architecture {value!r}, "
                f"expected {self.expected_arch!r}",
                line_number=ctx.line_number,
                file_path=ctx.source,
                expected_arch=self.expected_arch,
                actual_arch=value,
            )

        if name == "setup-timestamp":
            try:
                header.timestamp = int(value)
            except ValueError:
                logger.debug("Line %d: non-numeric setup-timestamp %r", ctx.line_number, value)
                header.extra[name] = value
            return

        setattr(header, attribute, value)

    def _record_field(self, ctx: _ParseContext, name: str, value: str) -> None:
        package = ctx.package
        assert package is not None
        options = self.options

        if name == "sdesc":
            text = self._read_value(ctx, name, value, keep=True)
            if text is not None:
                package.description = text

        elif name in ("ldesc", "message"):
            keep = options.keep_long_description if name == "ldesc" else options.keep_message
            text = self._read_value(ctx, name, value, keep=keep)
            if text is not None and keep:
                self._assign_text(package, name, text)

        elif name == "category":
            package.category_raw = value
            if self.selection.matches_category(value):
                ctx.targets.add(package.name)

        elif name == "version":
            package.version = value

        elif name == "requires":
            package.requires_raw = value

        elif name in DEPENDS_FIELDS:
            package.depends_raw = value

        elif name == "build-depends":
            package.build_depends_raw = value

        elif name in ("install", "source"):
            self._archive_field(ctx, package, name, value)

        elif name == "provides":
            package.provides_raw = value
            if options.track_provides:
                for alias in split_package_list(value, comma_delimited=True):
                    ctx.index.register_provides(alias, package.name)

        elif name == "obsoletes":
            if options.keep_obsoletes:
                package.obsoletes_raw = value

        elif name == "conflicts":
            if options.keep_conflicts:
                package.conflicts_raw = value

        elif name == "replace-versions":
            if options.keep_replace_versions:
                package.replace_versions_raw = value

        else:
            logger.debug("Line %d: ignoring field %r of %s", ctx.line_number, name, package.name)

    def _archive_field(
        self,
        ctx: _ParseContext,
        package: Package,
        name: str,
        value: str,
    ) -> None:
        record = parse_archive_line(value, keep_hash=self.options.keep_hash)
        if record is None:
            logger.debug(
                "Line %d: malformed %s line for %s: %r",
                ctx.line_number,
                name,
                package.name,
                value,
            )
            return

        if name == "install":
            package.install = record
        else:
            package.source = record

        if self.selection.matches_package_set(record.component):
            ctx.targets.add(package.name)
