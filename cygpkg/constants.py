"""
Centralized constants for cygpkg.

This module defines immutable configuration values used across cygpkg,
including mirror endpoints, manifest grammar tables, version ranking
tables, network settings, and logging formats. All values are intended to
be treated as read-only.
"""

from typing import Final, Mapping, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "cygpkg/{version} (+https://github.com/cygpkg/cygpkg)"

# ---------------------------------------------------------------------------
# Mirror endpoints
# ---------------------------------------------------------------------------

#: Official list of Cygwin mirrors (``url;host;region;country`` per line).
DEFAULT_MIRROR_LIST_URL: Final[str] = "https://cygwin.com/mirrors.lst"

#: Static mirror list used when the live list cannot be downloaded.
FALLBACK_MIRRORS: Final[Sequence[str]] = (
    "https://mirrors.kernel.org/sourceware/cygwin/;mirrors.kernel.org;United States;California",
    "https://cygwin.osuosl.org/;cygwin.osuosl.org;United States;Oregon",
    "https://mirrors.dotsrc.org/cygwin/;mirrors.dotsrc.org;Europe;Denmark",
    "https://www.mirrorservice.org/sites/sourceware.org/pub/cygwin/;www.mirrorservice.org;Europe;UK",
    "http://ftp.iij.ad.jp/pub/cygwin/;ftp.iij.ad.jp;Asia;Japan",
)

#: Manifest file names published per architecture, most preferred first.
MANIFEST_FILENAMES: Final[Sequence[str]] = ("setup.xz", "setup.bz2", "setup.ini")

#: Architectures a manifest may declare.
SUPPORTED_ARCHES: Final[Sequence[str]] = ("x86_64", "x86")

#: Default target architecture.
DEFAULT_ARCH: Final[str] = "x86_64"

# ---------------------------------------------------------------------------
# Local installation layout
# ---------------------------------------------------------------------------

#: Installed-package database, relative to the Cygwin root.
INSTALLED_DB_PATH: Final[str] = "etc/setup/installed.db"

#: Directory holding unpacked source packages, relative to the Cygwin root.
SOURCE_DIR_PATH: Final[str] = "usr/src"

#: Default directory where fetched archives are stored.
DEFAULT_CACHE_DIR: Final[str] = "cygwin-packages"

# ---------------------------------------------------------------------------
# Manifest grammar
# ---------------------------------------------------------------------------

#: Top-of-file keys recognized as manifest-level metadata, mapped to the
#: ManifestHeader attribute each one fills.
HEADER_FIELDS: Final[Mapping[str, str]] = {
    "release": "release",
    "arch": "arch",
    "setup-timestamp": "timestamp",
    "setup-minimum-version": "minimum_version",
    "setup-version": "setup_version",
}

#: Version label naming the authoritative section of a record.
CURRENT_LABEL: Final[str] = "curr"

#: Fields whose value may be quoted, and may then continue over several lines.
QUOTED_FIELDS: Final[Sequence[str]] = ("sdesc", "ldesc", "message")

#: Field spellings that all carry the runtime dependency edge set.
DEPENDS_FIELDS: Final[Sequence[str]] = ("depends", "depends2")

# ---------------------------------------------------------------------------
# Version comparison
# ---------------------------------------------------------------------------

#: Number of numeric slots kept per version number group.
VERSION_SLOTS: Final[int] = 5

#: Rank of known development stages; anything else ranks as a release (0).
DEV_STAGE_RANKS: Final[Mapping[str, int]] = {
    "alpha": -5,
    "beta": -4,
    "pr": -4,
    "pre": -4,
    "devel": -3,
    "rc": -2,
    "ga": -1,
}

#: Version-control markers excised before numeric parsing.
VCS_MARKERS: Final[Sequence[str]] = (
    "rcgit",
    "darcs",
    "git",
    "bzr",
    "cvs",
    "deb",
    "rcs",
    "svn",
    "hg",
)

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Default number of concurrent archive downloads.
DEFAULT_MAX_CONCURRENCY: Final[int] = 4

#: Chunk size used when streaming downloads and hashing files.
DOWNLOAD_CHUNK_SIZE: Final[int] = 1 << 16

# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

#: Hash algorithm implied by the length of a hex digest.
HASH_ALGORITHMS_BY_LENGTH: Final[Mapping[int, str]] = {
    32: "md5",
    40: "sha1",
    64: "sha256",
    128: "sha512",
}

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
