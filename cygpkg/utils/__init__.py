"""
Utility helpers for cygpkg.

This package provides reusable utilities used across cygpkg, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem, decompression and hashing helpers
- Async HTTP client utilities
- Version parsing and comparison

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from cygpkg.utils.filesystem import (
    atomic_move,
    file_digest,
    iter_text_lines,
    validate_path,
    verify_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from cygpkg.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_to_level,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from cygpkg.utils.console import (
    colorize_transfer_state,
    print_error,
    print_json,
    print_lines,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from cygpkg.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from cygpkg.utils.version_utils import (
    compare_versions,
    get_transfer_state,
    parse_version,
    version_sort_key,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "print_error",
    "print_json",
    "print_lines",
    "print_table",
    "print_success",
    "print_warning",
    "reconfigure_console",
    "colorize_transfer_state",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "verbosity_to_level",
    # Filesystem
    "atomic_move",
    "file_digest",
    "iter_text_lines",
    "validate_path",
    "verify_file",
    # HTTP
    "HTTPClient",
    # Version utilities
    "compare_versions",
    "get_transfer_state",
    "parse_version",
    "version_sort_key",
]
