"""
cygpkg version information.

Single source of truth for the package version, following Semantic
Versioning: https://semver.org/
"""

from __future__ import annotations

import re
from typing import Any, Dict

__version__ = "0.1.0"


def _split_version(version: str) -> Dict[str, Any]:
    """Break a semantic version into its components."""
    match = re.match(r"^(\d+)\.(\d+)\.(\d+)(?:[.-]([a-zA-Z0-9]+))?$", version)
    if not match:
        raise ValueError(f"Invalid version string: {version}")

    major, minor, patch, pre = match.groups()
    return {
        "major": int(major),
        "minor": int(minor),
        "patch": int(patch),
        "prerelease": pre,
        "is_dev": pre is not None and pre.startswith("dev"),
    }


VERSION_INFO = _split_version(__version__)

#: Human-readable version (for CLI)
VERSION_STRING = f"cygpkg {__version__}"
