"""Configuration file loader for cygpkg.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``cygpkg.toml``: settings under ``[cygpkg]`` table
- ``pyproject.toml``: settings under ``[tool.cygpkg]`` table

Discovery order:

1. Explicit path from ``--config`` or ``CYGPKG_CONFIG``
2. ``cygpkg.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.cygpkg]`` section

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``cygpkg.toml``)::

    [cygpkg]
    arch = "x86_64"
    mirror = "https://mirrors.kernel.org/sourceware/cygwin/"
    root = "C:/cygwin64"
    cache_dir = "D:/cygwin-packages"
    max_concurrency = 8
"""

from __future__ import annotations


import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type
from dataclasses import dataclass, field

from cygpkg.exceptions import ConfigError
from cygpkg.utils.logger import get_logger
from cygpkg.constants import (
    DEFAULT_ARCH,
    DEFAULT_CACHE_DIR,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MIRROR_LIST_URL,
    DEFAULT_TIMEOUT,
    SUPPORTED_ARCHES,
)

logger = get_logger("config")


@dataclass
class CygPkgConfig:
    """Parsed and validated cygpkg configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        arch: Target architecture (``x86_64`` or ``x86``).
        mirror: Mirror base URL. ``None`` picks one from the mirror list.
        mirror_list_url: Where to download the mirror list from.
        root: Cygwin root used for local-state comparison, if any.
        cache_dir: Directory downloaded archives and manifests are stored in.
        setup_ini: Local manifest to read instead of downloading one.
        timeout: Network timeout in seconds.
        max_concurrency: Maximum number of simultaneous downloads.
        include_runtime_deps: Expand selections over runtime dependencies.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    arch: str = DEFAULT_ARCH
    mirror: Optional[str] = None
    mirror_list_url: str = DEFAULT_MIRROR_LIST_URL
    root: Optional[Path] = None
    cache_dir: Path = field(default_factory=lambda: Path(DEFAULT_CACHE_DIR))
    setup_ini: Optional[Path] = None
    timeout: int = DEFAULT_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    include_runtime_deps: bool = True

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {
            "arch": self.arch,
            "mirror": self.mirror,
            "mirror_list_url": self.mirror_list_url,
            "root": str(self.root) if self.root else None,
            "cache_dir": str(self.cache_dir),
            "setup_ini": str(self.setup_ini) if self.setup_ini else None,
            "timeout": self.timeout,
            "max_concurrency": self.max_concurrency,
            "include_runtime_deps": self.include_runtime_deps,
        }


#: Known options and the TOML type each must have.
_OPTION_TYPES: Dict[str, Tuple[Type[Any], str]] = {
    "arch": (str, "a string"),
    "mirror": (str, "a string"),
    "mirror_list_url": (str, "a string"),
    "root": (str, "a string"),
    "cache_dir": (str, "a string"),
    "setup_ini": (str, "a string"),
    "timeout": (int, "an integer"),
    "max_concurrency": (int, "an integer"),
    "include_runtime_deps": (bool, "a boolean"),
}

_PATH_OPTIONS = ("root", "cache_dir", "setup_ini")


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Search order:

    1. ``explicit_path`` (from ``--config`` or ``CYGPKG_CONFIG``)
    2. ``cygpkg.toml`` in current directory
    3. ``pyproject.toml`` with ``[tool.cygpkg]`` section in current directory

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    cygpkg_toml = cwd / "cygpkg.toml"
    if cygpkg_toml.is_file():
        logger.debug("Found cygpkg.toml: %s", cygpkg_toml)
        return cygpkg_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_cygpkg_section(pyproject_toml):
        logger.debug("Found [tool.cygpkg] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_cygpkg_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.cygpkg] section.

    An unparseable pyproject.toml is treated as having no section.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "cygpkg" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> CygPkgConfig:
    """Load and validate cygpkg configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`CygPkgConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return CygPkgConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("cygpkg", {})
    else:
        section = raw.get("cygpkg", {})

    if not section:
        logger.debug("Config file found but no cygpkg section, using defaults")
        return CygPkgConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> CygPkgConfig:
    """Parse and validate a ``[cygpkg]`` or ``[tool.cygpkg]`` table.

    Raises:
        ConfigError: Unknown keys, wrong types, or out-of-range values.
    """
    unknown = set(section.keys()) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    for key, value in section.items():
        expected, label = _OPTION_TYPES[key]
        # bool is an int subclass; keep them apart
        wrong_bool = expected is int and isinstance(value, bool)
        if wrong_bool or not isinstance(value, expected):
            raise ConfigError(
                f"{key} must be {label}, got {type(value).__name__}",
                config_path=config_path,
                option=key,
            )

    if "arch" in section and section["arch"] not in SUPPORTED_ARCHES:
        raise ConfigError(
            f"arch must be one of {', '.join(SUPPORTED_ARCHES)}, got {section['arch']!r}",
            config_path=config_path,
            option="arch",
        )

    for key in ("timeout", "max_concurrency"):
        if key in section and section[key] <= 0:
            raise ConfigError(
                f"{key} must be positive, got {section[key]}",
                config_path=config_path,
                option=key,
            )

    values: Dict[str, Any] = {}
    for key, value in section.items():
        values[key] = Path(value).expanduser() if key in _PATH_OPTIONS else value

    return CygPkgConfig(**values)
