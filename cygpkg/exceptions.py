"""
Custom exception hierarchy for cygpkg.

This module defines structured exception types used across cygpkg.
All exceptions inherit from :class:`CygPkgError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional


class CygPkgError(Exception):
    """Base exception for all cygpkg errors.

    All cygpkg-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ConfigError(CygPkgError):
    """Raised when a configuration file is missing, malformed, or invalid.

    Args:
        message: Error description.
        config_path: Path to the configuration file involved.
        option: Name of the offending option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class SelectionError(CygPkgError):
    """Raised when package selection criteria are invalid.

    Selection errors are caller contract violations and are raised before
    any manifest parsing begins.

    Args:
        message: Error description.
        pattern: The offending regular expression, if any.
    """

    __slots__ = ("pattern",)

    def __init__(
        self,
        message: str,
        *,
        pattern: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "pattern", pattern)

        super().__init__(message, details)

        self.pattern = pattern


class ManifestError(CygPkgError):
    """Raised when a manifest cannot be used for the requested operation.

    Args:
        message: Error description.
        line_number: Line number where the problem was detected.
        line_content: Raw content of the problematic line.
        file_path: Path to the manifest being parsed.
        expected_arch: Architecture the caller asked for.
        actual_arch: Architecture declared by the manifest.
    """

    __slots__ = (
        "line_number",
        "line_content",
        "file_path",
        "expected_arch",
        "actual_arch",
    )

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
        file_path: Optional[str] = None,
        expected_arch: Optional[str] = None,
        actual_arch: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "line", line_number)
        _add_if(
            details,
            "content",
            _truncate(line_content) if line_content is not None else None,
        )
        _add_if(details, "file", file_path)
        _add_if(details, "expected_arch", expected_arch)
        _add_if(details, "actual_arch", actual_arch)

        super().__init__(message, details)

        self.line_number = line_number
        self.line_content = line_content
        self.file_path = file_path
        self.expected_arch = expected_arch
        self.actual_arch = actual_arch


class NetworkError(CygPkgError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class MirrorError(NetworkError):
    """Raised for failures related to a Cygwin mirror.

    Args:
        message: Error description.
        mirror: Base URL of the mirror involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("mirror",)

    def __init__(
        self,
        message: str,
        *,
        mirror: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.mirror = mirror
        if mirror is not None:
            self.details["mirror"] = mirror


class FileOperationError(CygPkgError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/hash).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
