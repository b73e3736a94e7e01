"""
Filesystem utilities for cygpkg.

This module provides safe helpers for reading manifests and installation
databases (optionally ``xz`` or ``bzip2`` compressed), hashing archives,
and moving downloads into place. All filesystem errors are normalized to
``FileOperationError``.
"""

from __future__ import annotations

import bz2
import os
import lzma
import hashlib
import tempfile
from pathlib import Path
from contextlib import contextmanager
from typing import IO, Iterator, Optional, Union

from cygpkg.utils.logger import get_logger
from cygpkg.exceptions import FileOperationError
from cygpkg.constants import DOWNLOAD_CHUNK_SIZE, HASH_ALGORITHMS_BY_LENGTH


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path, *, must_exist: bool = True) -> Path:
    """Validate and resolve a file path."""
    if must_exist:
        if not path.exists():
            raise FileOperationError(
                f"File not found: {path}",
                file_path=str(path),
                operation="read",
            )
        if not path.is_file():
            raise FileOperationError(
                f"Not a file: {path}",
                file_path=str(path),
                operation="read",
            )
    return path.resolve()


def _open_text(path: Path, encoding: str) -> IO[str]:
    """Open ``path`` for text reading, decompressing by suffix."""
    suffix = path.suffix.lower()
    if suffix == ".xz":
        return lzma.open(path, "rt", encoding=encoding, errors="replace")
    if suffix == ".bz2":
        return bz2.open(path, "rt", encoding=encoding, errors="replace")
    return open(path, "r", encoding=encoding, errors="replace")


@contextmanager
def iter_text_lines(
    file_path: PathLike,
    *,
    encoding: str = "utf-8",
) -> Iterator[Iterator[str]]:
    """Stream the lines of a plain, ``.xz`` or ``.bz2`` text file.

    Undecodable bytes are replaced rather than rejected; manifests carry
    descriptions in assorted encodings.

    Example::

        with iter_text_lines("setup.xz") as lines:
            for line in lines:
                ...
    """
    path = _validated_file(Path(file_path))

    try:
        handle = _open_text(path, encoding)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to open file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc

    with handle:
        try:
            yield iter(handle)
        except (OSError, EOFError, lzma.LZMAError) as exc:
            raise FileOperationError(
                f"Failed to read file: {exc}",
                file_path=str(path),
                operation="read",
                original_error=exc,
            ) from exc


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------


def hash_algorithm_for(digest: str) -> Optional[str]:
    """Digest algorithm implied by the length of a hex digest."""
    return HASH_ALGORITHMS_BY_LENGTH.get(len(digest))


def file_digest(file_path: PathLike, algorithm: str) -> str:
    """Hex digest of a file, read in chunks."""
    path = Path(file_path)
    hasher = hashlib.new(algorithm)

    try:
        with open(path, "rb") as handle:
            for chunk in iter(lambda: handle.read(DOWNLOAD_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to hash file: {exc}",
            file_path=str(path),
            operation="hash",
            original_error=exc,
        ) from exc

    return hasher.hexdigest()


def verify_file(
    file_path: PathLike,
    size: int,
    content_hash: Optional[str] = None,
) -> bool:
    """Check that a file exists with the expected size and digest.

    With no ``content_hash`` (or one of unrecognized length) only the size
    is compared.
    """
    path = Path(file_path)
    if not path.is_file():
        return False

    actual_size = path.stat().st_size
    if actual_size != size:
        logger.debug("Size mismatch for %s: %d != %d", path, actual_size, size)
        return False

    if not content_hash:
        return True

    algorithm = hash_algorithm_for(content_hash)
    if algorithm is None:
        logger.debug("Unrecognized digest length %d for %s", len(content_hash), path)
        return True

    actual = file_digest(path, algorithm)
    if actual.lower() != content_hash.lower():
        logger.debug("%s mismatch for %s", algorithm, path)
        return False
    return True


# ---------------------------------------------------------------------------
# Download placement
# ---------------------------------------------------------------------------


def create_temp_file(target: PathLike) -> Path:
    """Create an empty temporary file next to ``target``.

    The caller owns the file and must move it into place or remove it.
    """
    path = Path(target)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".part",
        )
        os.close(fd)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create temporary file: {exc}",
            file_path=str(path),
            operation="write",
            original_error=exc,
        ) from exc
    return Path(name)


def atomic_move(source: PathLike, target: PathLike) -> None:
    """Replace ``target`` with ``source`` in a single rename."""
    src, dst = Path(source), Path(target)
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        src.replace(dst)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to move file into place: {exc}",
            file_path=str(dst),
            operation="move",
            original_error=exc,
        ) from exc


def remove_quietly(file_path: PathLike) -> None:
    """Delete a leftover file, logging instead of raising on failure."""
    path = Path(file_path)
    try:
        if path.exists():
            path.unlink()
            logger.debug("Cleaned up temporary file: %s", path)
    except OSError as exc:
        logger.warning("Failed to clean up temporary file %s: %s", path, exc)


def validate_path(
    path: PathLike,
    *,
    base_dir: Optional[PathLike] = None,
) -> Path:
    """Resolve and validate a filesystem path.

    If ``base_dir`` is provided, the resolved path must be within it.
    """
    resolved = Path(path).expanduser().resolve(strict=False)

    if base_dir:
        base = Path(base_dir).expanduser().resolve(strict=False)
        try:
            resolved.relative_to(base)
        except ValueError:
            raise FileOperationError(
                f"Path outside allowed base directory: {resolved}",
                file_path=str(path),
                operation="validate",
            )

    return resolved
