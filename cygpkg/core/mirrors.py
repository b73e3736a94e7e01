"""
Cygwin mirror discovery and manifest download.

The official mirror list is a text file with one ``url;host;region;country``
entry per line. When it cannot be downloaded, a small built-in list is used
instead.
"""

from __future__ import annotations

import random
from pathlib import Path
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from cygpkg.constants import DEFAULT_MIRROR_LIST_URL, FALLBACK_MIRRORS, MANIFEST_FILENAMES
from cygpkg.exceptions import MirrorError, NetworkError
from cygpkg.utils.filesystem import atomic_move, create_temp_file, remove_quietly
from cygpkg.utils.http import HTTPClient
from cygpkg.utils.logger import get_logger

logger = get_logger("mirrors")

__all__ = [
    "Mirror",
    "choose_mirror",
    "download_manifest",
    "fetch_mirror_list",
    "parse_mirror_list",
]


@dataclass(frozen=True)
class Mirror:
    """One entry of the mirror list."""

    url: str
    host: str = ""
    region: str = ""
    country: str = ""

    @property
    def is_https(self) -> bool:
        return self.url.lower().startswith("https://")

    def join(self, relative_path: str) -> str:
        """Absolute URL of ``relative_path`` on this mirror."""
        return f"{self.url.rstrip('/')}/{relative_path.lstrip('/')}"


def parse_mirror_list(lines: Iterable[str]) -> List[Mirror]:
    """Parse ``url;host;region;country`` lines, skipping blanks and comments."""
    mirrors: List[Mirror] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        parts = [part.strip() for part in line.split(";")]
        url = parts[0]
        if "://" not in url:
            logger.debug("Skipping mirror entry without scheme: %r", line)
            continue

        parts += [""] * (4 - len(parts))
        mirrors.append(Mirror(url=url, host=parts[1], region=parts[2], country=parts[3]))
    return mirrors


async def fetch_mirror_list(
    client: HTTPClient,
    url: str = DEFAULT_MIRROR_LIST_URL,
) -> List[Mirror]:
    """Download and parse the mirror list, falling back to built-in mirrors."""
    try:
        text = await client.get_text(url)
    except NetworkError as exc:
        logger.warning("Could not fetch mirror list from %s: %s", url, exc)
        return parse_mirror_list(FALLBACK_MIRRORS)

    mirrors = parse_mirror_list(text.splitlines())
    if not mirrors:
        logger.warning("Mirror list at %s is empty; using built-in mirrors", url)
        return parse_mirror_list(FALLBACK_MIRRORS)

    logger.debug("Fetched %d mirror(s) from %s", len(mirrors), url)
    return mirrors


def choose_mirror(
    mirrors: Sequence[Mirror],
    *,
    rng: Optional[random.Random] = None,
) -> Mirror:
    """Pick a random mirror, preferring ``https`` ones.

    Raises:
        MirrorError: ``mirrors`` is empty.
    """
    if not mirrors:
        raise MirrorError("No mirrors available")

    chooser = rng or random.Random()
    secure = [m for m in mirrors if m.is_https]
    chosen = chooser.choice(secure or list(mirrors))
    logger.info("Using mirror %s", chosen.url)
    return chosen


async def download_manifest(
    client: HTTPClient,
    mirror: Mirror,
    arch: str,
    dest_dir: Path,
    *,
    filenames: Sequence[str] = MANIFEST_FILENAMES,
) -> Path:
    """Download the manifest for ``arch`` into ``dest_dir/<arch>/``.

    Candidate file names are tried in order; a 404 moves on to the next.

    Returns:
        Path of the downloaded manifest.

    Raises:
        MirrorError: No candidate could be downloaded.
    """
    last_exc: Optional[NetworkError] = None

    for filename in filenames:
        url = mirror.join(f"{arch}/{filename}")
        target = Path(dest_dir) / arch / filename
        temp = create_temp_file(target)

        try:
            await client.download(url, temp)
        except NetworkError as exc:
            remove_quietly(temp)
            last_exc = exc
            if exc.status_code == 404:
                logger.debug("No %s on %s", filename, mirror.url)
                continue
            raise MirrorError(
                f"Failed to download manifest from {mirror.url}",
                mirror=mirror.url,
                url=url,
                status_code=exc.status_code,
            ) from exc

        atomic_move(temp, target)
        logger.info("Downloaded manifest %s", url)
        return target

    raise MirrorError(
        f"No manifest for {arch} found on {mirror.url}",
        mirror=mirror.url,
    ) from last_exc
