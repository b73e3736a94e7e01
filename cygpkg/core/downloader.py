"""Archive download with size and hash verification.

:class:`PackageDownloader` takes the resolved packages, fetches their
install (and optionally source) archives from a mirror into a local cache
laid out like the mirror itself, and records the outcome of every file as
a :class:`~cygpkg.models.TransferState` on its :class:`FileRecord`:

- ``Unchanged`` / ``Older`` from the local-state comparison: skipped.
- Remote file missing (404): ``Not Found``.
- Remote size differs from the manifest, network failure, or the
  downloaded bytes fail verification: ``Error``.
- A cached copy that already matches: ``Unchanged``.
- Otherwise the file is downloaded and stays ``New``.

Typical usage::

    async with HTTPClient() as http:
        downloader = PackageDownloader(http, mirror, Path("cygwin-packages"))
        summary = await downloader.fetch_packages(packages)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from datetime import datetime
from email.utils import parsedate_to_datetime
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from cygpkg.core.mirrors import Mirror
from cygpkg.exceptions import CygPkgError, NetworkError
from cygpkg.models import FileRecord, Package, TransferState
from cygpkg.utils.filesystem import (
    atomic_move,
    create_temp_file,
    remove_quietly,
    validate_path,
    verify_file,
)
from cygpkg.utils.http import HTTPClient
from cygpkg.utils.logger import get_logger

logger = get_logger("downloader")

__all__ = ["FetchSummary", "PackageDownloader"]


@dataclass
class FetchSummary:
    """Outcome of a fetch run.

    Attributes:
        records: Every file considered, in submission order.
        bytes_transferred: Bytes written for newly downloaded files.
    """

    records: List[FileRecord] = field(default_factory=list)
    bytes_transferred: int = 0

    @property
    def counts(self) -> Dict[TransferState, int]:
        counts: Dict[TransferState, int] = {}
        for record in self.records:
            if record.transfer_state is not None:
                counts[record.transfer_state] = counts.get(record.transfer_state, 0) + 1
        return counts

    @property
    def failed(self) -> List[FileRecord]:
        """Records that ended as ``Not Found`` or ``Error``."""
        return [
            r
            for r in self.records
            if r.transfer_state in (TransferState.NOT_FOUND, TransferState.ERROR)
        ]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


def _parse_last_modified(headers: Mapping[str, str]) -> Optional[datetime]:
    value = headers.get("last-modified")
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable Last-Modified header: %r", value)
        return None


class PackageDownloader:
    """Downloads and verifies package archives from one mirror.

    Args:
        client: HTTP client; its semaphore bounds download concurrency.
        mirror: Mirror to download from.
        dest_dir: Local cache root; files land at ``dest_dir/<relative_path>``.
        include_source: Fetch source archives as well as install archives.
        dry_run: Perform the remote checks but write nothing.
    """

    def __init__(
        self,
        client: HTTPClient,
        mirror: Mirror,
        dest_dir: Path,
        *,
        include_source: bool = False,
        dry_run: bool = False,
    ) -> None:
        self.client = client
        self.mirror = mirror
        self.dest_dir = Path(dest_dir)
        self.include_source = include_source
        self.dry_run = dry_run

    def collect_records(self, packages: Iterable[Package]) -> List[FileRecord]:
        """File records to fetch for ``packages``, in package order."""
        records: List[FileRecord] = []
        for package in packages:
            if package.install is not None:
                records.append(package.install)
            if self.include_source and package.source is not None:
                records.append(package.source)
        return records

    async def fetch_packages(self, packages: Iterable[Package]) -> FetchSummary:
        """Fetch every archive of ``packages`` concurrently.

        Failures of individual files are recorded on their records and
        never abort the run.
        """
        summary = FetchSummary(records=self.collect_records(packages))
        tasks = [
            asyncio.create_task(self.fetch_record(record, summary))
            for record in summary.records
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for record, result in zip(summary.records, results):
            if isinstance(result, Exception):
                logger.error("Failed to fetch %s: %s", record.relative_path, result)
                record.transfer_state = TransferState.ERROR

        logger.info(
            "Fetched %d file(s), %d byte(s) transferred",
            len(summary.records),
            summary.bytes_transferred,
        )
        return summary

    async def fetch_record(
        self,
        record: FileRecord,
        summary: Optional[FetchSummary] = None,
    ) -> TransferState:
        """Bring one archive up to date and return its final state."""
        state = record.transfer_state
        if state is not None and state.suppresses_download:
            logger.debug("Skipping %s (%s)", record.relative_path, state)
            return state

        url = self.mirror.join(record.relative_path)
        target = validate_path(self.dest_dir / record.relative_path, base_dir=self.dest_dir)

        try:
            response = await self.client.head(url)
        except NetworkError as exc:
            if exc.status_code == 404:
                logger.warning("Not on mirror: %s", record.relative_path)
                return self._finish(record, TransferState.NOT_FOUND)
            logger.warning("Cannot check %s: %s", record.relative_path, exc)
            return self._finish(record, TransferState.ERROR)

        record.remote_timestamp = _parse_last_modified(response.headers)

        remote_size = response.headers.get("content-length")
        if remote_size is not None and remote_size.isdigit() and int(remote_size) != record.size:
            logger.warning(
                "Size mismatch for %s: manifest %d, mirror %s",
                record.relative_path,
                record.size,
                remote_size,
            )
            return self._finish(record, TransferState.ERROR)

        if verify_file(target, record.size, record.content_hash):
            logger.debug("Up to date: %s", target)
            return self._finish(record, TransferState.UNCHANGED)

        if self.dry_run:
            logger.info("Would download %s", url)
            return self._finish(record, TransferState.NEW)

        return await self._download(record, url, target, summary)

    async def _download(
        self,
        record: FileRecord,
        url: str,
        target: Path,
        summary: Optional[FetchSummary],
    ) -> TransferState:
        temp = create_temp_file(target)
        try:
            headers = await self.client.download(url, temp)

            if not verify_file(temp, record.size, record.content_hash):
                logger.error("Verification failed for %s", record.relative_path)
                return self._finish(record, TransferState.ERROR)

            atomic_move(temp, target)
        except CygPkgError as exc:
            logger.error("Download of %s failed: %s", record.relative_path, exc)
            return self._finish(record, TransferState.ERROR)
        finally:
            remove_quietly(temp)

        record.remote_timestamp = _parse_last_modified(headers) or record.remote_timestamp
        if summary is not None:
            summary.bytes_transferred += record.size

        logger.info("Downloaded %s", record.relative_path)
        return self._finish(record, TransferState.NEW)

    @staticmethod
    def _finish(record: FileRecord, state: TransferState) -> TransferState:
        record.transfer_state = state
        return state
