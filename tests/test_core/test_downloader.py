from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from cygpkg.core.downloader import FetchSummary, PackageDownloader
from cygpkg.core.mirrors import Mirror
from cygpkg.exceptions import FileOperationError, NetworkError
from cygpkg.models import FileRecord, Package, TransferState

MIRROR = Mirror("https://m.example.org/cygwin/")
PAYLOAD = b"cygwin archive bytes"
PAYLOAD_SHA256 = hashlib.sha256(PAYLOAD).hexdigest()
LAST_MODIFIED = "Wed, 03 Apr 2024 10:00:00 GMT"


def make_record(name: str = "bash", *, content_hash: Optional[str] = PAYLOAD_SHA256) -> FileRecord:
    return FileRecord(
        relative_path=f"x86_64/release/{name}/{name}-1.0-1-x86_64.tar.xz",
        size=len(PAYLOAD),
        content_hash=content_hash,
        component=name,
    )


def make_client(
    *,
    headers: Optional[Dict[str, str]] = None,
    payload: bytes = PAYLOAD,
) -> AsyncMock:
    """Mock HTTPClient whose HEAD returns ``headers`` and download writes ``payload``."""
    client = AsyncMock()
    head_headers = {"content-length": str(len(PAYLOAD)), "last-modified": LAST_MODIFIED}
    if headers is not None:
        head_headers = headers
    client.head.return_value = MagicMock(headers=httpx.Headers(head_headers))

    async def download(url: str, target: Path) -> httpx.Headers:
        target.write_bytes(payload)
        return httpx.Headers({"last-modified": LAST_MODIFIED})

    client.download.side_effect = download
    return client


@pytest.mark.unit
class TestFetchRecord:
    """Tests for PackageDownloader.fetch_record."""

    @pytest.mark.asyncio
    async def test_new_file_is_downloaded(self, tmp_path: Path) -> None:
        client = make_client()
        record = make_record()
        summary = FetchSummary(records=[record])

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record, summary)

        target = tmp_path / record.relative_path
        assert state is TransferState.NEW
        assert record.transfer_state is TransferState.NEW
        assert target.read_bytes() == PAYLOAD
        assert summary.bytes_transferred == len(PAYLOAD)
        assert record.remote_timestamp is not None
        assert record.remote_timestamp.year == 2024
        client.head.assert_awaited_once_with(MIRROR.join(record.relative_path))
        assert [p.name for p in target.parent.iterdir()] == [target.name]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", [TransferState.UNCHANGED, TransferState.OLDER])
    async def test_suppressed_states_are_skipped(
        self, tmp_path: Path, state: TransferState
    ) -> None:
        """Test records already classified against the local install stay put."""
        client = make_client()
        record = make_record()
        record.transfer_state = state

        result = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert result is state
        client.head.assert_not_awaited()
        client.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_on_mirror(self, tmp_path: Path) -> None:
        client = make_client()
        client.head.side_effect = NetworkError("gone", status_code=404)
        record = make_record()

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.NOT_FOUND
        client.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_head_failure_is_error(self, tmp_path: Path) -> None:
        client = make_client()
        client.head.side_effect = NetworkError("timeout")
        record = make_record()

        assert (
            await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)
            is TransferState.ERROR
        )

    @pytest.mark.asyncio
    async def test_remote_size_mismatch(self, tmp_path: Path) -> None:
        client = make_client(headers={"content-length": "999"})
        record = make_record()

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.ERROR
        client.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_content_length_is_tolerated(self, tmp_path: Path) -> None:
        client = make_client(headers={})
        record = make_record()

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.NEW
        assert record.remote_timestamp is not None

    @pytest.mark.asyncio
    async def test_hash_mismatch_after_download(self, tmp_path: Path) -> None:
        """Test corrupted bytes never replace the target."""
        client = make_client(payload=b"X" * len(PAYLOAD))
        record = make_record()

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        target = tmp_path / record.relative_path
        assert state is TransferState.ERROR
        assert not target.exists()
        assert list(target.parent.iterdir()) == []

    @pytest.mark.asyncio
    async def test_download_failure(self, tmp_path: Path) -> None:
        client = make_client()
        client.download.side_effect = NetworkError("reset")
        record = make_record()

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.ERROR
        assert list((tmp_path / record.relative_path).parent.iterdir()) == []

    @pytest.mark.asyncio
    async def test_verified_local_copy_is_unchanged(self, tmp_path: Path) -> None:
        record = make_record()
        target = tmp_path / record.relative_path
        target.parent.mkdir(parents=True)
        target.write_bytes(PAYLOAD)
        client = make_client()

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.UNCHANGED
        client.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_local_copy_is_replaced(self, tmp_path: Path) -> None:
        record = make_record()
        target = tmp_path / record.relative_path
        target.parent.mkdir(parents=True)
        target.write_bytes(b"old")

        state = await PackageDownloader(make_client(), MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.NEW
        assert target.read_bytes() == PAYLOAD

    @pytest.mark.asyncio
    async def test_size_only_verification_without_hash(self, tmp_path: Path) -> None:
        client = make_client(payload=b"Y" * len(PAYLOAD))
        record = make_record(content_hash=None)

        state = await PackageDownloader(client, MIRROR, tmp_path).fetch_record(record)

        assert state is TransferState.NEW

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, tmp_path: Path) -> None:
        client = make_client()
        record = make_record()

        state = await PackageDownloader(
            client, MIRROR, tmp_path, dry_run=True
        ).fetch_record(record)

        assert state is TransferState.NEW
        client.download.assert_not_awaited()
        assert not (tmp_path / "x86_64").exists()

    @pytest.mark.asyncio
    async def test_path_escaping_cache_is_rejected(self, tmp_path: Path) -> None:
        record = FileRecord(relative_path="../../etc/passwd", size=1)

        with pytest.raises(FileOperationError):
            await PackageDownloader(make_client(), MIRROR, tmp_path).fetch_record(record)


@pytest.mark.unit
class TestFetchPackages:
    """Tests for PackageDownloader.fetch_packages."""

    def _packages(self) -> list:
        bash = Package(
            "bash",
            version="1.0-1",
            install=make_record("bash"),
            source=FileRecord("x86_64/release/bash/bash-1.0-1-src.tar.xz", len(PAYLOAD)),
        )
        gone = Package("gone", version="1.0-1", install=make_record("gone"))
        meta = Package("meta", version="1.0-1")
        return [bash, gone, meta]

    def test_collect_records(self, tmp_path: Path) -> None:
        packages = self._packages()

        without = PackageDownloader(AsyncMock(), MIRROR, tmp_path).collect_records(packages)
        with_src = PackageDownloader(
            AsyncMock(), MIRROR, tmp_path, include_source=True
        ).collect_records(packages)

        assert [r.filename for r in without] == [
            "bash-1.0-1-x86_64.tar.xz",
            "gone-1.0-1-x86_64.tar.xz",
        ]
        assert len(with_src) == 3
        assert with_src[1].filename == "bash-1.0-1-src.tar.xz"

    @pytest.mark.asyncio
    async def test_failures_do_not_abort_the_run(self, tmp_path: Path) -> None:
        client = make_client()
        ok = MagicMock(headers=httpx.Headers({"content-length": str(len(PAYLOAD))}))

        async def head(url: str) -> MagicMock:
            if "/gone/" in url:
                raise NetworkError("gone", status_code=404)
            return ok

        client.head.side_effect = head

        summary = await PackageDownloader(client, MIRROR, tmp_path).fetch_packages(
            self._packages()
        )

        assert [r.transfer_state for r in summary.records] == [
            TransferState.NEW,
            TransferState.NOT_FOUND,
        ]
        assert summary.has_failures
        assert [r.filename for r in summary.failed] == ["gone-1.0-1-x86_64.tar.xz"]
        assert summary.counts == {TransferState.NEW: 1, TransferState.NOT_FOUND: 1}
        assert summary.bytes_transferred == len(PAYLOAD)

    @pytest.mark.asyncio
    async def test_unexpected_exception_marks_error(self, tmp_path: Path) -> None:
        client = make_client()
        client.head.side_effect = RuntimeError("boom")
        packages = [Package("bash", version="1.0-1", install=make_record())]

        summary = await PackageDownloader(client, MIRROR, tmp_path).fetch_packages(packages)

        assert summary.records[0].transfer_state is TransferState.ERROR
        assert summary.has_failures


@pytest.mark.unit
class TestFetchSummary:
    """Tests for FetchSummary tallies."""

    def test_counts_and_failures(self) -> None:
        unchanged = make_record()
        unchanged.transfer_state = TransferState.UNCHANGED
        missing = make_record()
        missing.transfer_state = TransferState.NOT_FOUND
        pending = make_record()
        summary = FetchSummary(records=[unchanged, missing, pending])

        assert summary.counts == {
            TransferState.UNCHANGED: 1,
            TransferState.NOT_FOUND: 1,
        }
        assert summary.failed == [missing]
        assert summary.has_failures

    def test_no_failures(self) -> None:
        record = make_record()
        record.transfer_state = TransferState.UNCHANGED

        assert not FetchSummary(records=[record]).has_failures
