from __future__ import annotations

from pathlib import Path

import pytest

from cygpkg.core.local_state import (
    LocalState,
    LocalStateComparator,
    load_local_state,
    read_installed_database,
    scan_source_directories,
)
from cygpkg.models import FileRecord, Package, TransferState
from cygpkg.utils.version_utils import compare_versions, parse_version

INSTALLED_DB = """\
INSTALLED.DB 3
base-cygwin base-cygwin-3.8-1.tar.bz2 0
cygwin cygwin-3.6.1-1-x86_64.tar.xz 1
gcc-core gcc-core-13.2.1-1-noarch.tar.zst 0
broken
mismatch other-1.0.tar.xz 0
"""


def same(a, b: str) -> bool:
    return compare_versions(a, parse_version(b)) == 0


@pytest.mark.unit
class TestReadInstalledDatabase:
    """Tests for read_installed_database."""

    def test_versions_extracted(self) -> None:
        installed = read_installed_database(INSTALLED_DB.splitlines())

        assert sorted(installed) == ["base-cygwin", "cygwin", "gcc-core"]
        assert str(installed["base-cygwin"]) == "3.8-1"
        assert str(installed["cygwin"]) == "3.6.1-1"
        assert str(installed["gcc-core"]) == "13.2.1-1"

    def test_header_line_is_skipped(self) -> None:
        lines = ["foo foo-1.0.tar.xz 0", "bar bar-2.0.tar.xz 0"]

        assert list(read_installed_database(lines)) == ["bar"]

    def test_empty_input(self) -> None:
        assert read_installed_database([]) == {}


@pytest.mark.unit
class TestScanSourceDirectories:
    """Tests for scan_source_directories."""

    def test_matches_requested_names(self) -> None:
        entries = ["bash-5.2.21-1.src", "perl-Text-1.0-1.src", "notes", "zsh-5.9-1.src"]

        found = scan_source_directories(entries, ["bash", "perl", "perl-Text"])

        assert sorted(found) == ["bash", "perl-Text"]
        assert same(found["bash"], "5.2.21-1")
        assert same(found["perl-Text"], "1.0-1")

    def test_longest_name_prefix_wins(self) -> None:
        entries = ["foo-2-1.0-1.src", "foo-3.1-1.src"]

        found = scan_source_directories(entries, ["foo", "foo-2"])

        assert sorted(found) == ["foo", "foo-2"]
        assert same(found["foo-2"], "1.0-1")
        assert same(found["foo"], "3.1-1")

    def test_version_must_start_with_digit(self) -> None:
        assert scan_source_directories(["foo-bar.src"], ["foo"]) == {}


@pytest.mark.unit
class TestLoadLocalState:
    """Tests for load_local_state against a directory tree."""

    def test_reads_database_and_sources(self, tmp_path: Path) -> None:
        db = tmp_path / "etc" / "setup" / "installed.db"
        db.parent.mkdir(parents=True)
        db.write_text(INSTALLED_DB, encoding="utf-8")
        (tmp_path / "usr" / "src" / "cygwin-3.5.0-1.src").mkdir(parents=True)

        state = load_local_state(tmp_path)

        assert sorted(state.binaries) == ["base-cygwin", "cygwin", "gcc-core"]
        assert list(state.sources) == ["cygwin"]
        assert not state.is_empty

    def test_missing_root_is_empty(self, tmp_path: Path) -> None:
        state = load_local_state(tmp_path / "nowhere")

        assert state.is_empty


@pytest.mark.unit
class TestLocalStateComparator:
    """Tests for LocalStateComparator."""

    @pytest.mark.parametrize(
        "manifest,installed,expected",
        [
            ("1.0", "1.0", TransferState.UNCHANGED),
            ("0.9", "1.0", TransferState.OLDER),
            ("1.1", "1.0", TransferState.NEW),
        ],
    )
    def test_classify(
        self, manifest: str, installed: str, expected: TransferState
    ) -> None:
        assert LocalStateComparator.classify(manifest, parse_version(installed)) is expected

    def test_classify_absent(self) -> None:
        assert LocalStateComparator.classify("1.0", None) is TransferState.NEW

    def test_annotate(self) -> None:
        state = LocalState(
            binaries={"a": parse_version("1.0"), "b": parse_version("2.0")},
            sources={"a": parse_version("0.9")},
        )
        a = Package(
            "a",
            version="1.0",
            install=FileRecord("x86_64/release/a/a-1.0.tar.xz", 1),
            source=FileRecord("x86_64/release/a/a-1.0-src.tar.xz", 1),
        )
        b = Package("b", version="1.5", install=FileRecord("x86_64/release/b/b.tar.xz", 1))
        c = Package("c", version="1.0", install=FileRecord("x86_64/release/c/c.tar.xz", 1))

        LocalStateComparator(state).annotate([a, b, c])

        assert a.install.transfer_state is TransferState.UNCHANGED
        assert a.source.transfer_state is TransferState.NEW
        assert b.install.transfer_state is TransferState.OLDER
        assert c.install.transfer_state is TransferState.NEW

    def test_annotate_without_state(self) -> None:
        pkg = Package("a", version="1.0", install=FileRecord("x86_64/release/a/a.tar.xz", 1))

        LocalStateComparator().annotate([pkg])

        assert pkg.install.transfer_state is TransferState.NEW
