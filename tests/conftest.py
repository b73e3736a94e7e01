from __future__ import annotations

from pathlib import Path
from typing import Iterator, List

import pytest

from cygpkg.utils.console import reconfigure_console
from cygpkg.utils.logger import disable_logging

HASH_A = "a" * 128
HASH_B = "b" * 128
HASH_C = "c" * 128

SAMPLE_MANIFEST = f"""\
# This file was automatically generated at 2024-04-05 19:21:18 UTC.
#
# If you edit it, your edits will be discarded next time the file is
# generated.
release: cygwin
arch: x86_64
setup-timestamp: 1712345678
setup-minimum-version: 2.903
setup-version: 2.932

@ base-cygwin
sdesc: "Initial base installation helper script"
ldesc: "Initial base installation helper script
for new installs."
version: 3.8-1
install: x86_64/release/base-cygwin/base-cygwin-3.8-1-x86_64.tar.xz 1024 {HASH_A}
source: x86_64/release/base-cygwin/base-cygwin-3.8-1-src.tar.xz 2048 {HASH_B}

@ cygwin
sdesc: "The UNIX emulation engine"
category: Base
requires: base-cygwin
version: 3.6.1-1
install: x86_64/release/cygwin/cygwin-3.6.1-1-x86_64.tar.xz 4096 {HASH_C}
depends2: base-cygwin
message: cygwin "Restart your shell
after the update."
[test]
version: 3.7.0-0.1
sdesc: "Test release"
install: x86_64/release/cygwin/cygwin-3.7.0-0.1-x86_64.tar.xz 5000 {HASH_A}
ldesc: "A test build
category: Broken
spanning lines"
depends2: not-a-package

@ libfoo1
sdesc: "Foo runtime"
category: Libs
version: 1.0-1
provides: virtual-foo
install: x86_64/release/foo/libfoo1/libfoo1-1.0-1-x86_64.tar.xz 300 {HASH_A}

@ foo-tool
sdesc: "Foo command line tool"
category: Utils
version: 1.0-1
depends2: virtual-foo (>= 1.0), missing-pkg
build-depends: gcc-core
install: x86_64/release/foo/foo-tool/foo-tool-1.0-1-x86_64.tar.xz 400 {HASH_B}
obsoletes: old-foo
conflicts: other-foo
replace-versions: 0.9-1 0.9-2

@ gcc-core
sdesc: "GNU Compiler Collection (C, OpenMP)"
category: Devel
version: 13.2.1-1
install: x86_64/release/gcc/gcc-core/gcc-core-13.2.1-1-x86_64.tar.xz 900 {HASH_C}

@ old-foo
sdesc: "Obsolete foo"
category: _obsolete
version: 0.9-2
install: x86_64/release/_obsolete/old-foo/old-foo-0.9-2-x86_64.tar.xz 10 {HASH_A}
"""


@pytest.fixture(autouse=True)
def reset_console() -> Iterator[None]:
    """Start every test from a fresh console singleton and unconfigured logging."""
    reconfigure_console()
    yield
    disable_logging()


@pytest.fixture
def manifest_lines() -> List[str]:
    """The sample manifest split into lines (with newlines kept)."""
    return SAMPLE_MANIFEST.splitlines(keepends=True)


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    """The sample manifest written to ``setup.ini`` in a temp directory."""
    path = tmp_path / "setup.ini"
    path.write_text(SAMPLE_MANIFEST, encoding="utf-8")
    return path
