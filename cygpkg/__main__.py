"""
Executable module for cygpkg.

Running:
    python -m cygpkg

is equivalent to:
    cygpkg

This module forwards execution to the CLI entrypoint defined in
`cygpkg.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Report a CLI import failure on stderr."""
    sys.stderr.write("cygpkg could not start: the command-line interface failed to import.\n")
    sys.stderr.write(f"Python version : {sys.version}\n")
    try:
        from cygpkg.__version__ import __version__

        sys.stderr.write(f"cygpkg version: {__version__}\n")
    except ImportError:
        sys.stderr.write("cygpkg version: <unknown>\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m cygpkg`.

    Returns:
        Exit code returned by the CLI.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from cygpkg.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
