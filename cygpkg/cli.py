"""
The ``cygpkg`` command.

The click group owns the options shared by every subcommand (config file,
verbosity, color) and builds the :class:`~cygpkg.context.CygPkgContext`
that ``list`` and ``fetch`` receive. :func:`main` is the console-script
entry point and turns failures into exit codes:

====  ==========================================================
0     success
1     cygpkg error (bad config, manifest, network), or a crash
2     usage error reported by click (bad option, bad regex)
130   interrupted
====  ==========================================================
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from cygpkg.config import load_config
from cygpkg.__version__ import __version__
from cygpkg.context import CygPkgContext
from cygpkg.commands.list import list_packages
from cygpkg.commands.fetch import fetch
from cygpkg.exceptions import ConfigError, CygPkgError, ManifestError
from cygpkg.utils.logger import get_logger, setup_logging, verbosity_to_level
from cygpkg.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="CYGPKG_CONFIG",
    help="cygpkg.toml or pyproject.toml to read settings from.",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log progress to stderr (-v info, -vv debug).",
)
@click.option(
    "--color/--no-color",
    default=True,
    envvar="CYGPKG_COLOR",
    help="Color tables and status lines.",
)
@click.version_option(
    version=__version__,
    prog_name="cygpkg",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """Query, resolve and fetch packages from Cygwin setup.ini manifests.

    \b
    Commands:
      list     Show selected packages, their dependencies and local state
      fetch    Download the selected archives from a mirror

    \b
    Examples:
      cygpkg list -C Base --setup-ini setup.ini
      cygpkg list bash --root /cygdrive/c/cygwin64 --format json
      cygpkg -v fetch gcc-core --source
    """
    _apply_color_choice(color)

    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("cygpkg %s, log level %s", __version__, logging.getLevelName(level))

    try:
        settings = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    state = CygPkgContext()
    state.config = settings
    state.config_path = config or settings.source_path
    state.verbose = verbose
    state.color = color
    ctx.obj = state

    if settings.source_path:
        logger.debug("Settings from %s: %s", settings.source_path, settings.to_log_dict())


def _apply_color_choice(color: bool) -> None:
    """Mirror ``--no-color`` into NO_COLOR, which both console and logger read."""
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()


cli.add_command(list_packages)
cli.add_command(fetch)


def main() -> int:
    """Run the CLI and return its exit code (see the module docstring)."""
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except CygPkgError as exc:
        print_error(str(exc))
        if isinstance(exc, ManifestError) and exc.actual_arch:
            print_warning(f"Pass --arch {exc.actual_arch} to read this manifest")
        logger.debug("Error details: %s", exc.details or "<none>", exc_info=True)
        return 1

    except KeyboardInterrupt:
        print_warning("\nInterrupted")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in cygpkg")
        return 1


if __name__ == "__main__":
    sys.exit(main())
