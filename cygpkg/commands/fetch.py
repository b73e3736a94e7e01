"""Fetch command implementation for cygpkg.

Downloads the archives of the selected packages (and their dependencies)
from a Cygwin mirror into a local directory laid out like the mirror.
Every file is checked against the size and hash listed in the manifest;
files already present and intact are left alone.

Typical usage::

    # Mirror the Base category into ./cygwin-packages
    $ cygpkg fetch -C Base

    # Source archives too, from a fixed mirror
    $ cygpkg fetch gcc-core --source --mirror https://mirrors.kernel.org/sourceware/cygwin/

    # Only report what would be downloaded
    $ cygpkg fetch -r '^python3' --dry-run
"""

from __future__ import annotations

import sys
import click
import asyncio
import dataclasses
import functools
from pathlib import Path
from typing import Optional, Tuple

from cygpkg.config import CygPkgConfig
from cygpkg.context import pass_context, CygPkgContext
from cygpkg.commands.common import (
    build_selection,
    effective_arch,
    effective_root,
    locate_manifest,
    run_selection,
    select_mirror,
    selection_options,
)
from cygpkg.core import FetchSummary, Mirror, PackageDownloader
from cygpkg.exceptions import CygPkgError
from cygpkg.models import ManifestOptions, SelectionCriteria, TransferState
from cygpkg.utils import (
    HTTPClient,
    colorize_transfer_state,
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.fetch")


@click.command()
@selection_options
@click.option("--mirror", help="Mirror base URL (default: random from the mirror list).")
@click.option(
    "--dest",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to download into (default from config).",
)
@click.option(
    "--source/--no-source",
    default=False,
    help="Also fetch source archives.",
)
@click.option("--dry-run", is_flag=True, help="Check the mirror but download nothing.")
@pass_context
def fetch(
    ctx: CygPkgContext,
    names: Tuple[str, ...],
    categories: Tuple[str, ...],
    package_sets: Tuple[str, ...],
    regexes: Tuple[str, ...],
    deps: Optional[bool],
    build_deps: bool,
    setup_ini: Optional[Path],
    arch: Optional[str],
    root: Optional[Path],
    mirror: Optional[str],
    dest: Optional[Path],
    source: bool,
    dry_run: bool,
) -> None:
    """Download archives of the selected packages from a mirror.

    Exits with status 1 if any file was not found on the mirror or failed
    verification.
    """
    selection = build_selection(
        ctx.config,
        names=names,
        categories=categories,
        package_sets=package_sets,
        regexes=regexes,
        deps=deps,
        build_deps=build_deps,
    )
    if selection.is_empty:
        raise click.UsageError("Select at least one package to fetch.")

    config = dataclasses.replace(
        ctx.config,
        mirror=mirror or ctx.config.mirror,
        cache_dir=dest or ctx.config.cache_dir,
    )

    try:
        summary = asyncio.run(
            _fetch_async(
                config,
                selection,
                arch=effective_arch(ctx, arch),
                root=effective_root(ctx, root),
                setup_ini=setup_ini,
                include_source=source,
                dry_run=dry_run,
            )
        )
    except CygPkgError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", exc.details or "<none>")
        sys.exit(1)

    _display_summary(summary, dry_run)
    sys.exit(1 if summary.has_failures else 0)


async def _fetch_async(
    config: CygPkgConfig,
    selection: SelectionCriteria,
    *,
    arch: str,
    root: Optional[Path],
    setup_ini: Optional[Path],
    include_source: bool,
    dry_run: bool,
) -> FetchSummary:
    """Locate the manifest, select packages and download their archives."""
    async with HTTPClient(
        timeout=config.timeout,
        max_concurrency=config.max_concurrency,
    ) as http:
        manifest_path, manifest_mirror = await locate_manifest(
            http, config, arch, setup_ini
        )
        mirror: Mirror = manifest_mirror or await select_mirror(http, config)

        # Manifest parsing blocks; run it off the event loop
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            functools.partial(
                run_selection,
                manifest_path,
                selection,
                ManifestOptions(keep_hash=True),
                arch=arch,
                root=root,
            ),
        )
        for name in result.parse_result.unmatched_names:
            print_warning(f"Not in manifest: {name}")

        logger.info("Fetching %d package(s) from %s", len(result.packages), mirror.url)
        downloader = PackageDownloader(
            http,
            mirror,
            config.cache_dir,
            include_source=include_source,
            dry_run=dry_run,
        )
        return await downloader.fetch_packages(result.packages)


def _display_summary(summary: FetchSummary, dry_run: bool) -> None:
    rows = [
        {
            "File": record.filename,
            "Size": str(record.size),
            "State": colorize_transfer_state(
                record.transfer_state.value if record.transfer_state else None
            ),
        }
        for record in summary.records
    ]
    print_table(rows, title="Fetch results", column_styles={"Size": {"justify": "right"}})

    counts = summary.counts
    for record in summary.failed:
        print_error(f"{record.relative_path}: {record.transfer_state}")

    if dry_run:
        print_success(
            f"Dry run: {counts.get(TransferState.NEW, 0)} file(s) would be downloaded"
        )
    elif not summary.has_failures:
        print_success(
            f"{len(summary.records)} file(s) up to date, "
            f"{summary.bytes_transferred} byte(s) downloaded"
        )
