"""List command implementation for cygpkg.

Selects packages from a manifest, expands the selection over its
dependencies and prints the result sorted by name.

Typical usage::

    # Everything in the Base category, with runtime dependencies
    $ cygpkg list -C Base --setup-ini setup.ini

    # Packages matching a regex, without dependencies, as JSON
    $ cygpkg list -r '^perl-' --no-deps --format json

    # Compare against an installation
    $ cygpkg list bash coreutils --root /cygdrive/c/cygwin64
"""

from __future__ import annotations

import sys
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from cygpkg.context import pass_context, CygPkgContext
from cygpkg.commands.common import (
    Selection,
    build_selection,
    effective_arch,
    effective_root,
    locate_manifest,
    run_selection,
    selection_options,
)
from cygpkg.exceptions import CygPkgError
from cygpkg.models import FileRecord, ManifestOptions, Package
from cygpkg.utils import (
    HTTPClient,
    colorize_transfer_state,
    get_logger,
    print_error,
    print_json,
    print_lines,
    print_table,
    print_warning,
)

logger = get_logger("commands.list")


@click.command(name="list")
@selection_options
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option("--long-description", is_flag=True, help="Include long descriptions.")
@click.option("--hash", "show_hash", is_flag=True, help="Include archive hashes.")
@click.option("--obsoletes", is_flag=True, help="Include obsoleted package names.")
@click.option("--conflicts", is_flag=True, help="Include conflicting package names.")
@click.option("--replace-versions", is_flag=True, help="Include replaced versions.")
@pass_context
def list_packages(
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
    output_format: str,
    long_description: bool,
    show_hash: bool,
    obsoletes: bool,
    conflicts: bool,
    replace_versions: bool,
) -> None:
    """List packages selected from a Cygwin manifest.

    NAMES select packages by exact name. With no NAMES and no other
    selection option, every package in the manifest is listed.
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
    options = ManifestOptions(
        keep_long_description=long_description,
        keep_hash=show_hash,
        keep_obsoletes=obsoletes,
        keep_conflicts=conflicts,
        keep_replace_versions=replace_versions,
    )
    target_arch = effective_arch(ctx, arch)

    try:
        manifest_path = asyncio.run(_locate_async(ctx, target_arch, setup_ini))
        result = run_selection(
            manifest_path,
            selection,
            options,
            arch=target_arch,
            root=effective_root(ctx, root),
        )
    except CygPkgError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", exc.details or "<none>")
        sys.exit(1)

    output_format = output_format.lower()
    if output_format == "json":
        _display_json(result)
    elif output_format == "simple":
        _display_simple(result.packages)
    else:
        _display_table(result.packages, options)

    if result.parse_result.unmatched_names and output_format != "json":
        print_warning(
            "Not in manifest: " + ", ".join(result.parse_result.unmatched_names)
        )


async def _locate_async(
    ctx: CygPkgContext,
    arch: str,
    setup_ini: Optional[Path],
) -> Path:
    async with HTTPClient(timeout=ctx.config.timeout) as http:
        path, _ = await locate_manifest(http, ctx.config, arch, setup_ini)
    return path


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _state_of(record: Optional[FileRecord]) -> str:
    if record is None or record.transfer_state is None:
        return ""
    return record.transfer_state.value


def _display_table(packages: List[Package], options: ManifestOptions) -> None:
    """Render packages as a Rich table, adding columns for retained fields."""
    if not packages:
        print_warning("No packages selected")
        return

    show_state = any(
        p.install is not None and p.install.transfer_state is not None for p in packages
    )
    data = [_create_table_row(pkg, options, show_state) for pkg in packages]

    column_styles: Dict[str, Dict[str, Any]] = {
        "Package": {"style": "package", "no_wrap": True},
        "Version": {"justify": "center", "no_wrap": True},
        "Size": {"justify": "right", "no_wrap": True},
        "State": {"justify": "center", "no_wrap": True},
        "Description": {"justify": "left"},
    }

    print_table(
        data,
        title=f"{len(packages)} package(s)",
        column_styles=column_styles,
    )


def _create_table_row(
    pkg: Package,
    options: ManifestOptions,
    show_state: bool,
) -> Dict[str, str]:
    row: Dict[str, str] = {
        "Package": pkg.name,
        "Version": pkg.version or "-",
        "Category": " ".join(pkg.categories),
        "Size": str(pkg.install.size) if pkg.install else "-",
    }
    if show_state:
        row["State"] = colorize_transfer_state(_state_of(pkg.install)) or "-"
    row["Description"] = pkg.description or ""

    if options.keep_hash:
        row["Hash"] = (pkg.install.content_hash or "") if pkg.install else ""
    if options.keep_obsoletes:
        row["Obsoletes"] = ", ".join(pkg.obsoletes)
    if options.keep_conflicts:
        row["Conflicts"] = ", ".join(pkg.conflicts)
    if options.keep_replace_versions:
        row["Replace Versions"] = " ".join(pkg.replace_versions)
    if options.keep_long_description:
        row["Long Description"] = pkg.long_description or ""

    return row


def _display_simple(packages: List[Package]) -> None:
    """One ``name version [state]`` line per package."""
    lines = []
    for pkg in packages:
        parts = [pkg.name, pkg.version or "-"]
        state = _state_of(pkg.install)
        if state:
            parts.append(state)
        lines.append(" ".join(parts))
    print_lines(lines)


def _display_json(result: Selection) -> None:
    parsed = result.parse_result
    print_json(
        {
            "manifest": parsed.header.to_json(),
            "packages": [pkg.to_json() for pkg in result.packages],
            "unmatched": parsed.unmatched_names,
        }
    )
