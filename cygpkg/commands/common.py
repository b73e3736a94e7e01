"""Selection options and manifest pipeline shared by cygpkg commands.

Both ``cygpkg list`` and ``cygpkg fetch`` select packages the same way and
run the same pipeline before they diverge:

1. build :class:`SelectionCriteria` from the command line (bad regular
   expressions fail here, before anything is read),
2. locate the manifest (local ``--setup-ini`` or a download from a mirror),
3. parse it, collecting targets on the way,
4. expand the targets over their dependencies,
5. optionally compare them against a local Cygwin installation.
"""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

import click

from cygpkg.config import CygPkgConfig
from cygpkg.constants import SUPPORTED_ARCHES
from cygpkg.context import CygPkgContext
from cygpkg.exceptions import SelectionError
from cygpkg.models import ManifestOptions, Package, SelectionCriteria
from cygpkg.core import (
    DependencyResolver,
    LocalStateComparator,
    ManifestParser,
    ManifestParseResult,
    Mirror,
    choose_mirror,
    load_local_state,
)
from cygpkg.core.mirrors import download_manifest, fetch_mirror_list
from cygpkg.utils import HTTPClient, get_logger

logger = get_logger("commands.common")

F = TypeVar("F", bound=Callable[..., Any])


def selection_options(func: F) -> F:
    """Attach the package selection arguments and options to a command."""
    decorators = [
        click.argument("names", nargs=-1),
        click.option(
            "--category",
            "-C",
            "categories",
            multiple=True,
            help="Select every package in CATEGORY (repeatable, case-insensitive).",
        ),
        click.option(
            "--package-set",
            "-s",
            "package_sets",
            multiple=True,
            help="Select packages whose archives live under release/SET/ (repeatable).",
        ),
        click.option(
            "--regex",
            "-r",
            "regexes",
            multiple=True,
            help="Select packages whose name matches REGEX (repeatable).",
        ),
        click.option(
            "--deps/--no-deps",
            default=None,
            help="Include runtime dependencies of the selection (default: on).",
        ),
        click.option(
            "--build-deps",
            is_flag=True,
            help="Include build dependencies of the selection.",
        ),
        click.option(
            "--setup-ini",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Read this manifest instead of downloading one.",
        ),
        click.option(
            "--arch",
            type=click.Choice(list(SUPPORTED_ARCHES)),
            help="Target architecture (default from config, else x86_64).",
        ),
        click.option(
            "--root",
            type=click.Path(file_okay=False, path_type=Path),
            help="Cygwin root to compare installed versions against.",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_selection(
    config: CygPkgConfig,
    *,
    names: Sequence[str],
    categories: Sequence[str],
    package_sets: Sequence[str],
    regexes: Sequence[str],
    deps: Optional[bool],
    build_deps: bool,
) -> SelectionCriteria:
    """Build selection criteria, reporting bad patterns as usage errors."""
    try:
        return SelectionCriteria.build(
            names=names,
            categories=categories,
            package_sets=package_sets,
            regexes=regexes,
            include_runtime_deps=config.include_runtime_deps if deps is None else deps,
            include_build_deps=build_deps,
        )
    except SelectionError as exc:
        raise click.BadParameter(str(exc), param_hint="'--regex'") from exc


@dataclass
class Selection:
    """Result of the shared pipeline."""

    parse_result: ManifestParseResult
    packages: List[Package] = field(default_factory=list)
    manifest_path: Optional[Path] = None


async def select_mirror(client: HTTPClient, config: CygPkgConfig) -> Mirror:
    """The configured mirror, or a random one from the mirror list."""
    if config.mirror:
        return Mirror(url=config.mirror)
    mirrors = await fetch_mirror_list(client, config.mirror_list_url)
    return choose_mirror(mirrors)


async def locate_manifest(
    client: HTTPClient,
    config: CygPkgConfig,
    arch: str,
    setup_ini: Optional[Path],
) -> Tuple[Path, Optional[Mirror]]:
    """Path of the manifest to read, downloading it when none is given."""
    local = setup_ini or config.setup_ini
    if local is not None:
        return local, None

    mirror = await select_mirror(client, config)
    path = await download_manifest(client, mirror, arch, config.cache_dir)
    return path, mirror


def run_selection(
    manifest_path: Path,
    selection: SelectionCriteria,
    options: ManifestOptions,
    *,
    arch: str,
    root: Optional[Path],
) -> Selection:
    """Parse, resolve and (optionally) compare against ``root``.

    An empty selection selects every package in the manifest.
    """
    parser = ManifestParser(selection, options, expected_arch=arch)
    result = parser.parse_file(manifest_path)

    if selection.is_empty:
        result.targets.extend(pkg.name for pkg in result.index)

    resolver = DependencyResolver(
        result.index,
        include_runtime_deps=selection.include_runtime_deps,
        include_build_deps=selection.include_build_deps,
    )
    resolver.resolve(result.targets)

    packages = [
        result.index.by_name[name]
        for name in result.targets.sorted_names()
        if name in result.index
    ]

    if root is not None:
        state = load_local_state(root, [p.name for p in packages])
        LocalStateComparator(state).annotate(packages)

    return Selection(parse_result=result, packages=packages, manifest_path=manifest_path)


def effective_arch(ctx: CygPkgContext, arch: Optional[str]) -> str:
    return arch or ctx.config.arch


def effective_root(ctx: CygPkgContext, root: Optional[Path]) -> Optional[Path]:
    return root or ctx.config.root
