"""CLI subcommands for cygpkg."""
