"""enginecache CLI — Typer-based command-line interface.

Provides the ``enginecache`` command with subcommands for resolving bundles
through the cache, extracting archives, looking up cached paths and pruning
abandoned downloads.

All output uses Rich for formatted terminal display.
"""
