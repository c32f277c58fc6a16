"""
CLI module for serieswatch.

This module contains subcommands organized by domain:
- track: Follow, unfollow and check series
- releases: List and dismiss new releases
- catalog: Direct catalog provider lookups
"""

from serieswatch.cli.common import console, get_library, get_provider, get_store, open_runtime, ui

__all__ = [
    "console",
    "get_library",
    "get_provider",
    "get_store",
    "open_runtime",
    "ui",
]
