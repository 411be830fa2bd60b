"""
LedgerSync CLI Module.

Provides command-line interface for LedgerSync operations.
"""

from ledgersync.cli.main import main, cli

__all__ = ["main", "cli"]
