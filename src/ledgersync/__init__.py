"""
LedgerSync - keeps a personal-finance data file in sync with its store.

Detects external modification by fingerprint, merges three-way against
the last synced snapshot, and hands unresolvable conflicts to the caller.
"""

__version__ = "1.0.0"
__author__ = "LedgerSync Team"

from ledgersync.core.config import LedgerSyncConfig
from ledgersync.core.session import Session

__all__ = ["LedgerSyncConfig", "Session", "__version__"]
