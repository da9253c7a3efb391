"""Ledger Client — Package."""

from ledger_client.client import LedgerClient, LedgerMode, SYNTHETIC_PREFIX
from ledger_client.config import LedgerProfile

__all__ = ["LedgerClient", "LedgerMode", "LedgerProfile", "SYNTHETIC_PREFIX"]
