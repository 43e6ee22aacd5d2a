"""API router package."""

from school_ledger.routers import balance, ledger

__all__ = [
    "balance",
    "ledger",
]
