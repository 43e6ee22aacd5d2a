"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "BalanceService": "school_ledger.services.balance_service",
    "LedgerService": "school_ledger.services.ledger_service",
    "SupabaseService": "school_ledger.services.common",
    "compute_balance": "school_ledger.services.balance_service",
    "extract_tags": "school_ledger.services.remark_tags",
    "monthly_breakdown": "school_ledger.services.balance_service",
    "period_balances": "school_ledger.services.balance_service",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
