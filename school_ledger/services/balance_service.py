"""Period balance aggregation over ledger entries."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal
from enum import StrEnum
from typing import Any

from school_ledger.config import settings
from school_ledger.schemas.ledger import EntryKind, LedgerEntry, LedgerTotals, MonthlyTotals
from school_ledger.services.ledger_service import LedgerService
from school_ledger.utils.errors import InvalidInputError
from school_ledger.utils.time import month_range, now_local, start_of_day, start_of_year
from supabase import Client

Predicate = Callable[[datetime], bool]

ZERO = Decimal("0")


class PeriodWindow(StrEnum):
    """Fixed reporting windows, each ending at ``now`` (open upper bound)."""

    TODAY = "today"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    THIS_YEAR = "this_year"
    ALL_TIME = "all_time"


def window_start(window: PeriodWindow, now: datetime) -> datetime | None:
    """Return the inclusive lower bound of ``window`` relative to ``now``."""
    today = start_of_day(now)
    if window is PeriodWindow.TODAY:
        return today
    if window is PeriodWindow.LAST_7_DAYS:
        return today - timedelta(days=7)
    # Rolling, not the calendar month.
    if window is PeriodWindow.LAST_30_DAYS:
        return today - timedelta(days=30)
    if window is PeriodWindow.THIS_YEAR:
        return start_of_year(now)
    return None


def range_predicate(start: datetime | None = None, end: datetime | None = None) -> Predicate:
    """Match timestamps in ``[start, end)``; a missing side is unbounded."""

    def matches(created_at: datetime) -> bool:
        if start is not None and created_at < start:
            return False
        if end is not None and created_at >= end:
            return False
        return True

    return matches


def window_predicate(window: PeriodWindow, now: datetime) -> Predicate:
    """Build the predicate for a fixed window.

    Entries dated after ``now`` still match.
    """
    return range_predicate(start=window_start(window, now))


def calendar_month_predicate(year: int, month: int, zone: tzinfo) -> Predicate:
    """Match timestamps inside one calendar month in ``zone``."""
    start, end = month_range(year, month, zone)
    return range_predicate(start=start, end=end)


def entries_in_window(
    entries: Iterable[LedgerEntry],
    predicate: Predicate | None = None,
) -> list[LedgerEntry]:
    """Return the entries whose ``created_at`` satisfies ``predicate``."""
    if predicate is None:
        return list(entries)
    return [entry for entry in entries if predicate(entry.created_at)]


def compute_balance(
    entries: Iterable[LedgerEntry],
    predicate: Predicate | None = None,
) -> Decimal:
    """Sum gains minus losses over the entries matching ``predicate``."""
    return sum(
        (entry.signed_amount for entry in entries_in_window(entries, predicate)),
        ZERO,
    )


def period_balances(
    entries: Iterable[LedgerEntry],
    now: datetime,
) -> dict[PeriodWindow, Decimal]:
    """Compute the balance of every fixed window against one ``now``."""
    materialized = list(entries)
    return {
        window: compute_balance(materialized, window_predicate(window, now))
        for window in PeriodWindow
    }


def summarize(entries: Iterable[LedgerEntry]) -> LedgerTotals:
    """Return gain, loss and net totals for a set of entries."""
    gains = ZERO
    losses = ZERO
    count = 0
    for entry in entries:
        count += 1
        if entry.kind is EntryKind.GAIN:
            gains += entry.amount
        else:
            losses += entry.amount
    return LedgerTotals(
        total_gains=gains,
        total_losses=losses,
        balance=gains - losses,
        entry_count=count,
    )


def _period_of(entry: LedgerEntry, zone: tzinfo | None) -> tuple[int, int]:
    if entry.year is not None and entry.month is not None:
        return entry.year, entry.month
    created_at = entry.created_at.astimezone(zone) if zone is not None else entry.created_at
    return created_at.year, created_at.month


def monthly_breakdown(
    entries: Iterable[LedgerEntry],
    year: int,
    zone: tzinfo | None = None,
) -> list[MonthlyTotals]:
    """Return totals for each of the twelve months of ``year``.

    Entries are bucketed by their recorded accounting period; entries
    without one fall back to ``created_at`` read in ``zone``. Months with
    no entries are reported with zero totals.
    """
    by_month: dict[int, list[LedgerEntry]] = {month: [] for month in range(1, 13)}
    for entry in entries:
        entry_year, entry_month = _period_of(entry, zone)
        if entry_year == year and entry_month in by_month:
            by_month[entry_month].append(entry)
    return [
        MonthlyTotals(month=month, **summarize(items).model_dump())
        for month, items in by_month.items()
    ]


def _localize(value: datetime, zone: tzinfo) -> datetime:
    # Naive query parameters are wall-clock times in the school's zone.
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


class BalanceService:
    """Fetch a school's ledger and report its period balances."""

    def __init__(self, client: Client) -> None:
        self.ledger = LedgerService(client)

    def balances(
        self,
        school_id: str,
        now: datetime | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> dict[str, Any]:
        """Return fixed-window balances plus an optional ad-hoc window.

        The ad-hoc window is ``[start, end)`` when either bound is given,
        otherwise the calendar month ``year``/``month`` when both are given.
        """
        zone = settings.tzinfo
        as_of = _localize(now, zone) if now is not None else now_local(zone)
        entries = self.ledger.list_entries(school_id)

        custom_predicate: Predicate | None = None
        if start is not None or end is not None:
            lower = _localize(start, zone) if start is not None else None
            upper = _localize(end, zone) if end is not None else None
            if lower is not None and upper is not None and lower >= upper:
                raise InvalidInputError("start must be before end")
            custom_predicate = range_predicate(start=lower, end=upper)
        elif year is not None and month is not None:
            custom_predicate = calendar_month_predicate(year, month, zone)

        return {
            "as_of": as_of,
            "currency": settings.currency,
            "balances": {
                window.value: amount for window, amount in period_balances(entries, as_of).items()
            },
            "custom": (
                compute_balance(entries, custom_predicate) if custom_predicate is not None else None
            ),
            "totals": summarize(entries),
        }

    def monthly(self, school_id: str, year: int) -> dict[str, Any]:
        """Return the per-month totals of one year."""
        entries = self.ledger.list_entries(school_id)
        return {
            "year": year,
            "currency": settings.currency,
            "months": monthly_breakdown(entries, year, settings.tzinfo),
        }
