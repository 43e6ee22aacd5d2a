"""Balance endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from school_ledger.dependencies import get_db_client, get_school_admin
from school_ledger.schemas.ledger import MonthlyBreakdownResponse, PeriodBalancesResponse
from school_ledger.services.balance_service import BalanceService
from school_ledger.utils.errors import InvalidInputError
from supabase import Client

router = APIRouter()


@router.get("", response_model=PeriodBalancesResponse)
def get_balance(
    school_id: str,
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    _admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> PeriodBalancesResponse:
    """Return balances for today, 7 days, 30 days, this year and all time.

    ``start``/``end`` or ``year``/``month`` select one extra window reported
    as ``custom``.
    """
    if (year is None) != (month is None):
        raise InvalidInputError("year and month must be given together")

    report = BalanceService(client).balances(
        school_id=school_id, start=start, end=end, year=year, month=month
    )
    return PeriodBalancesResponse(**report)


@router.get("/monthly", response_model=MonthlyBreakdownResponse)
def get_monthly_breakdown(
    school_id: str,
    year: int = Query(..., ge=2000, le=2100),
    _admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> MonthlyBreakdownResponse:
    """Return gains, losses and net for each month of ``year``."""
    report = BalanceService(client).monthly(school_id=school_id, year=year)
    return MonthlyBreakdownResponse(**report)
