"""Ledger endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from school_ledger.dependencies import get_db_client, get_school_admin
from school_ledger.schemas.ledger import (
    LedgerEntry,
    LedgerEntryCreate,
    LedgerEntryEnvelope,
    LedgerEntryResponse,
    LedgerPageResponse,
)
from school_ledger.services.balance_service import compute_balance
from school_ledger.services.ledger_service import LedgerService
from school_ledger.services.remark_tags import extract_tags
from supabase import Client

router = APIRouter()


def _present(entry: LedgerEntry) -> LedgerEntryResponse:
    return LedgerEntryResponse(
        id=entry.id,
        kind=entry.kind,
        amount=entry.amount,
        remarks=entry.remarks,
        created_at=entry.created_at,
        year=entry.year,
        month=entry.month,
        recorded_by=entry.recorded_by,
        tags=extract_tags(entry.remarks),
    )


@router.get("", response_model=LedgerPageResponse)
def get_ledger(
    school_id: str,
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> LedgerPageResponse:
    """Return one page of the school's entries and the running balance.

    The balance covers every entry matching ``year``/``month``, not just the
    page.
    """
    entries = LedgerService(client).list_entries(school_id=school_id, year=year, month=month)
    page = entries[offset : offset + limit]
    return LedgerPageResponse(
        entries=[_present(entry) for entry in page],
        total=len(entries),
        balance=compute_balance(entries),
    )


@router.post("", response_model=LedgerEntryEnvelope)
def create_entry(
    school_id: str,
    payload: LedgerEntryCreate,
    admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> LedgerEntryEnvelope:
    """Append a gain or loss to the ledger."""
    entry = LedgerService(client).create_entry(
        school_id=school_id, recorded_by=admin_id, payload=payload
    )
    return LedgerEntryEnvelope(entry=_present(entry))


@router.post("/reset")
def reset_ledger(
    school_id: str,
    _admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete every entry of the school."""
    deleted = LedgerService(client).reset(school_id)
    return {"success": True, "deleted": deleted}


@router.get("/tags")
def preview_tags(
    school_id: str,
    remark: str = Query(default=""),
    _admin_id: str = Depends(get_school_admin),
) -> dict:
    """Return the display tags a remark would produce."""
    return {"tags": [tag.model_dump() for tag in extract_tags(remark)]}


@router.delete("/{entry_id}")
def delete_entry(
    school_id: str,
    entry_id: str,
    _admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete one ledger entry."""
    LedgerService(client).delete_entry(school_id=school_id, entry_id=entry_id)
    return {"deleted": True}


@router.post("/{entry_id}/reverse", response_model=LedgerEntryEnvelope)
def reverse_entry(
    school_id: str,
    entry_id: str,
    admin_id: str = Depends(get_school_admin),
    client: Client = Depends(get_db_client),
) -> LedgerEntryEnvelope:
    """Append an offsetting entry that cancels ``entry_id``."""
    entry = LedgerService(client).reverse_entry(
        school_id=school_id, entry_id=entry_id, recorded_by=admin_id
    )
    return LedgerEntryEnvelope(entry=_present(entry))
