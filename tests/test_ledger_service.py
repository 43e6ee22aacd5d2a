"""Ledger service tests against the in-memory Supabase fake."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from school_ledger.schemas.ledger import EntryKind, LedgerEntryCreate
from school_ledger.services.balance_service import compute_balance
from school_ledger.services.common import SupabaseService
from school_ledger.services.ledger_service import LedgerService
from school_ledger.utils.errors import DataIntegrityError, NotFoundError

NOW = datetime(2025, 8, 14, 10, 0, tzinfo=UTC)


def make_payload(kind: str = "gain", amount: str = "1500", remarks: str = "رسوم") -> LedgerEntryCreate:
    return LedgerEntryCreate.model_validate({"type": kind, "amount": amount, "remarks": remarks})


def test_create_entry_defaults_period_to_now(fake_db) -> None:
    """Year and month default to the current period."""
    service = LedgerService(fake_db)
    entry = service.create_entry("school-1", "admin-1", make_payload(), now=NOW)

    assert entry.kind is EntryKind.GAIN
    assert entry.amount == Decimal("1500")
    assert (entry.year, entry.month) == (2025, 8)
    assert entry.recorded_by == "admin-1"

    stored = fake_db.tables["financial_entries"][0]
    assert stored["type"] == "gain"
    assert stored["school_id"] == "school-1"


def test_list_entries_is_scoped_and_filtered(fake_db) -> None:
    """Listing only returns the school's rows for the requested period."""
    service = LedgerService(fake_db)
    service.create_entry("school-1", "admin-1", make_payload(), now=NOW)
    july = LedgerEntryCreate(kind="loss", amount=Decimal("200"), remarks="كهرباء", year=2025, month=7)
    service.create_entry("school-1", "admin-1", july, now=NOW)
    service.create_entry("school-2", "admin-2", make_payload(), now=NOW)

    assert len(service.list_entries("school-1")) == 2
    assert service.count_entries("school-1", year=2025, month=7) == 1
    assert [e.month for e in service.list_entries("school-1", year=2025, month=8)] == [8]


def test_reverse_entry_cancels_original(fake_db) -> None:
    """A reversal books the opposite kind so the pair nets to zero."""
    service = LedgerService(fake_db)
    original = service.create_entry("school-1", "admin-1", make_payload(), now=NOW)
    reversal = service.reverse_entry("school-1", original.id, "admin-1", now=NOW)

    assert reversal.kind is EntryKind.LOSS
    assert reversal.amount == original.amount
    assert reversal.remarks == original.remarks
    assert compute_balance(service.list_entries("school-1")) == 0


def test_reverse_entry_of_other_school_is_not_found(fake_db) -> None:
    """Entries of another tenant cannot be reversed."""
    service = LedgerService(fake_db)
    foreign = service.create_entry("school-2", "admin-2", make_payload(), now=NOW)
    with pytest.raises(NotFoundError):
        service.reverse_entry("school-1", foreign.id, "admin-1", now=NOW)


def test_delete_entry(fake_db) -> None:
    """Deleting removes one row and a second delete reports not found."""
    service = LedgerService(fake_db)
    entry = service.create_entry("school-1", "admin-1", make_payload(), now=NOW)
    service.delete_entry("school-1", entry.id)
    assert service.list_entries("school-1") == []
    with pytest.raises(NotFoundError):
        service.delete_entry("school-1", entry.id)


def test_reset_only_clears_one_school(fake_db) -> None:
    """Reset removes every row of the school and nothing else."""
    service = LedgerService(fake_db)
    for _ in range(3):
        service.create_entry("school-1", "admin-1", make_payload(), now=NOW)
    service.create_entry("school-2", "admin-2", make_payload(), now=NOW)

    assert service.reset("school-1") == 3
    assert service.list_entries("school-1") == []
    assert len(service.list_entries("school-2")) == 1


def test_malformed_row_raises_data_integrity_error(fake_db) -> None:
    """Rows that fail validation are reported instead of silently skipped."""
    fake_db.seed(
        "financial_entries",
        [
            {
                "id": 1,
                "school_id": "school-1",
                "type": "gift",
                "amount": "10",
                "created_at": NOW.isoformat(),
            }
        ],
    )
    with pytest.raises(DataIntegrityError):
        LedgerService(fake_db).list_entries("school-1")


@pytest.mark.parametrize(
    "body",
    [
        {"type": "gain", "amount": "0", "remarks": "x"},
        {"type": "gain", "amount": "-5", "remarks": "x"},
        {"type": "gain", "amount": "10", "remarks": "   "},
        {"type": "refund", "amount": "10", "remarks": "x"},
        {"type": "gain", "amount": "10", "remarks": "x", "month": 13},
    ],
)
def test_create_payload_validation(body: dict) -> None:
    """Invalid request bodies are rejected before reaching the database."""
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        LedgerEntryCreate.model_validate(body)


def test_select_all_walks_every_page(capped_db) -> None:
    """Rows are fetched page by page until a short page comes back."""
    capped_db.seed("notes", [{"id": str(index)} for index in range(1, 6)])

    rows = SupabaseService(capped_db).select_all("notes", page_size=2)

    assert [row["id"] for row in rows] == ["1", "2", "3", "4", "5"]


def test_list_entries_without_limit_returns_every_row(capped_db) -> None:
    """An unbounded listing is not truncated at the server's row cap."""
    capped_db.seed(
        "financial_entries",
        [
            {
                "id": f"{index:04d}",
                "school_id": "school-1",
                "type": "gain",
                "amount": "1",
                "created_at": NOW.isoformat(),
            }
            for index in range(1200)
        ],
    )

    entries = LedgerService(capped_db).list_entries("school-1")

    assert len(entries) == 1200
    assert len({entry.id for entry in entries}) == 1200
    assert entries[0].id == "1199"
