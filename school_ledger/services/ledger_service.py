"""Ledger entry service."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from school_ledger.config import settings
from school_ledger.schemas.ledger import EntryKind, LedgerEntry, LedgerEntryCreate
from school_ledger.services.common import SupabaseService
from school_ledger.utils.errors import DataIntegrityError, NotFoundError
from school_ledger.utils.time import now_local
from supabase import Client

logger = logging.getLogger(__name__)


def parse_entry(row: dict[str, Any]) -> LedgerEntry:
    """Validate one stored row into a ``LedgerEntry``."""
    try:
        return LedgerEntry.model_validate(row)
    except ValidationError as exc:
        logger.warning("Malformed ledger row id=%s: %s", row.get("id"), exc)
        raise DataIntegrityError("ledger entry", f"id={row.get('id')}") from exc


class LedgerService:
    """Create, query and clear a school's ledger entries."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.table = settings.ledger_table

    @staticmethod
    def _filters(
        school_id: str,
        year: int | None = None,
        month: int | None = None,
    ) -> dict[str, Any]:
        return {"school_id": school_id, "year": year, "month": month}

    def list_entries(
        self,
        school_id: str,
        year: int | None = None,
        month: int | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """Return validated entries for a school, newest first.

        Without ``limit`` every matching entry is returned, however many
        pages that takes.
        """
        filters = self._filters(school_id, year, month)
        if limit is None:
            rows = self.db.select_all(
                self.table,
                filters=filters,
                order_by=("created_at", "id"),
                descending=True,
            )
            return [parse_entry(row) for row in rows[offset:]]

        rows = self.db.select_many(
            self.table,
            filters=filters,
            order_by="created_at",
            descending=True,
            limit=limit,
            offset=offset,
        )
        return [parse_entry(row) for row in rows]

    def count_entries(
        self,
        school_id: str,
        year: int | None = None,
        month: int | None = None,
    ) -> int:
        """Return the number of entries matching the filters."""
        return self.db.count(self.table, self._filters(school_id, year, month))

    def get_entry(self, school_id: str, entry_id: str) -> LedgerEntry:
        """Return one entry of the school or raise NotFoundError."""
        row = self.db.select_one(
            self.table,
            {"id": entry_id, "school_id": school_id},
            not_found_label="Ledger entry",
        )
        return parse_entry(row)

    def _insert(
        self,
        school_id: str,
        recorded_by: str,
        kind: EntryKind,
        amount: Any,
        remarks: str,
        year: int,
        month: int,
    ) -> LedgerEntry:
        row = self.db.insert_one(
            self.table,
            {
                "school_id": school_id,
                "type": kind.value,
                "amount": str(amount),
                "remarks": remarks,
                "year": year,
                "month": month,
                "recorded_by": recorded_by,
            },
        )
        return parse_entry(row)

    def create_entry(
        self,
        school_id: str,
        recorded_by: str,
        payload: LedgerEntryCreate,
        now: datetime | None = None,
    ) -> LedgerEntry:
        """Append an entry; the period defaults to the current local month."""
        current = now or now_local(settings.tzinfo)
        entry = self._insert(
            school_id=school_id,
            recorded_by=recorded_by,
            kind=payload.kind,
            amount=payload.amount,
            remarks=payload.remarks,
            year=payload.year or current.year,
            month=payload.month or current.month,
        )
        logger.info(
            "Ledger %s of %s recorded for school %s (entry %s)",
            entry.kind.value,
            entry.amount,
            school_id,
            entry.id,
        )
        return entry

    def reverse_entry(
        self,
        school_id: str,
        entry_id: str,
        recorded_by: str,
        now: datetime | None = None,
    ) -> LedgerEntry:
        """Append an entry of the opposite kind that cancels ``entry_id``.

        The offset keeps the original amount and remarks and is booked in
        the current period.
        """
        original = self.get_entry(school_id, entry_id)
        current = now or now_local(settings.tzinfo)
        opposite = EntryKind.LOSS if original.kind is EntryKind.GAIN else EntryKind.GAIN
        entry = self._insert(
            school_id=school_id,
            recorded_by=recorded_by,
            kind=opposite,
            amount=original.amount,
            remarks=original.remarks,
            year=current.year,
            month=current.month,
        )
        logger.info("Ledger entry %s reversed by entry %s", original.id, entry.id)
        return entry

    def delete_entry(self, school_id: str, entry_id: str) -> None:
        """Delete one entry of the school."""
        removed = self.db.delete(self.table, {"id": entry_id, "school_id": school_id})
        if not removed:
            raise NotFoundError("Ledger entry")
        logger.info("Ledger entry %s deleted for school %s", entry_id, school_id)

    def reset(self, school_id: str) -> int:
        """Delete every entry of the school and return how many were removed."""
        removed = self.db.delete(self.table, {"school_id": school_id})
        logger.info("Ledger reset for school %s removed %s entries", school_id, len(removed))
        return len(removed)
