"""Ledger schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from school_ledger.utils.time import parse_timestamp

# Decimal in Python, a JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class EntryKind(StrEnum):
    """Direction of a ledger entry."""

    GAIN = "gain"
    LOSS = "loss"


class LedgerEntry(BaseModel):
    """A validated, immutable ledger row.

    Rows are stored with the kind in a ``type`` column; both spellings are
    accepted on input.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: EntryKind = Field(validation_alias=AliasChoices("kind", "type"))
    amount: Decimal = Field(ge=0)
    remarks: str = ""
    created_at: datetime
    school_id: str | None = None
    year: int | None = None
    month: int | None = None
    recorded_by: str | None = None

    @field_validator("id", "school_id", "recorded_by", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("remarks", mode="before")
    @classmethod
    def _none_remarks(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("created_at", mode="before")
    @classmethod
    def _aware_created_at(cls, value: Any) -> Any:
        if isinstance(value, str | datetime):
            return parse_timestamp(value)
        return value

    @property
    def signed_amount(self) -> Decimal:
        """Contribution of this entry to a balance."""
        return self.amount if self.kind is EntryKind.GAIN else -self.amount


class LedgerEntryCreate(BaseModel):
    """Request body for appending a ledger entry."""

    kind: EntryKind = Field(validation_alias=AliasChoices("kind", "type"))
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    remarks: str = Field(..., min_length=1)
    year: int | None = Field(default=None, ge=2000, le=2100)
    month: int | None = Field(default=None, ge=1, le=12)

    @field_validator("remarks")
    @classmethod
    def _strip_remarks(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Remarks are required")
        return stripped


class RemarkTag(BaseModel):
    """Display tag scraped from a remark."""

    label: str
    value: str
    category: str


class LedgerTotals(BaseModel):
    """Totals over a set of entries."""

    total_gains: Money = Decimal("0")
    total_losses: Money = Decimal("0")
    balance: Money = Decimal("0")
    entry_count: int = 0


class MonthlyTotals(LedgerTotals):
    """Totals of one accounting month."""

    month: int


class LedgerEntryResponse(BaseModel):
    """A ledger entry with its display tags."""

    id: str
    kind: EntryKind
    amount: Money
    remarks: str
    created_at: datetime
    year: int | None = None
    month: int | None = None
    recorded_by: str | None = None
    tags: list[RemarkTag] = Field(default_factory=list)


class LedgerEntryEnvelope(BaseModel):
    entry: LedgerEntryResponse


class LedgerPageResponse(BaseModel):
    """One page of entries plus the balance of every matching entry."""

    entries: list[LedgerEntryResponse]
    total: int
    balance: Money


class PeriodBalancesResponse(BaseModel):
    """Balances for the fixed windows plus an optional ad-hoc window."""

    as_of: datetime
    currency: str
    balances: dict[str, Money]
    custom: Money | None = None
    totals: LedgerTotals


class MonthlyBreakdownResponse(BaseModel):
    """Per-month gains, losses and net for one year."""

    year: int
    currency: str
    months: list[MonthlyTotals]
