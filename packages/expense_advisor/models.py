"""Data models for ``expense_advisor``.

Records (expenses, income, investment/transfer events) are immutable pydantic
models produced by the normalizer and updated with ``model_copy``. A record's
``id`` is the only value used for identity; two records are never considered
the same because their fields are equal.

Recommendations are frozen dataclasses. Their ``id`` is a per-object handle
for consumers; reconciliation matches recommendations across passes by the
identity key built in :mod:`expense_advisor.reconcile`, never by ``id``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CENTS = Decimal("0.01")


def new_id() -> str:
    """Return a fresh opaque identifier (uuid4)."""

    return str(uuid.uuid4())


def _to_cents(v: Decimal) -> Decimal:
    if v < 0:
        raise ValueError("amount must be non-negative")
    return v.quantize(_CENTS, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class RecordFlags(BaseModel):
    """Fixed set of boolean markers carried by every record.

    ``is_deleted`` is a soft delete: the record stays resolvable by id but is
    excluded from active views and from rule scanning. The remaining flags
    record which kinds of recommendation have been applied to the record.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    is_deleted: bool = False
    is_duplicate_candidate: bool = False
    merchant_normalized: bool = False
    category_suggested: bool = False
    fields_filled: bool = False


class ExpenseOriginalValues(BaseModel):
    """Snapshot of expense field values taken before a recommendation
    overwrote them. ``None`` means "never overwritten"."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    paid_to: str | None = None
    expense_type: str | None = None
    expense_subtype: str | None = None
    transaction_type: str | None = None


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=new_id)
    flags: RecordFlags = Field(default_factory=RecordFlags)
    # Source spreadsheet row; display only.
    row_num: int | None = None

    @property
    def is_deleted(self) -> bool:
        return self.flags.is_deleted


class ExpenseRecord(_RecordBase):
    """Canonical expense row; the only recommendation-bearing record kind."""

    date_of_payment: str
    paid_to: str = ""
    amount_paid: Decimal = Decimal("0.00")
    expense_type: str = ""
    expense_subtype: str = ""
    description: str = ""
    transaction_type: str = ""
    original_values: ExpenseOriginalValues | None = None

    @field_validator("amount_paid")
    @classmethod
    def _amount_cents(cls, v: Decimal) -> Decimal:
        return _to_cents(v)


class IncomeRecord(_RecordBase):
    date_of_receipt: str
    received_from: str = ""
    amount_received: Decimal = Decimal("0.00")
    income_type: str = ""
    income_subtype: str = ""
    description: str = ""

    @field_validator("amount_received")
    @classmethod
    def _amount_cents(cls, v: Decimal) -> Decimal:
        return _to_cents(v)


class InvestmentTransferRecord(_RecordBase):
    date_of_transfer: str
    transfer_to_platform: str = ""
    transfer_from_account: str = ""
    amount_transferred: Decimal = Decimal("0.00")
    currency: str = "USD"
    transfer_type: str = ""
    purpose_investment_name: str = ""
    description: str = ""
    confirmation_reference: str = ""

    @field_validator("amount_transferred")
    @classmethod
    def _amount_cents(cls, v: Decimal) -> Decimal:
        return _to_cents(v)


# Expense fields a recommendation may overwrite.
type ExpenseField = Literal["paid_to", "expense_type", "expense_subtype", "transaction_type"]

EXPENSE_FIELDS: tuple[ExpenseField, ...] = (
    "paid_to",
    "expense_type",
    "expense_subtype",
    "transaction_type",
)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


class RecommendationType(StrEnum):
    DUPLICATE = "DUPLICATE_TRANSACTION"
    MERCHANT_NORMALIZATION = "MERCHANT_NORMALIZATION"
    MISSING_FIELD = "MISSING_FIELD"
    CLASSIFICATION = "CLASSIFICATION_SUGGESTION"


type RecommendationStatus = Literal["pending", "applied", "ignored"]

_STATUSES: frozenset[str] = frozenset({"pending", "applied", "ignored"})
TERMINAL_STATUSES: frozenset[str] = frozenset({"applied", "ignored"})

# Duplicate recommendations carry an action token in ``suggested_value``.
_DELETE_PREFIX = "delete:"


def delete_token(record_id: str) -> str:
    """Return the duplicate action token that soft-deletes ``record_id``."""

    return f"{_DELETE_PREFIX}{record_id}"


def parse_delete_target(token: Any) -> str | None:
    """Return the record id a duplicate action token deletes, if any."""

    if isinstance(token, str) and token.startswith(_DELETE_PREFIX):
        target = token[len(_DELETE_PREFIX) :].strip()
        return target or None
    return None


@dataclass(frozen=True, slots=True)
class DuplicatePair:
    """Counterparty names and descriptions of a suspected duplicate pair, in
    the order the records were examined."""

    first_paid_to: str
    first_description: str
    second_paid_to: str
    second_description: str


@dataclass(frozen=True, slots=True)
class Recommendation:
    """A proposed edit to one or two expense records.

    ``transaction_ids`` holds exactly two sorted ids for duplicates and one id
    otherwise (it may become empty for an applied/ignored recommendation whose
    targets were hard-deleted). ``status`` moves from ``pending`` to either
    ``applied`` or ``ignored`` and never back.
    """

    id: str
    type: RecommendationType
    transaction_ids: tuple[str, ...]
    suggested_value: Any
    description: str
    confidence: float | None = None
    affected_field: ExpenseField | None = None
    original_value: Any = None
    status: RecommendationStatus = "pending"

    def __post_init__(self) -> None:
        if self.status not in _STATUSES:
            raise ValueError(f"unknown recommendation status: {self.status!r}")
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0,1]")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


# ---------------------------------------------------------------------------
# View filters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Optional filters for expense views. Dates compare as ISO strings."""

    date_start: str | None = None
    date_end: str | None = None
    category: str | None = None
    subcategory: str | None = None
    transaction_type: str | None = None

    def matches(self, record: ExpenseRecord) -> bool:
        if self.date_start and record.date_of_payment < self.date_start:
            return False
        if self.date_end and record.date_of_payment > self.date_end:
            return False
        if self.category and record.expense_type != self.category:
            return False
        if self.subcategory and record.expense_subtype != self.subcategory:
            return False
        if self.transaction_type and record.transaction_type != self.transaction_type:
            return False
        return True


__all__ = [
    "EXPENSE_FIELDS",
    "TERMINAL_STATUSES",
    "DuplicatePair",
    "ExpenseField",
    "ExpenseOriginalValues",
    "ExpenseRecord",
    "FilterCriteria",
    "IncomeRecord",
    "InvestmentTransferRecord",
    "Recommendation",
    "RecommendationStatus",
    "RecommendationType",
    "RecordFlags",
    "delete_token",
    "new_id",
    "parse_delete_target",
]
