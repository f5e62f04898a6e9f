"""Test helpers to build expense records and look up recommendations tersely."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from itertools import count
from typing import Any

from expense_advisor.models import ExpenseRecord, Recommendation, RecommendationType, RecordFlags

_ids = count(1)


def make_expense(
    paid_to: str = "",
    amount: str | int | Decimal = "10.00",
    *,
    date: str = "2024-01-01",
    id: str | None = None,
    expense_type: str = "",
    expense_subtype: str = "",
    description: str = "",
    transaction_type: str = "",
    deleted: bool = False,
    row_num: int | None = None,
    **extra: Any,
) -> ExpenseRecord:
    """Build an :class:`ExpenseRecord` with readable sequential ids (``t1``, ``t2`` ...)."""

    n = next(_ids)
    return ExpenseRecord(
        id=id or f"t{n}",
        date_of_payment=date,
        paid_to=paid_to,
        amount_paid=Decimal(str(amount)),
        expense_type=expense_type,
        expense_subtype=expense_subtype,
        description=description,
        transaction_type=transaction_type,
        flags=RecordFlags(is_deleted=deleted),
        row_num=row_num,
        **extra,
    )


def of_type(recs: Iterable[Recommendation], rtype: RecommendationType) -> list[Recommendation]:
    return [r for r in recs if r.type is rtype]


def for_field(recs: Iterable[Recommendation], field: str) -> list[Recommendation]:
    return [r for r in recs if r.affected_field == field]


def targeting(recs: Iterable[Recommendation], record_id: str) -> list[Recommendation]:
    return [r for r in recs if record_id in r.transaction_ids]


def soft_deleted(record: ExpenseRecord) -> ExpenseRecord:
    return record.model_copy(update={"flags": record.flags.model_copy(update={"is_deleted": True})})
