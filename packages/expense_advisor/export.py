"""Sheet export.

Writes active records back out in each sheet's header order: expenses,
income and investment/transfers each go to their own CSV. For expenses,
``include_flags`` appends the provenance markers and any captured original
values so a reviewer can see what was changed.
"""

from __future__ import annotations

import csv
from collections.abc import Callable, Iterable
from typing import Any, TextIO

from .models import EXPENSE_FIELDS, ExpenseRecord, IncomeRecord, InvestmentTransferRecord
from .normalizers import (
    CONFIRMATION_REFERENCE,
    EXPENSE_HEADERS,
    INCOME_HEADERS,
    INVESTMENT_TRANSFER_HEADERS,
)

_FLAG_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Is Duplicate Candidate?", "is_duplicate_candidate"),
    ("Category Suggested?", "category_suggested"),
    ("Merchant Normalized?", "merchant_normalized"),
)

# Header label for each overwritable field, e.g. "Original Paid To".
_ORIGINAL_COLUMNS: tuple[tuple[str, str], ...] = tuple(
    (f"Original {label}", field)
    for field, label in zip(
        EXPENSE_FIELDS,
        ("Paid To", "Expense Type", "Expense Subtype", "Transaction Type"),
        strict=True,
    )
)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _row(record: ExpenseRecord, include_flags: bool) -> list[str]:
    row = [
        record.date_of_payment,
        record.paid_to,
        f"{record.amount_paid:.2f}",
        record.expense_type,
        record.expense_subtype,
        record.description,
        record.transaction_type,
    ]
    if include_flags:
        row.extend(_yes_no(getattr(record.flags, attr)) for _, attr in _FLAG_COLUMNS)
        originals = record.original_values
        row.extend(
            (getattr(originals, field) or "") if originals is not None else ""
            for _, field in _ORIGINAL_COLUMNS
        )
    return row


def _write_active(
    stream: TextIO,
    header: Iterable[str],
    records: Iterable[Any],
    row: Callable[[Any], list[str]],
) -> int:
    writer = csv.writer(stream)
    writer.writerow(list(header))
    count = 0
    for record in records:
        if record.flags.is_deleted:
            continue
        writer.writerow(row(record))
        count += 1
    return count


def export_expenses_csv(
    records: Iterable[ExpenseRecord],
    stream: TextIO,
    *,
    include_flags: bool = False,
) -> int:
    """Write non-deleted ``records`` to ``stream`` as CSV; return the row count."""

    header = list(EXPENSE_HEADERS)
    if include_flags:
        header.extend(label for label, _ in _FLAG_COLUMNS)
        header.extend(label for label, _ in _ORIGINAL_COLUMNS)
    return _write_active(stream, header, records, lambda r: _row(r, include_flags))


def _income_row(record: IncomeRecord) -> list[str]:
    return [
        record.date_of_receipt,
        record.received_from,
        f"{record.amount_received:.2f}",
        record.income_type,
        record.income_subtype,
        record.description,
    ]


def export_income_csv(records: Iterable[IncomeRecord], stream: TextIO) -> int:
    """Write non-deleted income ``records``; return the row count."""

    return _write_active(stream, INCOME_HEADERS, records, _income_row)


def _transfer_row(record: InvestmentTransferRecord) -> list[str]:
    return [
        record.date_of_transfer,
        record.transfer_to_platform,
        record.transfer_from_account,
        f"{record.amount_transferred:.2f}",
        record.currency,
        record.transfer_type,
        record.purpose_investment_name,
        record.description,
        record.confirmation_reference,
    ]


def export_investment_transfers_csv(
    records: Iterable[InvestmentTransferRecord], stream: TextIO
) -> int:
    """Write non-deleted investment/transfer ``records``; return the row count.

    The optional confirmation column is always written, empty when unknown.
    """

    header = (*INVESTMENT_TRANSFER_HEADERS, CONFIRMATION_REFERENCE)
    return _write_active(stream, header, records, _transfer_row)


__all__ = ["export_expenses_csv", "export_income_csv", "export_investment_transfers_csv"]
