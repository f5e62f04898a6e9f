"""Ingest utilities shared by CLI commands and the review loop.

Each loader reads a spreadsheet exported as CSV (UTF-8, header on the first
row), checks that the expected headers are present, and hands the rows to the
matching normalizer. Source row numbers are attached under ``__rowNum__`` so
records can point back at their spreadsheet row.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from os import PathLike
from pathlib import Path
from typing import Any, TypeVar

from ..logging_setup import get_logger
from ..models import ExpenseRecord, IncomeRecord, InvestmentTransferRecord
from ..normalizers import (
    AMOUNT_PAID,
    DATE_OF_PAYMENT,
    EXPENSE_HEADERS,
    INCOME_HEADERS,
    INVESTMENT_TRANSFER_HEADERS,
    PAID_TO,
    ROW_NUM_KEY,
    normalize_expense_rows,
    normalize_income_rows,
    normalize_investment_transfer_rows,
)

_logger = get_logger("expense_advisor.ingest")

RecordT = TypeVar("RecordT")

# Columns without which an expense row is meaningless; the others default to "".
_REQUIRED_EXPENSE_HEADERS: tuple[str, ...] = (DATE_OF_PAYMENT, PAID_TO, AMOUNT_PAID)


def _read_rows(
    csv_path: str | PathLike[str],
    *,
    required: Sequence[str],
    label: str,
) -> list[dict[str, Any]]:
    import csv

    p = Path(csv_path)
    with p.open(encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        headers_set = {h.strip() for h in (reader.fieldnames or []) if h is not None}
        if not headers_set:
            raise csv.Error(f"CSV appears to have no header row: {csv_path}")
        missing = sorted(h for h in required if h not in headers_set)
        if missing:
            raise csv.Error(
                f"CSV header mismatch for {label} sheet. Missing columns: " + ", ".join(missing)
            )
        rows: list[dict[str, Any]] = []
        for line_no, raw in enumerate(reader, start=2):
            row = {(k or "").strip(): v for k, v in raw.items()}
            if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
                continue
            row[ROW_NUM_KEY] = line_no
            rows.append(row)
    _logger.info("ingest:%s path=%s rows=%d", label, p, len(rows))
    return rows


def _load(
    csv_path: str | PathLike[str],
    required: Sequence[str],
    label: str,
    normalize: Callable[[Iterable[Mapping[str, Any]]], list[RecordT]],
) -> list[RecordT]:
    return normalize(_read_rows(csv_path, required=required, label=label))


def load_expenses_from_csv(csv_path: str | PathLike[str]) -> list[ExpenseRecord]:
    """Read an expense sheet and return normalized :class:`ExpenseRecord` rows.

    Raises ``csv.Error`` when the file has no header row or lacks any of the
    date, counterparty or amount columns. Blank rows are skipped.
    """

    return _load(csv_path, _REQUIRED_EXPENSE_HEADERS, "expense", normalize_expense_rows)


def load_income_from_csv(csv_path: str | PathLike[str]) -> list[IncomeRecord]:
    return _load(csv_path, INCOME_HEADERS[:3], "income", normalize_income_rows)


def load_investment_transfers_from_csv(
    csv_path: str | PathLike[str],
) -> list[InvestmentTransferRecord]:
    return _load(
        csv_path,
        INVESTMENT_TRANSFER_HEADERS[:2] + INVESTMENT_TRANSFER_HEADERS[3:4],
        "investment_transfer",
        normalize_investment_transfer_rows,
    )


__all__ = [
    "EXPENSE_HEADERS",
    "load_expenses_from_csv",
    "load_income_from_csv",
    "load_investment_transfers_from_csv",
]
