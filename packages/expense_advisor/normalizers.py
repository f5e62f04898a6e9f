"""Spreadsheet row → canonical record normalizers.

Rows are mappings keyed by the spreadsheet's header names (see the
``*_HEADERS`` constants). Every record gets a fresh id, trimmed text fields,
an ISO ``YYYY-MM-DD`` date and a non-negative amount in cents. Malformed
inputs never raise here: unparseable amounts become ``0`` and unparseable
dates are kept best-effort (see :func:`standardize_date`).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from .logging_setup import get_logger
from .models import ExpenseRecord, IncomeRecord, InvestmentTransferRecord

_logger = get_logger("expense_advisor.normalizers")

# ---------------------------------------------------------------------------
# Header names (exact, as exported)
# ---------------------------------------------------------------------------

DATE_OF_PAYMENT = "Date of Payment"
PAID_TO = "Paid To"
AMOUNT_PAID = "Amount Paid ($)"
EXPENSE_TYPE = "Expense Type"
EXPENSE_SUBTYPE = "Expense Subtype"
DESCRIPTION = "Description"
TRANSACTION_TYPE = "Transaction Type"

EXPENSE_HEADERS: tuple[str, ...] = (
    DATE_OF_PAYMENT,
    PAID_TO,
    AMOUNT_PAID,
    EXPENSE_TYPE,
    EXPENSE_SUBTYPE,
    DESCRIPTION,
    TRANSACTION_TYPE,
)

INCOME_HEADERS: tuple[str, ...] = (
    "Date of Receipt",
    "Received From",
    "Amount Received ($)",
    "Income Type",
    "Income Subtype",
    DESCRIPTION,
)

INVESTMENT_TRANSFER_HEADERS: tuple[str, ...] = (
    "Date of Transfer",
    "Transfer To/Platform",
    "Transfer From Account/Source",
    "Amount Transferred",
    "Currency",
    "Transfer Type",
    "Purpose/Investment Name",
    DESCRIPTION,
)
CONFIRMATION_REFERENCE = "Confirmation/Reference #"

# Key carrying the source row number when the reader provides one.
ROW_NUM_KEY = "__rowNum__"

# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

# Tried in order; the first format that parses wins.
_DATE_INPUT_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%Y-%m-%d",
    "%m-%d-%y",
    "%m/%d/%y",
    "%d.%m.%Y",
)

_EXCEL_EPOCH = date(1899, 12, 30)
_MAC_EPOCH = date(1904, 1, 1)
_AMOUNT_JUNK_RE = re.compile(r"[^0-9.\-]+")


def _from_serial(serial: float) -> date | None:
    try:
        d = _EXCEL_EPOCH + timedelta(days=int(serial))
    except OverflowError:
        return None
    if d.year < 1950 and serial > 20000:
        # Spreadsheets saved with the 1904 date system.
        mac = _MAC_EPOCH + timedelta(days=int(serial) - 1462)
        if mac.year >= 1950:
            d = mac
    return d


def standardize_date(value: Any) -> str:
    """Coerce a spreadsheet date cell to ``YYYY-MM-DD``.

    Accepts ``date``/``datetime`` objects, spreadsheet serial numbers and
    strings in the formats of ``_DATE_INPUT_FORMATS`` or ISO datetimes.
    Unparseable strings are returned unchanged; any other unparseable input
    falls back to today's date.
    """

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        d = _from_serial(value)
        if d is not None:
            return d.isoformat()
    elif isinstance(value, str):
        s = value.strip()
        for fmt in _DATE_INPUT_FORMATS:
            try:
                return datetime.strptime(s, fmt).date().isoformat()
            except ValueError:
                continue
        try:
            return datetime.fromisoformat(s).date().isoformat()
        except ValueError:
            pass
        _logger.warning("normalize:date unparseable value=%r", value)
        return value
    _logger.warning("normalize:date unparseable value=%r; using today", value)
    return date.today().isoformat()


def parse_amount(value: Any) -> Decimal:
    """Coerce an amount cell to a non-negative ``Decimal``.

    Strings keep only digits, ``.`` and ``-`` before parsing (so ``"$1,234.50"``
    reads as ``1234.50``). Anything unparseable becomes ``0``.
    """

    if isinstance(value, bool) or value is None:
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        try:
            d = Decimal(str(value))
        except InvalidOperation:
            return Decimal("0")
    else:
        s = _AMOUNT_JUNK_RE.sub("", str(value))
        try:
            d = Decimal(s)
        except InvalidOperation:
            return Decimal("0")
    if not d.is_finite():
        return Decimal("0")
    return abs(d)


def _text(row: Mapping[str, Any], key: str, default: str = "") -> str:
    v = row.get(key)
    if v is None:
        return default
    s = str(v).strip()
    return s if s else default


def _row_num(row: Mapping[str, Any], index: int) -> int:
    raw = row.get(ROW_NUM_KEY)
    try:
        n = int(raw) if raw not in (None, "") else 0
    except (TypeError, ValueError):
        n = 0
    # Header occupies row 1.
    return n or index + 2


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------


def normalize_expense_rows(rows: Iterable[Mapping[str, Any]]) -> list[ExpenseRecord]:
    return [
        ExpenseRecord(
            date_of_payment=standardize_date(row.get(DATE_OF_PAYMENT, "")),
            paid_to=_text(row, PAID_TO),
            amount_paid=parse_amount(row.get(AMOUNT_PAID)),
            expense_type=_text(row, EXPENSE_TYPE),
            expense_subtype=_text(row, EXPENSE_SUBTYPE),
            description=_text(row, DESCRIPTION),
            transaction_type=_text(row, TRANSACTION_TYPE),
            row_num=_row_num(row, i),
        )
        for i, row in enumerate(rows)
    ]


def normalize_income_rows(rows: Iterable[Mapping[str, Any]]) -> list[IncomeRecord]:
    date_h, from_h, amount_h, type_h, subtype_h, desc_h = INCOME_HEADERS
    return [
        IncomeRecord(
            date_of_receipt=standardize_date(row.get(date_h, "")),
            received_from=_text(row, from_h),
            amount_received=parse_amount(row.get(amount_h)),
            income_type=_text(row, type_h),
            income_subtype=_text(row, subtype_h),
            description=_text(row, desc_h),
            row_num=_row_num(row, i),
        )
        for i, row in enumerate(rows)
    ]


def normalize_investment_transfer_rows(
    rows: Iterable[Mapping[str, Any]],
) -> list[InvestmentTransferRecord]:
    (
        date_h,
        to_h,
        from_h,
        amount_h,
        currency_h,
        type_h,
        purpose_h,
        desc_h,
    ) = INVESTMENT_TRANSFER_HEADERS
    return [
        InvestmentTransferRecord(
            date_of_transfer=standardize_date(row.get(date_h, "")),
            transfer_to_platform=_text(row, to_h),
            transfer_from_account=_text(row, from_h),
            amount_transferred=parse_amount(row.get(amount_h)),
            currency=_text(row, currency_h, "USD"),
            transfer_type=_text(row, type_h),
            purpose_investment_name=_text(row, purpose_h),
            description=_text(row, desc_h),
            confirmation_reference=_text(row, CONFIRMATION_REFERENCE),
            row_num=_row_num(row, i),
        )
        for i, row in enumerate(rows)
    ]


__all__ = [
    "EXPENSE_HEADERS",
    "INCOME_HEADERS",
    "INVESTMENT_TRANSFER_HEADERS",
    "normalize_expense_rows",
    "normalize_income_rows",
    "normalize_investment_transfer_rows",
    "parse_amount",
    "standardize_date",
]
