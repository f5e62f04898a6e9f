from datetime import date, datetime
from decimal import Decimal

import pytest

from expense_advisor.normalizers import (
    normalize_expense_rows,
    normalize_income_rows,
    normalize_investment_transfer_rows,
    parse_amount,
    standardize_date,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("03/15/2024", "2024-03-15"),
        ("15-03-2024", "2024-03-15"),
        ("2024/03/15", "2024-03-15"),
        ("2024-03-15", "2024-03-15"),
        ("03-15-24", "2024-03-15"),
        ("03/15/24", "2024-03-15"),
        ("15.03.2024", "2024-03-15"),
        ("2024-03-15T10:30:00", "2024-03-15"),
        (" 03/15/2024 ", "2024-03-15"),
        # Day-first wins for dashed four-digit years.
        ("01-02-2024", "2024-02-01"),
    ],
)
def test_standardize_date_string_formats(raw, expected):
    assert standardize_date(raw) == expected


def test_standardize_date_objects_and_serials():
    assert standardize_date(date(2024, 3, 15)) == "2024-03-15"
    assert standardize_date(datetime(2024, 3, 15, 8, 0)) == "2024-03-15"
    assert standardize_date(45292) == "2024-01-01"
    assert standardize_date(45292.75) == "2024-01-01"


def test_standardize_date_unparseable_input():
    assert standardize_date("next tuesday") == "next tuesday"
    assert standardize_date(None) == date.today().isoformat()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.50", Decimal("1234.50")),
        ("-42.5", Decimal("42.5")),
        (12, Decimal("12")),
        (3.25, Decimal("3.25")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        ("1.2.3", Decimal("0")),
        (None, Decimal("0")),
        (float("nan"), Decimal("0")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_normalize_expense_rows():
    rows = [
        {
            "Date of Payment": "03/01/2024",
            "Paid To": "  Starbucks #123 ",
            "Amount Paid ($)": "$42.5",
            "Expense Type": "Food",
            "Description": " coffee ",
            "__rowNum__": 7,
        },
        {"Date of Payment": "2024-03-02", "Paid To": "Uber", "Amount Paid ($)": "18"},
    ]

    first, second = normalize_expense_rows(rows)

    assert first.date_of_payment == "2024-03-01"
    assert first.paid_to == "Starbucks #123"
    assert first.amount_paid == Decimal("42.50")
    assert first.expense_type == "Food"
    assert first.expense_subtype == ""
    assert first.description == "coffee"
    assert first.row_num == 7
    assert first.original_values is None
    assert not first.flags.is_deleted
    # Without a source row number, rows count from 2 (the header is row 1).
    assert second.row_num == 3
    assert first.id != second.id


def test_normalize_income_and_transfer_rows():
    (income,) = normalize_income_rows(
        [
            {
                "Date of Receipt": "01/31/2024",
                "Received From": "Acme Corp",
                "Amount Received ($)": "5,000.00",
                "Income Type": "Salary",
            }
        ]
    )
    assert income.date_of_receipt == "2024-01-31"
    assert income.received_from == "Acme Corp"
    assert income.amount_received == Decimal("5000.00")
    assert income.income_subtype == ""

    (transfer,) = normalize_investment_transfer_rows(
        [
            {
                "Date of Transfer": "2024-02-01",
                "Transfer To/Platform": "Vanguard",
                "Amount Transferred": "500",
                "Currency": " ",
                "Confirmation/Reference #": "REF-9",
            }
        ]
    )
    assert transfer.transfer_to_platform == "Vanguard"
    assert transfer.amount_transferred == Decimal("500.00")
    assert transfer.currency == "USD"
    assert transfer.confirmation_reference == "REF-9"
    assert transfer.row_num == 2
