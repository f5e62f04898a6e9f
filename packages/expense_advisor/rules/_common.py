"""Small helpers shared by the rule modules."""

from __future__ import annotations

from ..models import ExpenseRecord


def row_label(record: ExpenseRecord) -> str:
    """Row reference used in recommendation descriptions."""

    return str(record.row_num) if record.row_num else "N/A"
