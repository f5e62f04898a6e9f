"""In-memory record store with automatic recommendation reconciliation.

:class:`RecordStore` owns the expense, income and investment/transfer lists
plus the authoritative recommendation list. Every expense mutation and every
apply/ignore action re-runs :func:`~expense_advisor.reconcile.reconcile_recommendations`
so the recommendation list always reflects the current record set.

Records and recommendations are immutable values; the store swaps whole lists
rather than editing items in place.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

from .applier import (
    UnknownRecordError,
    apply_many,
    apply_recommendation,
    ignore_many,
    ignore_recommendation,
)
from .logging_setup import get_logger
from .models import (
    ExpenseRecord,
    FilterCriteria,
    IncomeRecord,
    InvestmentTransferRecord,
    Recommendation,
)
from .reconcile import reconcile_recommendations, visible_recommendations
from .rules import DEFAULT_RULES, Rule

_logger = get_logger("expense_advisor.store")

_SideRecordT = TypeVar("_SideRecordT", IncomeRecord, InvestmentTransferRecord)

# Fields a caller may edit through ``update_expense``.
_EDITABLE_EXPENSE_FIELDS: frozenset[str] = frozenset(
    {
        "date_of_payment",
        "paid_to",
        "amount_paid",
        "expense_type",
        "expense_subtype",
        "description",
        "transaction_type",
    }
)


class RecordStore:
    """Holds the record sets and keeps recommendations reconciled.

    Parameters
    ----------
    expenses:
        Initial expense records (reconciled immediately when non-empty).
    rules:
        Rule registry passed through to reconciliation.
    """

    def __init__(
        self,
        expenses: Iterable[ExpenseRecord] = (),
        *,
        rules: Iterable[Rule] = DEFAULT_RULES,
    ) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)
        self._expenses: list[ExpenseRecord] = []
        self._incomes: list[IncomeRecord] = []
        self._transfers: list[InvestmentTransferRecord] = []
        self._recommendations: list[Recommendation] = []
        initial = list(expenses)
        if initial:
            self.import_expenses(initial)

    # ---- Views -----------------------------------------------------------

    @property
    def expenses(self) -> list[ExpenseRecord]:
        """All expense records, soft-deleted ones included."""
        return list(self._expenses)

    @property
    def active_expenses(self) -> list[ExpenseRecord]:
        return [r for r in self._expenses if not r.flags.is_deleted]

    @property
    def incomes(self) -> list[IncomeRecord]:
        return list(self._incomes)

    @property
    def investment_transfers(self) -> list[InvestmentTransferRecord]:
        return list(self._transfers)

    @property
    def recommendations(self) -> list[Recommendation]:
        return list(self._recommendations)

    @property
    def pending_recommendations(self) -> list[Recommendation]:
        """Pending recommendations whose targets are all active."""
        return [
            rec
            for rec in visible_recommendations(self._expenses, self._recommendations)
            if rec.status == "pending"
        ]

    def get_expense(self, record_id: str) -> ExpenseRecord:
        """Return the expense with ``record_id`` (soft-deleted ones resolve too)."""
        for r in self._expenses:
            if r.id == record_id:
                return r
        raise UnknownRecordError(f"unknown expense id: {record_id!r}")

    def filter_expenses(self, criteria: FilterCriteria | None = None) -> list[ExpenseRecord]:
        active = self.active_expenses
        if criteria is None:
            return active
        return [r for r in active if criteria.matches(r)]

    # ---- Reconciliation --------------------------------------------------

    def reconcile(self) -> list[Recommendation]:
        """Re-run reconciliation and return the new recommendation list.

        Skipped when there is nothing to do: every expense is soft-deleted (or
        there are none) and no recommendations exist.
        """

        if not self.active_expenses and not self._recommendations:
            _logger.debug("reconcile:skip no active expenses")
            return []
        self._recommendations = reconcile_recommendations(
            self._expenses, self._recommendations, rules=self._rules
        )
        return list(self._recommendations)

    # ---- Expense mutations -----------------------------------------------

    def import_expenses(self, records: Iterable[ExpenseRecord]) -> None:
        """Replace the expense set (e.g. after loading a sheet) and reconcile.

        The previous recommendation list is discarded along with the records
        it referred to.
        """

        self._expenses = list(records)
        self._recommendations = []
        _logger.info("store:import expenses=%d", len(self._expenses))
        self.reconcile()

    def add_expense(self, record: ExpenseRecord) -> ExpenseRecord:
        if any(r.id == record.id for r in self._expenses):
            raise ValueError(f"duplicate expense id: {record.id!r}")
        self._expenses.append(record)
        self.reconcile()
        return record

    def update_expense(self, record_id: str, **changes: Any) -> ExpenseRecord:
        """Edit fields of an expense; ``id``, flags and provenance are not editable."""

        unknown = sorted(set(changes) - _EDITABLE_EXPENSE_FIELDS)
        if unknown:
            raise ValueError("fields not editable: " + ", ".join(unknown))
        current = self.get_expense(record_id)
        # Round-trip through validation so amounts are re-quantized.
        updated = ExpenseRecord.model_validate({**current.model_dump(), **changes})
        self._replace_expense(updated)
        self.reconcile()
        return updated

    def soft_delete_expense(self, record_id: str) -> ExpenseRecord:
        return self._set_deleted(record_id, True)

    def restore_expense(self, record_id: str) -> ExpenseRecord:
        return self._set_deleted(record_id, False)

    def hard_delete_expense(self, record_id: str) -> None:
        self.get_expense(record_id)
        self._expenses = [r for r in self._expenses if r.id != record_id]
        _logger.info("store:hard_delete id=%s", record_id)
        self.reconcile()

    def _set_deleted(self, record_id: str, deleted: bool) -> ExpenseRecord:
        current = self.get_expense(record_id)
        updated = current.model_copy(
            update={"flags": current.flags.model_copy(update={"is_deleted": deleted})}
        )
        self._replace_expense(updated)
        self.reconcile()
        return updated

    def _replace_expense(self, record: ExpenseRecord) -> None:
        self._expenses = [record if r.id == record.id else r for r in self._expenses]

    # ---- Recommendation actions ------------------------------------------

    def apply(self, recommendation_id: str) -> None:
        self._expenses, self._recommendations = apply_recommendation(
            self._expenses, self._recommendations, recommendation_id
        )
        self.reconcile()

    def ignore(self, recommendation_id: str) -> None:
        self._recommendations = ignore_recommendation(self._recommendations, recommendation_id)
        self.reconcile()

    def apply_many(self, recommendation_ids: Iterable[str]) -> None:
        self._expenses, self._recommendations = apply_many(
            self._expenses, self._recommendations, recommendation_ids
        )
        self.reconcile()

    def ignore_many(self, recommendation_ids: Iterable[str]) -> None:
        self._recommendations = ignore_many(self._recommendations, recommendation_ids)
        self.reconcile()

    # ---- Income / investment-transfer records ----------------------------
    # These never carry recommendations, so no reconciliation is needed.

    def import_incomes(self, records: Iterable[IncomeRecord]) -> None:
        self._incomes = list(records)

    def add_income(self, record: IncomeRecord) -> IncomeRecord:
        self._incomes.append(record)
        return record

    def soft_delete_income(self, record_id: str) -> IncomeRecord:
        self._incomes, updated = _mark_deleted(self._incomes, record_id, "income")
        return updated

    def hard_delete_income(self, record_id: str) -> None:
        self._incomes = _remove(self._incomes, record_id, "income")

    def import_investment_transfers(self, records: Iterable[InvestmentTransferRecord]) -> None:
        self._transfers = list(records)

    def add_investment_transfer(self, record: InvestmentTransferRecord) -> InvestmentTransferRecord:
        self._transfers.append(record)
        return record

    def soft_delete_investment_transfer(self, record_id: str) -> InvestmentTransferRecord:
        self._transfers, updated = _mark_deleted(self._transfers, record_id, "investment/transfer")
        return updated

    def hard_delete_investment_transfer(self, record_id: str) -> None:
        self._transfers = _remove(self._transfers, record_id, "investment/transfer")


def _mark_deleted(
    records: list[_SideRecordT], record_id: str, kind: str
) -> tuple[list[_SideRecordT], _SideRecordT]:
    for i, r in enumerate(records):
        if r.id == record_id:
            flags = r.flags.model_copy(update={"is_deleted": True})
            updated = r.model_copy(update={"flags": flags})
            return records[:i] + [updated] + records[i + 1 :], updated
    raise UnknownRecordError(f"unknown {kind} id: {record_id!r}")


def _remove(
    records: list[_SideRecordT], record_id: str, kind: str
) -> list[_SideRecordT]:
    if not any(r.id == record_id for r in records):
        raise UnknownRecordError(f"unknown {kind} id: {record_id!r}")
    return [r for r in records if r.id != record_id]


__all__ = ["RecordStore"]
