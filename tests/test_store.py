from datetime import date
from decimal import Decimal

import pytest

from expense_advisor.applier import UnknownRecordError
from expense_advisor.models import (
    FilterCriteria,
    IncomeRecord,
    InvestmentTransferRecord,
    RecommendationType,
)
from expense_advisor.store import RecordStore

from tests.helpers.records import for_field, make_expense, of_type, targeting


def _store():
    return RecordStore(
        [
            make_expense("Starbucks #123", "42.50", date="2024-03-01", description="coffee"),
            make_expense("Starbucks #124", "42.50", date="2024-03-01", description="coffee"),
            make_expense("Uber", "18.00", date="2024-03-05", description="ride home"),
        ]
    )


def test_construction_reconciles():
    store = _store()
    types = {r.type for r in store.pending_recommendations}
    assert RecommendationType.DUPLICATE in types
    assert RecommendationType.MERCHANT_NORMALIZATION in types


def test_apply_merchant_then_recommendation_is_recorded_as_applied():
    store = _store()
    second = store.expenses[1]
    (merchant,) = of_type(store.pending_recommendations, RecommendationType.MERCHANT_NORMALIZATION)

    store.apply(merchant.id)

    renamed = store.get_expense(second.id)
    assert renamed.paid_to == "Starbucks #123"
    assert renamed.original_values.paid_to == "Starbucks #124"
    assert renamed.flags.merchant_normalized
    assert [r.status for r in store.recommendations if r.id == merchant.id] == ["applied"]
    assert merchant.id not in {r.id for r in store.pending_recommendations}


def test_untouched_pending_recommendations_keep_their_ids():
    store = _store()
    uber = store.expenses[2]
    before = {r.id for r in targeting(store.pending_recommendations, uber.id)}
    (merchant,) = of_type(store.pending_recommendations, RecommendationType.MERCHANT_NORMALIZATION)

    store.apply(merchant.id)

    after = {r.id for r in targeting(store.pending_recommendations, uber.id)}
    assert before and after == before


def test_apply_duplicate_soft_deletes_and_hides_its_records_recommendations():
    store = _store()
    second = store.expenses[1]
    (dup,) = of_type(store.pending_recommendations, RecommendationType.DUPLICATE)

    store.apply(dup.id)

    assert store.get_expense(second.id).is_deleted
    assert second.id not in {r.id for r in store.active_expenses}
    assert targeting(store.pending_recommendations, second.id) == []


def test_ignore_keeps_records_unchanged():
    store = _store()
    records_before = store.expenses
    (dup,) = of_type(store.pending_recommendations, RecommendationType.DUPLICATE)

    store.ignore(dup.id)

    assert store.expenses == records_before
    assert of_type(store.pending_recommendations, RecommendationType.DUPLICATE) == []


def test_update_expense_retires_satisfied_recommendations():
    store = _store()
    uber = store.expenses[2]
    assert for_field(targeting(store.pending_recommendations, uber.id), "expense_type")

    store.update_expense(uber.id, expense_type="Travel", expense_subtype="Ride Sharing")

    assert targeting(store.pending_recommendations, uber.id) == []


def test_update_expense_validates_fields_and_amounts():
    store = _store()
    uber = store.expenses[2]
    with pytest.raises(ValueError, match="not editable"):
        store.update_expense(uber.id, id="other")
    updated = store.update_expense(uber.id, amount_paid=Decimal("18.005"))
    assert updated.amount_paid == Decimal("18.01")


def test_unknown_record_ids_raise():
    store = _store()
    with pytest.raises(UnknownRecordError):
        store.get_expense("nope")
    with pytest.raises(KeyError):
        store.soft_delete_expense("nope")
    with pytest.raises(UnknownRecordError):
        store.hard_delete_income("nope")


def test_soft_delete_and_restore():
    store = _store()
    uber = store.expenses[2]

    store.soft_delete_expense(uber.id)
    assert targeting(store.pending_recommendations, uber.id) == []
    assert targeting(store.recommendations, uber.id) == []

    store.restore_expense(uber.id)
    assert targeting(store.pending_recommendations, uber.id)


def test_hard_delete_removes_record_and_its_recommendations():
    store = _store()
    uber = store.expenses[2]
    store.hard_delete_expense(uber.id)
    assert uber.id not in {r.id for r in store.expenses}
    assert targeting(store.recommendations, uber.id) == []


def test_add_expense_reconciles_and_rejects_duplicate_ids():
    store = RecordStore()
    first = make_expense("Netflix", "15.99")
    store.add_expense(first)
    assert store.recommendations == []

    store.add_expense(make_expense("Netflix", "15.99"))
    assert of_type(store.pending_recommendations, RecommendationType.DUPLICATE)

    with pytest.raises(ValueError):
        store.add_expense(first)


def test_import_expenses_replaces_records_and_recommendations():
    store = _store()
    assert store.recommendations
    store.import_expenses([make_expense("Netflix", "15.99")])
    assert [r.paid_to for r in store.expenses] == ["Netflix"]
    assert store.recommendations == []


def test_reconcile_skipped_when_everything_is_soft_deleted():
    store = RecordStore([make_expense("Netflix", deleted=True)])
    assert store.reconcile() == []


def test_filter_expenses():
    store = RecordStore(
        [
            make_expense("A", date="2024-01-05", expense_type="Food", transaction_type="Card"),
            make_expense("B", date="2024-02-05", expense_type="Food", expense_subtype="Groceries"),
            make_expense("C", date="2024-03-05", expense_type="Travel"),
            make_expense("D", date="2024-02-10", expense_type="Food", deleted=True),
        ]
    )

    def names(criteria):
        return [r.paid_to for r in store.filter_expenses(criteria)]

    assert names(None) == ["A", "B", "C"]
    assert names(FilterCriteria(category="Food")) == ["A", "B"]
    assert names(FilterCriteria(date_start="2024-02-01", date_end="2024-02-28")) == ["B"]
    assert names(FilterCriteria(subcategory="Groceries")) == ["B"]
    assert names(FilterCriteria(transaction_type="Card")) == ["A"]


def test_income_and_transfer_records_soft_and_hard_delete():
    store = RecordStore()
    income = store.add_income(IncomeRecord(date_of_receipt=date(2024, 1, 31).isoformat()))
    transfer = store.add_investment_transfer(
        InvestmentTransferRecord(date_of_transfer="2024-02-01", amount_transferred=Decimal("500"))
    )

    assert store.soft_delete_income(income.id).is_deleted
    assert store.incomes[0].is_deleted
    store.hard_delete_income(income.id)
    assert store.incomes == []

    assert store.soft_delete_investment_transfer(transfer.id).is_deleted
    store.hard_delete_investment_transfer(transfer.id)
    assert store.investment_transfers == []
    # Side records never produce recommendations.
    assert store.recommendations == []
