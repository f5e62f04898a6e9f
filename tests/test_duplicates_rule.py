from decimal import Decimal

from expense_advisor.models import DuplicatePair, RecommendationType, delete_token
from expense_advisor.rules.duplicates import find_duplicate_recommendations

from tests.helpers.records import make_expense


def test_starbucks_pair_is_reported_once_with_sorted_ids():
    a = make_expense("Starbucks #123", "42.50", date="2024-03-01", description="coffee", id="b-2")
    b = make_expense("Starbucks #124", "42.50", date="2024-03-01", description="coffee", id="a-1")

    recs = find_duplicate_recommendations([a, b])

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type is RecommendationType.DUPLICATE
    assert rec.transaction_ids == ("a-1", "b-2")
    assert rec.confidence is not None and rec.confidence >= 0.9
    assert rec.status == "pending"
    # The later record in input order is the one proposed for deletion.
    assert rec.suggested_value == delete_token("a-1")
    assert rec.original_value == DuplicatePair(
        first_paid_to="Starbucks #123",
        first_description="coffee",
        second_paid_to="Starbucks #124",
        second_description="coffee",
    )


def test_exact_name_and_description_scores_one():
    a = make_expense("Netflix", "15.99", description="subscription")
    b = make_expense("Netflix", "15.99", description="subscription")
    (rec,) = find_duplicate_recommendations([a, b])
    assert rec.confidence == 1.0


def test_similar_name_and_exact_description_takes_first_branch():
    # An exact description is also a similar one, so the combined branch wins.
    a = make_expense("Starbucks #123", "5.00", description="latte")
    b = make_expense("Starbucks #124", "5.00", description="latte")
    (rec,) = find_duplicate_recommendations([a, b])
    assert rec.confidence == 0.9


def test_name_only_similarity_scores_075():
    a = make_expense("Shell", "40.00", description="fuel for road trip")
    b = make_expense("Shell", "40.00", description="car wash and snacks")
    (rec,) = find_duplicate_recommendations([a, b])
    assert rec.confidence == 0.75


def test_different_date_or_amount_never_pairs():
    a = make_expense("Shell", "40.00", date="2024-01-01")
    b = make_expense("Shell", "40.01", date="2024-01-01")
    c = make_expense("Shell", "40.00", date="2024-01-02")
    assert find_duplicate_recommendations([a, b, c]) == []


def test_amounts_compare_at_cent_precision():
    a = make_expense("Shell", Decimal("40.5"))
    b = make_expense("Shell", Decimal("40.50"))
    assert len(find_duplicate_recommendations([a, b])) == 1


def test_dissimilar_pair_in_same_bucket_is_not_reported():
    a = make_expense("Whole Foods", "20.00", description="groceries")
    b = make_expense("Chevron", "20.00", description="gas")
    assert find_duplicate_recommendations([a, b]) == []


def test_soft_deleted_records_are_skipped():
    a = make_expense("Netflix", "15.99")
    b = make_expense("Netflix", "15.99", deleted=True)
    assert find_duplicate_recommendations([a, b]) == []


def test_three_way_bucket_reports_each_pair_once():
    recs = find_duplicate_recommendations(
        [make_expense("Netflix", "9.99", id=f"n{i}") for i in range(3)]
    )
    pairs = sorted(r.transaction_ids for r in recs)
    assert pairs == [("n0", "n1"), ("n0", "n2"), ("n1", "n2")]
