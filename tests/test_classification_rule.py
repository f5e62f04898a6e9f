from expense_advisor.models import RecommendationType
from expense_advisor.rules.classification import suggest_classification_recommendations

from tests.helpers.records import for_field, make_expense


def _run(records):
    return suggest_classification_recommendations(records, records)


def _values(recs):
    return sorted((r.affected_field, r.suggested_value, r.confidence) for r in recs)


def test_keyword_path_suggests_category_and_subcategory():
    ride = make_expense("Uber", description="airport")
    recs = _run([ride])
    assert all(r.type is RecommendationType.CLASSIFICATION for r in recs)
    assert _values(recs) == [
        ("expense_subtype", "Ride Sharing", 0.80),
        ("expense_type", "Travel", 0.85),
    ]


def test_keyword_path_only_subcategory_when_category_matches():
    coffee = make_expense("Starbucks", expense_type="Food")
    assert _values(_run([coffee])) == [("expense_subtype", "Coffee Shops", 0.75)]


def test_keyword_path_silent_when_already_classified_or_conflicting():
    done = make_expense("Starbucks", expense_type="Food", expense_subtype="Coffee Shops")
    other = make_expense("Starbucks", expense_type="Entertainment")
    assert _run([done]) == []
    # Category set to something else: the keyword path does not override it.
    assert for_field(_run([other]), "expense_type") == []


def test_history_path_uses_most_frequent_pair():
    history = [
        make_expense("Blue Bottle", expense_type="Food", expense_subtype="Coffee Shops"),
        make_expense("Blue Bottle", expense_type="Food", expense_subtype="Coffee Shops"),
        make_expense("Blue Bottle", expense_type="Food", expense_subtype="Bakery"),
    ]
    target = make_expense("blue bottle")
    recs = [r for r in _run(history + [target]) if target.id in r.transaction_ids]
    assert _values(recs) == [
        ("expense_subtype", "Coffee Shops", 0.65),
        ("expense_type", "Food", 0.7),
    ]


def test_history_path_subcategory_only_when_category_agrees():
    history = [make_expense("Blue Bottle", expense_type="Food", expense_subtype="Coffee Shops")]
    agrees = make_expense("Blue Bottle", expense_type="Food")
    disagrees = make_expense("Blue Bottle", expense_type="Gifts")

    recs = _run(history + [agrees, disagrees])

    assert [r.transaction_ids for r in recs] == [(agrees.id,)]
    assert _values(recs) == [("expense_subtype", "Coffee Shops", 0.65)]


def test_both_paths_fire_and_compete():
    history = [
        make_expense("Uber", expense_type="Transport", expense_subtype="Taxi"),
        make_expense("Uber", expense_type="Transport", expense_subtype="Taxi"),
    ]
    target = make_expense("Uber")
    recs = [r for r in _run(history + [target]) if target.id in r.transaction_ids]

    categories = for_field(recs, "expense_type")
    assert sorted((r.suggested_value, r.confidence) for r in categories) == [
        ("Transport", 0.7),
        ("Travel", 0.85),
    ]
    # Keyword suggestions come first.
    assert categories[0].suggested_value == "Travel"


def test_history_requires_both_fields_on_past_records():
    history = [make_expense("Blue Bottle", expense_type="Food")]
    target = make_expense("Blue Bottle")
    assert [r for r in _run(history + [target]) if target.id in r.transaction_ids] == []
