import pytest

from expense_advisor.models import RecommendationType
from expense_advisor.rules.merchants import (
    build_canonical_map,
    normalize_merchant_recommendations,
)

from tests.helpers.records import make_expense


def test_frequent_spelling_becomes_canonical():
    records = [make_expense("AMZN Mktp US") for _ in range(5)]
    variant = make_expense("AMZN Mktp USA")
    records.append(variant)

    recs = normalize_merchant_recommendations(records)

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type is RecommendationType.MERCHANT_NORMALIZATION
    assert rec.transaction_ids == (variant.id,)
    assert rec.affected_field == "paid_to"
    assert rec.original_value == "AMZN Mktp USA"
    assert rec.suggested_value == "AMZN Mktp US"
    assert 0.5 <= rec.confidence <= 0.95
    assert rec.confidence == pytest.approx(0.6 + (1 - 1 / 13) * 0.35)


def test_dissimilar_names_are_left_alone():
    records = [make_expense("Shell"), make_expense("Starbucks"), make_expense("Netflix")]
    assert normalize_merchant_recommendations(records) == []


def test_names_are_trimmed_before_counting():
    records = [make_expense("Netflix "), make_expense(" Netflix"), make_expense("Netflix")]
    assert normalize_merchant_recommendations(records) == []


def test_empty_and_deleted_names_are_ignored():
    records = [
        make_expense(""),
        make_expense("Trader Joes"),
        make_expense("Trader Joe's", deleted=True),
    ]
    assert normalize_merchant_recommendations(records) == []


def test_canonical_map_groups_variants_under_most_frequent():
    # Ordered by frequency; punctuation-only variants collapse together.
    mapping = build_canonical_map(["Trader Joes", "Trader Joe's", "Costco"])
    assert mapping == {
        "Trader Joes": "Trader Joes",
        "Trader Joe's": "Trader Joes",
        "Costco": "Costco",
    }


def test_ties_keep_first_seen_order():
    first = make_expense("Walgreens")
    second = make_expense("Walgreen")
    (rec,) = normalize_merchant_recommendations([first, second])
    assert rec.transaction_ids == (second.id,)
    assert rec.suggested_value == "Walgreens"
