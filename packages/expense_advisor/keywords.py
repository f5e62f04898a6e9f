"""Static keyword → (category, subcategory) table used by the rules.

Rules are checked in order; the first rule with a keyword contained in the
lowercased counterparty name or description wins.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class KeywordRule:
    keywords: tuple[str, ...]
    category: str
    subcategory: str


@dataclass(frozen=True, slots=True)
class KeywordMatch:
    category: str
    subcategory: str
    keyword: str


KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("uber", "lyft", "taxi"), "Travel", "Ride Sharing"),
    KeywordRule(("flight", "airline", "aa.com"), "Travel", "Flights"),
    KeywordRule(("coffee", "starbucks", "cafe"), "Food", "Coffee Shops"),
    KeywordRule(("zomato", "doordash", "grubhub", "uber eats"), "Food", "Delivery"),
    KeywordRule(("amazon", "walmart", "target"), "Shopping", "General Merchandise"),
    KeywordRule(("groceries", "supermarket"), "Food", "Groceries"),
)


def match_keyword(
    paid_to: str,
    description: str,
    *,
    category: str | None = None,
    rules: Sequence[KeywordRule] = KEYWORD_RULES,
) -> KeywordMatch | None:
    """Return the first keyword rule matching the name or description.

    When ``category`` is given only rules for that category are considered.
    """

    name = paid_to.lower()
    desc = description.lower()
    for rule in rules:
        if category is not None and rule.category != category:
            continue
        for kw in rule.keywords:
            if kw in name or kw in desc:
                return KeywordMatch(rule.category, rule.subcategory, kw)
    return None


__all__ = ["KEYWORD_RULES", "KeywordMatch", "KeywordRule", "match_keyword"]
