"""Recommendation rules.

Every rule is a pure function ``(active, history) -> list[Recommendation]``:
``active`` holds the non-deleted expense records to scan and ``history`` the
full record set used for frequency statistics. Rules never raise on empty or
zero-valued fields and always return freshly created ``pending``
recommendations with new ids.

``DEFAULT_RULES`` is the ordered registry the reconciliation engine runs.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from ..models import ExpenseRecord, Recommendation
from .classification import suggest_classification_recommendations
from .duplicates import find_duplicate_recommendations
from .merchants import normalize_merchant_recommendations
from .missing_fields import suggest_missing_field_recommendations


class Rule(Protocol):
    __name__: str

    def __call__(
        self,
        active: Sequence[ExpenseRecord],
        history: Sequence[ExpenseRecord],
    ) -> list[Recommendation]: ...


DEFAULT_RULES: tuple[Rule, ...] = (
    find_duplicate_recommendations,
    normalize_merchant_recommendations,
    suggest_missing_field_recommendations,
    suggest_classification_recommendations,
)


__all__ = [
    "DEFAULT_RULES",
    "Rule",
    "find_duplicate_recommendations",
    "normalize_merchant_recommendations",
    "suggest_classification_recommendations",
    "suggest_missing_field_recommendations",
]
