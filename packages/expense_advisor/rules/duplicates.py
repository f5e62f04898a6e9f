"""Duplicate-pair detection.

Records sharing the exact ``(date, amount)`` bucket are compared pairwise on
counterparty name and description. A pair is reported when its confidence
reaches :data:`MIN_CONFIDENCE`; the suggested action soft-deletes the record
that came later in the input.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from ..models import (
    DuplicatePair,
    ExpenseRecord,
    Recommendation,
    RecommendationType,
    delete_token,
    new_id,
)
from ..similarity import containment_similarity
from ._common import row_label

MIN_CONFIDENCE = 0.75
_NAME_THRESHOLD = 0.8
_DESCRIPTION_THRESHOLD = 0.7
_CENTS = Decimal("0.01")


def _pair_confidence(first: ExpenseRecord, second: ExpenseRecord) -> float:
    name_similar = containment_similarity(first.paid_to, second.paid_to) > _NAME_THRESHOLD
    desc_similar = (
        containment_similarity(first.description, second.description) > _DESCRIPTION_THRESHOLD
    )
    name_exact = first.paid_to == second.paid_to
    desc_exact = first.description == second.description

    if name_similar and desc_similar:
        return 1.0 if name_exact and desc_exact else 0.9
    if desc_exact and name_similar:
        return 0.95
    if name_exact and desc_similar:
        return 0.95
    if name_similar or desc_similar:
        return 0.75
    return 0.0


def find_duplicate_recommendations(
    active: Sequence[ExpenseRecord],
    history: Sequence[ExpenseRecord] = (),
) -> list[Recommendation]:
    """Return one ``Duplicate`` recommendation per suspected duplicate pair.

    ``history`` is accepted for the common rule signature and unused.
    """

    buckets: dict[tuple[str, Decimal], list[ExpenseRecord]] = {}
    for t in active:
        if t.flags.is_deleted:
            continue
        key = (t.date_of_payment, t.amount_paid.quantize(_CENTS))
        buckets.setdefault(key, []).append(t)

    processed: set[tuple[str, ...]] = set()
    recommendations: list[Recommendation] = []
    for group in buckets.values():
        if len(group) < 2:
            continue
        for i, first in enumerate(group):
            for second in group[i + 1 :]:
                pair = tuple(sorted((first.id, second.id)))
                if pair in processed:
                    continue
                processed.add(pair)

                confidence = _pair_confidence(first, second)
                if confidence < MIN_CONFIDENCE:
                    continue
                recommendations.append(
                    Recommendation(
                        id=new_id(),
                        type=RecommendationType.DUPLICATE,
                        transaction_ids=pair,
                        original_value=DuplicatePair(
                            first_paid_to=first.paid_to,
                            first_description=first.description,
                            second_paid_to=second.paid_to,
                            second_description=second.description,
                        ),
                        suggested_value=delete_token(second.id),
                        confidence=confidence,
                        description=(
                            "Potential duplicate transactions found. "
                            f"Row {row_label(first)} and Row {row_label(second)} have the "
                            "same date and amount, with similar 'Paid To' and/or 'Description'."
                        ),
                    )
                )
    return recommendations


__all__ = ["MIN_CONFIDENCE", "find_duplicate_recommendations"]
