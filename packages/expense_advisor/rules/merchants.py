"""Merchant-name normalization.

Distinct counterparty names are clustered greedily in descending frequency
order. A name either joins the first existing canonical it is similar to, or
becomes a new canonical and sweeps the remaining unmapped names similar to it
into its cluster. The clustering is single-pass and order dependent; a later
canonical may collect names an earlier pass would have grouped differently.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from ..models import ExpenseRecord, Recommendation, RecommendationType, new_id
from ..similarity import normalized_edit_similarity

SIMILARITY_THRESHOLD = 0.8


def build_canonical_map(names: Sequence[str]) -> dict[str, str]:
    """Map every name in ``names`` to its canonical spelling.

    ``names`` must already be ordered by descending frequency.
    """

    canonical_for: dict[str, str] = {}
    canonicals: list[str] = []
    for name in names:
        if name in canonical_for:
            continue

        match = next(
            (
                c
                for c in canonicals
                if normalized_edit_similarity(name, c) >= SIMILARITY_THRESHOLD
            ),
            None,
        )
        if match is not None:
            canonical_for[name] = match
            continue

        canonical_for[name] = name
        canonicals.append(name)
        for other in names:
            if other in canonical_for or other == name:
                continue
            if normalized_edit_similarity(name, other) >= SIMILARITY_THRESHOLD:
                canonical_for[other] = name
    return canonical_for


def normalize_merchant_recommendations(
    active: Sequence[ExpenseRecord],
    history: Sequence[ExpenseRecord] = (),
) -> list[Recommendation]:
    """Suggest renaming each counterparty variant to its cluster's canonical.

    ``history`` is accepted for the common rule signature and unused.
    """

    counts: Counter[str] = Counter()
    for t in active:
        if t.flags.is_deleted:
            continue
        name = t.paid_to.strip()
        if name:
            counts[name] += 1

    # Stable: equal counts keep first-seen order.
    ordered = sorted(counts, key=lambda n: counts[n], reverse=True)
    canonical_for = build_canonical_map(ordered)

    recommendations: list[Recommendation] = []
    for t in active:
        if t.flags.is_deleted:
            continue
        original = t.paid_to.strip()
        if not original:
            continue
        canonical = canonical_for.get(original)
        if not canonical or canonical == original:
            continue
        similarity = normalized_edit_similarity(original, canonical)
        confidence = min(0.95, max(0.5, 0.6 + similarity * 0.35))
        recommendations.append(
            Recommendation(
                id=new_id(),
                type=RecommendationType.MERCHANT_NORMALIZATION,
                transaction_ids=(t.id,),
                affected_field="paid_to",
                original_value=original,
                suggested_value=canonical,
                confidence=confidence,
                description=(
                    f'Normalize merchant name from "{original}" to "{canonical}" '
                    "for consistency."
                ),
            )
        )
    return recommendations


__all__ = [
    "SIMILARITY_THRESHOLD",
    "build_canonical_map",
    "normalize_merchant_recommendations",
]
