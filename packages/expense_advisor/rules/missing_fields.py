"""Missing-field completion from merchant history and keyword heuristics."""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence

from ..keywords import match_keyword
from ..models import ExpenseField, ExpenseRecord, Recommendation, RecommendationType, new_id
from ._common import row_label


def _most_frequent(counter: Counter[str] | None) -> str | None:
    if not counter:
        return None
    # most_common keeps insertion order among equal counts.
    return counter.most_common(1)[0][0]


def suggest_missing_field_recommendations(
    active: Sequence[ExpenseRecord],
    history: Sequence[ExpenseRecord],
) -> list[Recommendation]:
    """Suggest values for empty category, subcategory and transaction type.

    Category and subcategory resolve from the counterparty's most frequent
    historical value first and fall back to the keyword table; transaction
    type resolves from history only.
    """

    category_freq: defaultdict[str, Counter[str]] = defaultdict(Counter)
    subcategory_freq: defaultdict[tuple[str, str], Counter[str]] = defaultdict(Counter)
    txn_type_freq: defaultdict[str, Counter[str]] = defaultdict(Counter)

    for t in history:
        if t.flags.is_deleted:
            continue
        key = t.paid_to.lower()
        if not key:
            continue
        if t.expense_type:
            category_freq[key][t.expense_type] += 1
            if t.expense_subtype:
                subcategory_freq[(key, t.expense_type)][t.expense_subtype] += 1
        if t.transaction_type:
            txn_type_freq[key][t.transaction_type] += 1

    recommendations: list[Recommendation] = []

    def _emit(
        t: ExpenseRecord, field: ExpenseField, suggestion: str, confidence: float, text: str
    ) -> None:
        recommendations.append(
            Recommendation(
                id=new_id(),
                type=RecommendationType.MISSING_FIELD,
                transaction_ids=(t.id,),
                affected_field=field,
                original_value=getattr(t, field),
                suggested_value=suggestion,
                confidence=confidence,
                description=text,
            )
        )

    for t in active:
        if t.flags.is_deleted:
            continue
        key = t.paid_to.lower()
        row = row_label(t)

        if not t.expense_type:
            suggestion = _most_frequent(category_freq.get(key)) if key else None
            if suggestion:
                _emit(
                    t,
                    "expense_type",
                    suggestion,
                    0.65,
                    f'Suggest filling missing Expense Type with "{suggestion}" based on '
                    f"historical data for transaction at row {row}.",
                )
            elif (kw := match_keyword(t.paid_to, t.description)) is not None:
                _emit(
                    t,
                    "expense_type",
                    kw.category,
                    0.8,
                    f'Suggest filling missing Expense Type with "{kw.category}" based on '
                    f"keyword match ('{kw.keyword}') for transaction at row {row}.",
                )

        if t.expense_type and not t.expense_subtype:
            suggestion = (
                _most_frequent(subcategory_freq.get((key, t.expense_type))) if key else None
            )
            if suggestion:
                _emit(
                    t,
                    "expense_subtype",
                    suggestion,
                    0.6,
                    f'Suggest filling missing Expense Subtype with "{suggestion}" based on '
                    f"historical data for transaction at row {row}.",
                )
            elif (
                kw := match_keyword(t.paid_to, t.description, category=t.expense_type)
            ) is not None:
                _emit(
                    t,
                    "expense_subtype",
                    kw.subcategory,
                    0.75,
                    f'Suggest filling missing Expense Subtype with "{kw.subcategory}" based '
                    f"on keyword match ('{kw.keyword}') for type {t.expense_type} for "
                    f"transaction at row {row}.",
                )

        if not t.transaction_type:
            suggestion = _most_frequent(txn_type_freq.get(key)) if key else None
            if suggestion:
                _emit(
                    t,
                    "transaction_type",
                    suggestion,
                    0.6,
                    f'Suggest filling missing Transaction Type with "{suggestion}" based on '
                    f'historical data for "{t.paid_to}" at row {row}.',
                )

    return recommendations


__all__ = ["suggest_missing_field_recommendations"]
