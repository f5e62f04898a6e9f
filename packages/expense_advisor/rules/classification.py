"""Category/subcategory classification suggestions.

Two independent sources feed this rule: the static keyword table and the
counterparty's most frequent historical ``(category, subcategory)`` pair.
Both may fire for the same record, so a consumer can see competing
suggestions for one field and pick between them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..keywords import match_keyword
from ..models import ExpenseField, ExpenseRecord, Recommendation, RecommendationType, new_id
from ._common import row_label


@dataclass(slots=True)
class _PairCount:
    category: str
    subcategory: str
    count: int


def _rank_history(history: Sequence[ExpenseRecord]) -> dict[str, list[_PairCount]]:
    ranked: dict[str, list[_PairCount]] = {}
    for t in history:
        if t.flags.is_deleted or not t.paid_to or not t.expense_type or not t.expense_subtype:
            continue
        entries = ranked.setdefault(t.paid_to.lower(), [])
        for entry in entries:
            if entry.category == t.expense_type and entry.subcategory == t.expense_subtype:
                entry.count += 1
                break
        else:
            entries.append(_PairCount(t.expense_type, t.expense_subtype, 1))
    for entries in ranked.values():
        entries.sort(key=lambda e: e.count, reverse=True)
    return ranked


def _suggest(
    t: ExpenseRecord,
    field: ExpenseField,
    value: str,
    confidence: float,
    description: str,
) -> Recommendation:
    return Recommendation(
        id=new_id(),
        type=RecommendationType.CLASSIFICATION,
        transaction_ids=(t.id,),
        affected_field=field,
        original_value=getattr(t, field),
        suggested_value=value,
        confidence=confidence,
        description=description,
    )


def suggest_classification_recommendations(
    active: Sequence[ExpenseRecord],
    history: Sequence[ExpenseRecord],
) -> list[Recommendation]:
    ranked = _rank_history(history)
    recommendations: list[Recommendation] = []

    for t in active:
        if t.flags.is_deleted:
            continue
        key = t.paid_to.lower()
        row = row_label(t)

        kw = match_keyword(t.paid_to, t.description)
        if kw is not None and (
            t.expense_type != kw.category or t.expense_subtype != kw.subcategory
        ):
            if not t.expense_type:
                recommendations.append(
                    _suggest(
                        t,
                        "expense_type",
                        kw.category,
                        0.85,
                        f'Suggest classifying as Type: "{kw.category}" based on keyword '
                        f'"{kw.keyword}" for transaction at row {row}.',
                    )
                )
                recommendations.append(
                    _suggest(
                        t,
                        "expense_subtype",
                        kw.subcategory,
                        0.80,
                        f'Suggest classifying as Subtype: "{kw.subcategory}" (Type: '
                        f'{kw.category}) based on keyword "{kw.keyword}" for transaction '
                        f"at row {row}.",
                    )
                )
            elif t.expense_type == kw.category and not t.expense_subtype:
                recommendations.append(
                    _suggest(
                        t,
                        "expense_subtype",
                        kw.subcategory,
                        0.75,
                        f'Suggest Subtype: "{kw.subcategory}" for Type "{t.expense_type}" '
                        f'based on keyword "{kw.keyword}" for transaction at row {row}.',
                    )
                )

        top = ranked[key][0] if key and ranked.get(key) else None
        if top is None:
            continue
        if not t.expense_type and not t.expense_subtype:
            recommendations.append(
                _suggest(
                    t,
                    "expense_type",
                    top.category,
                    0.7,
                    f'Suggest Type "{top.category}" based on frequent past classifications '
                    f'for "{t.paid_to}" (row {row}).',
                )
            )
            recommendations.append(
                _suggest(
                    t,
                    "expense_subtype",
                    top.subcategory,
                    0.65,
                    f'Suggest Subtype "{top.subcategory}" based on frequent past '
                    f'classifications for "{t.paid_to}" (row {row}).',
                )
            )
        elif t.expense_type and not t.expense_subtype and top.category == t.expense_type:
            recommendations.append(
                _suggest(
                    t,
                    "expense_subtype",
                    top.subcategory,
                    0.65,
                    f'Suggest Subtype "{top.subcategory}" for Type "{t.expense_type}" based '
                    f'on frequent past classifications for "{t.paid_to}" (row {row}).',
                )
            )

    return recommendations


__all__ = ["suggest_classification_recommendations"]
