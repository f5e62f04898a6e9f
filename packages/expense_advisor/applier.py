"""Apply and ignore actions for recommendations.

These functions never mutate their inputs: they return updated record and
recommendation lists for the caller (usually :class:`~expense_advisor.store.RecordStore`)
to store and reconcile.

Applying a field recommendation snapshots the field's previous value into
``original_values`` the first time that field is overwritten, writes the
suggested value and sets the provenance flag for the recommendation type.
Applying a duplicate marks both records as duplicate candidates and
soft-deletes the record named by the action token.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .logging_setup import get_logger
from .models import (
    EXPENSE_FIELDS,
    ExpenseOriginalValues,
    ExpenseRecord,
    Recommendation,
    RecommendationType,
    parse_delete_target,
)

_logger = get_logger("expense_advisor.applier")

_PROVENANCE_FLAG: dict[RecommendationType, str] = {
    RecommendationType.MERCHANT_NORMALIZATION: "merchant_normalized",
    RecommendationType.CLASSIFICATION: "category_suggested",
    RecommendationType.MISSING_FIELD: "fields_filled",
}


class UnknownRecommendationError(KeyError):
    """Raised when a recommendation id is not in the current list."""


class UnknownRecordError(KeyError):
    """Raised when a record id is not in the current record set."""


def find_recommendation(
    recommendations: Iterable[Recommendation], recommendation_id: str
) -> Recommendation:
    for rec in recommendations:
        if rec.id == recommendation_id:
            return rec
    raise UnknownRecommendationError(f"unknown recommendation id: {recommendation_id!r}")


def apply_to_record(record: ExpenseRecord, rec: Recommendation) -> ExpenseRecord:
    """Return ``record`` with ``rec``'s edit applied."""

    if rec.type is RecommendationType.DUPLICATE:
        flag_updates = {"is_duplicate_candidate": True}
        if parse_delete_target(rec.suggested_value) == record.id:
            flag_updates["is_deleted"] = True
        return record.model_copy(update={"flags": record.flags.model_copy(update=flag_updates)})

    field = rec.affected_field
    if field not in EXPENSE_FIELDS:
        _logger.warning("apply:skip rec=%s unsupported field=%r", rec.id, field)
        return record

    originals = record.original_values or ExpenseOriginalValues()
    if getattr(originals, field) is None:
        originals = originals.model_copy(update={field: getattr(record, field)})

    return record.model_copy(
        update={
            field: rec.suggested_value,
            "original_values": originals,
            "flags": record.flags.model_copy(update={_PROVENANCE_FLAG[rec.type]: True}),
        }
    )


def _apply_one(
    records: list[ExpenseRecord],
    recommendations: list[Recommendation],
    rec: Recommendation,
) -> tuple[list[ExpenseRecord], list[Recommendation]]:
    targets = set(rec.transaction_ids)
    new_records = [apply_to_record(r, rec) if r.id in targets else r for r in records]
    new_recs = [replace(r, status="applied") if r.id == rec.id else r for r in recommendations]
    _logger.debug("apply:done rec=%s type=%s targets=%d", rec.id, rec.type.value, len(targets))
    return new_records, new_recs


def apply_recommendation(
    records: Sequence[ExpenseRecord],
    recommendations: Sequence[Recommendation],
    recommendation_id: str,
) -> tuple[list[ExpenseRecord], list[Recommendation]]:
    """Apply one pending recommendation.

    Raises :class:`UnknownRecommendationError` for an unknown id. Applying a
    recommendation that is already applied or ignored changes nothing.
    """

    rec = find_recommendation(recommendations, recommendation_id)
    if rec.status != "pending":
        _logger.debug("apply:noop rec=%s status=%s", rec.id, rec.status)
        return list(records), list(recommendations)
    return _apply_one(list(records), list(recommendations), rec)


def ignore_recommendation(
    recommendations: Sequence[Recommendation],
    recommendation_id: str,
) -> list[Recommendation]:
    """Mark one pending recommendation ``ignored``; records are untouched."""

    rec = find_recommendation(recommendations, recommendation_id)
    if rec.status != "pending":
        return list(recommendations)
    return [replace(r, status="ignored") if r.id == rec.id else r for r in recommendations]


def apply_many(
    records: Sequence[ExpenseRecord],
    recommendations: Sequence[Recommendation],
    recommendation_ids: Iterable[str],
) -> tuple[list[ExpenseRecord], list[Recommendation]]:
    """Apply several recommendations in order.

    Each item sees the record edits of the items before it. Ids that are
    unknown or no longer pending are skipped.
    """

    cur_records = list(records)
    cur_recs = list(recommendations)
    by_id = {r.id: r for r in cur_recs}
    applied = 0
    for rid in recommendation_ids:
        rec = by_id.get(rid)
        if rec is None or rec.status != "pending":
            _logger.warning("apply_many:skip rec=%s", rid)
            continue
        cur_records, cur_recs = _apply_one(cur_records, cur_recs, rec)
        by_id[rid] = replace(rec, status="applied")
        applied += 1
    _logger.info("apply_many:done applied=%d", applied)
    return cur_records, cur_recs


def ignore_many(
    recommendations: Sequence[Recommendation],
    recommendation_ids: Iterable[str],
) -> list[Recommendation]:
    wanted = set(recommendation_ids)
    return [
        replace(r, status="ignored") if r.id in wanted and r.status == "pending" else r
        for r in recommendations
    ]


__all__ = [
    "UnknownRecommendationError",
    "UnknownRecordError",
    "apply_many",
    "apply_recommendation",
    "apply_to_record",
    "find_recommendation",
    "ignore_many",
    "ignore_recommendation",
]
