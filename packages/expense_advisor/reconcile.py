"""Recommendation reconciliation.

:func:`reconcile_recommendations` merges a fresh rule run into the previous
recommendation list. Recommendations are matched across passes by
:func:`identity_key`, never by ``id``, so that:

- applied/ignored decisions survive and are never rediscovered as pending;
- a pending recommendation recomputed by the rules keeps its old ``id`` while
  its content is refreshed;
- recommendations whose targets were hard-deleted, or whose single target is
  soft-deleted, disappear.

The function is pure: it reads only its arguments, and running it again on
its own output with an unchanged record set returns an equal list.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from .logging_setup import get_logger
from .models import ExpenseRecord, Recommendation, RecommendationType
from .rules import DEFAULT_RULES, Rule

_logger = get_logger("expense_advisor.reconcile")

_TARGETS_DELETED_NOTE = " (Original targets deleted)"

type IdentityKey = tuple[str, tuple[str, ...], str | None, Any]


def identity_key(rec: Recommendation) -> IdentityKey:
    """Return the hashable key identifying "the same proposed edit".

    The key is ``(type, sorted ids, affected field, original value)``; the
    original value is left out for duplicates, whose identity is the pair.
    """

    original = None if rec.type is RecommendationType.DUPLICATE else rec.original_value
    return (
        rec.type.value,
        tuple(sorted(rec.transaction_ids)),
        rec.affected_field,
        original,
    )


def run_rules(
    records: Sequence[ExpenseRecord],
    rules: Iterable[Rule] = DEFAULT_RULES,
) -> list[Recommendation]:
    """Run every rule over the active records, with ``records`` as history."""

    active = [r for r in records if not r.flags.is_deleted]
    candidates: list[Recommendation] = []
    for rule in rules:
        produced = rule(active, records)
        _logger.debug("rule:%s produced=%d", getattr(rule, "__name__", rule), len(produced))
        candidates.extend(produced)
    return candidates


def reconcile_recommendations(
    records: Sequence[ExpenseRecord],
    previous: Sequence[Recommendation],
    *,
    rules: Iterable[Rule] = DEFAULT_RULES,
) -> list[Recommendation]:
    """Return the new authoritative recommendation list.

    Parameters
    ----------
    records:
        The full current expense set, soft-deleted records included. Ids
        missing from it count as hard-deleted.
    previous:
        The recommendation list returned by the previous pass (possibly with
        statuses changed by apply/ignore since).
    rules:
        Ordered rule registry; defaults to :data:`~expense_advisor.rules.DEFAULT_RULES`.
    """

    present = {r.id for r in records}
    soft_deleted = {r.id for r in records if r.flags.is_deleted}

    output: list[Recommendation] = []
    resolved: set[IdentityKey] = set()

    # 1. Carry forward applied/ignored decisions.
    carried = 0
    for rec in previous:
        if not rec.is_terminal:
            continue
        valid = tuple(i for i in rec.transaction_ids if i in present)
        if rec.transaction_ids and not valid:
            output.append(
                replace(
                    rec,
                    transaction_ids=(),
                    description=rec.description + _TARGETS_DELETED_NOTE,
                )
            )
        else:
            output.append(replace(rec, transaction_ids=valid))
        # Identity of the decision as it was made, before id filtering.
        resolved.add(identity_key(rec))
        carried += 1

    # 2. Fresh rule run.
    candidates = run_rules(records, rules)

    # 3. Merge candidates with the previous pending set.
    pending_by_identity: dict[IdentityKey, Recommendation] = {
        identity_key(rec): rec for rec in previous if rec.status == "pending"
    }
    reused = 0
    suppressed = 0
    for cand in candidates:
        key = identity_key(cand)
        if key in resolved:
            suppressed += 1
            continue
        old = pending_by_identity.get(key)
        if old is not None:
            output.append(replace(cand, id=old.id, status="pending"))
            reused += 1
        else:
            output.append(cand)
        resolved.add(key)

    # Rules never see soft-deleted records, so a pending duplicate whose two
    # members are both soft-deleted is carried over as it was.
    for key, old in pending_by_identity.items():
        if key in resolved or old.type is not RecommendationType.DUPLICATE:
            continue
        ids = old.transaction_ids
        if ids and all(i in present and i in soft_deleted for i in ids):
            output.append(old)
            resolved.add(key)

    # 4. Prune, then 5. deduplicate by id (terminal entries win).
    final: dict[str, Recommendation] = {}
    dropped = 0
    for rec in output:
        valid = tuple(i for i in rec.transaction_ids if i in present)
        current = rec if valid == rec.transaction_ids else replace(rec, transaction_ids=valid)

        if current.status == "pending":
            if not valid and rec.transaction_ids:
                dropped += 1
                continue
            if (
                current.type is not RecommendationType.DUPLICATE
                and valid
                and all(i in soft_deleted for i in valid)
            ):
                dropped += 1
                continue

        existing = final.get(current.id)
        if existing is not None and existing.is_terminal:
            continue
        final[current.id] = current

    _logger.debug(
        "reconcile:done records=%d carried=%d candidates=%d reused=%d suppressed=%d "
        "dropped=%d total=%d",
        len(records),
        carried,
        len(candidates),
        reused,
        suppressed,
        dropped,
        len(final),
    )
    return list(final.values())


def visible_recommendations(
    records: Sequence[ExpenseRecord],
    recommendations: Iterable[Recommendation],
) -> list[Recommendation]:
    """Recommendations whose every target is an active (non-deleted) record."""

    active = {r.id for r in records if not r.flags.is_deleted}
    return [rec for rec in recommendations if all(i in active for i in rec.transaction_ids)]


__all__ = [
    "IdentityKey",
    "identity_key",
    "reconcile_recommendations",
    "run_rules",
    "visible_recommendations",
]
