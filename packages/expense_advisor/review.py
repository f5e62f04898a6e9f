"""Interactive review of pending recommendations.

The loop shows one pending recommendation at a time, asks the operator for an
action and hands the decision to the :class:`~expense_advisor.store.RecordStore`,
which re-reconciles after each apply/ignore. Because reconciliation can add
or drop recommendations (applying a merchant fix may enable a new
classification, deleting a duplicate retires the other rules on that row),
the next item is always picked from the store's current pending list.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from prompt_toolkit import PromptSession

from .logging_setup import get_logger
from .models import DuplicatePair, ExpenseRecord, Recommendation, RecommendationType
from .store import RecordStore
from .term_ui import ReviewAction, select_review_action

_logger = get_logger("expense_advisor.review")

type ActionSelector = Callable[[Recommendation], ReviewAction]


@dataclass(slots=True)
class ReviewSummary:
    applied: int = 0
    ignored: int = 0
    skipped: int = 0
    quit_early: bool = False


def _fmt_confidence(rec: Recommendation) -> str:
    return "n/a" if rec.confidence is None else f"{rec.confidence:.0%}"


def _fmt_record(record: ExpenseRecord) -> str:
    category = " / ".join(p for p in (record.expense_type, record.expense_subtype) if p)
    parts = [
        record.date_of_payment,
        record.paid_to or "(no payee)",
        f"${record.amount_paid:.2f}",
        category or "(unclassified)",
    ]
    if record.description:
        parts.append(record.description)
    return "  ".join(parts)


def render_recommendation(
    rec: Recommendation,
    records: Sequence[ExpenseRecord],
) -> list[str]:
    """Return display lines for ``rec`` and the records it targets."""

    by_id = {r.id: r for r in records}
    lines = [f"[{rec.type.value}] confidence {_fmt_confidence(rec)}", rec.description]
    if rec.type is RecommendationType.DUPLICATE:
        if isinstance(rec.original_value, DuplicatePair):
            lines.append(
                f"  {rec.original_value.first_paid_to!r} vs {rec.original_value.second_paid_to!r}"
            )
    elif rec.affected_field:
        lines.append(f"  {rec.affected_field}: {rec.original_value!r} -> {rec.suggested_value!r}")
    for tid in rec.transaction_ids:
        record = by_id.get(tid)
        if record is not None:
            row = record.row_num if record.row_num is not None else "N/A"
            lines.append(f"    row {row}: {_fmt_record(record)}")
    return lines


def review_recommendations(
    store: RecordStore,
    *,
    selector: ActionSelector | None = None,
    session: PromptSession | None = None,
    print_fn: Callable[..., None] = builtins.print,
) -> ReviewSummary:
    """Walk the store's pending recommendations until none are left unseen.

    Parameters
    ----------
    store:
        Session store; decisions are applied to it directly.
    selector:
        Optional injection point for tests. Receives the recommendation and
        returns the action; defaults to the interactive prompt.
    session:
        Optional prompt_toolkit session passed to the interactive prompt.
    print_fn:
        Function used to print output. Defaults to ``builtins.print``.
    """

    def _ask(_rec: Recommendation) -> ReviewAction:
        return select_review_action(session=session)

    choose = selector or _ask
    summary = ReviewSummary()
    seen: set[str] = set()

    if not store.pending_recommendations:
        print_fn("No pending recommendations.")
        return summary

    while True:
        queue = [r for r in store.pending_recommendations if r.id not in seen]
        if not queue:
            break
        rec = queue[0]
        seen.add(rec.id)

        print_fn(f"({len(queue)} remaining)")
        for line in render_recommendation(rec, store.expenses):
            print_fn(line)

        action = choose(rec)
        if action == "apply":
            store.apply(rec.id)
            summary.applied += 1
            print_fn("Applied.")
        elif action == "ignore":
            store.ignore(rec.id)
            summary.ignored += 1
            print_fn("Ignored.")
        elif action == "skip":
            summary.skipped += 1
        else:
            summary.quit_early = True
            break
        print_fn("")

    _logger.info(
        "review:done applied=%d ignored=%d skipped=%d quit=%s",
        summary.applied,
        summary.ignored,
        summary.skipped,
        summary.quit_early,
    )
    print_fn(
        f"Reviewed: {summary.applied} applied, {summary.ignored} ignored, "
        f"{summary.skipped} skipped."
    )
    return summary


__all__ = ["ReviewSummary", "render_recommendation", "review_recommendations"]
