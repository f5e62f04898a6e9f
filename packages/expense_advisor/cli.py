# ruff: noqa: I001
"""CLI for the ``expense_advisor`` package.

This module exposes callable command handlers (``cmd_recommend``,
``cmd_apply``, ``cmd_review``) and a Typer-based console interface.
Environment variables are loaded from a local ``.env`` using
``python-dotenv`` before delegating to command logic. Business logic lives in
:mod:`expense_advisor.store` and the modules it drives.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, TextIO
from collections.abc import Callable, Iterable

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging, get_logger
from .models import Recommendation

_logger = get_logger("expense_advisor.cli")

DEFAULT_MIN_CONFIDENCE = 0.9


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_min_confidence(value: float | None) -> float:
    """Resolve the auto-apply threshold.

    An explicit value wins; otherwise ``EA_AUTO_APPLY_MIN_CONFIDENCE`` is used
    when it parses as a float in [0,1]; otherwise ``DEFAULT_MIN_CONFIDENCE``.
    """

    import os

    if value is not None:
        return value
    env_val = os.getenv("EA_AUTO_APPLY_MIN_CONFIDENCE")
    try:
        parsed = float(env_val) if env_val else None
    except ValueError:
        parsed = None
    if parsed is not None and 0.0 <= parsed <= 1.0:
        return parsed
    return DEFAULT_MIN_CONFIDENCE


def _select_auto_apply(
    recommendations: Iterable[Recommendation], min_confidence: float
) -> list[Recommendation]:
    """Pick the recommendations to bulk-apply.

    Only pending ones at or above ``min_confidence`` qualify. When several
    compete for the same field of the same record, the most confident one is
    kept (ties go to the earlier one).
    """

    eligible = [
        r
        for r in recommendations
        if r.status == "pending" and r.confidence is not None and r.confidence >= min_confidence
    ]
    eligible.sort(key=lambda r: r.confidence or 0.0, reverse=True)
    chosen: list[Recommendation] = []
    taken: set[tuple[tuple[str, ...], str]] = set()
    for rec in eligible:
        if rec.affected_field is not None:
            key = (rec.transaction_ids, rec.affected_field)
            if key in taken:
                continue
            taken.add(key)
        chosen.append(rec)
    return chosen


def _read_sheet(loader: Callable[[str], list], csv_path: str) -> list | None:
    """Run ``loader`` on ``csv_path``; ``None`` after printing an error."""

    import csv
    import sys

    try:
        return loader(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
    except UnicodeDecodeError as e:
        print(f"Error: '{csv_path}' is not UTF-8 text: {e}", file=sys.stderr)
    return None


def _load_store(
    csv_path: str,
    *,
    income_csv: str | None = None,
    transfers_csv: str | None = None,
):
    """Load the expense sheet (plus optional income and investment/transfer
    sheets) into a reconciled store; ``None`` after printing an error."""

    from .ingest.utils import (
        load_expenses_from_csv,
        load_income_from_csv,
        load_investment_transfers_from_csv,
    )
    from .store import RecordStore

    records = _read_sheet(load_expenses_from_csv, csv_path)
    if records is None:
        return None
    store = RecordStore(records)

    if income_csv is not None:
        incomes = _read_sheet(load_income_from_csv, income_csv)
        if incomes is None:
            return None
        store.import_incomes(incomes)
    if transfers_csv is not None:
        transfers = _read_sheet(load_investment_transfers_from_csv, transfers_csv)
        if transfers is None:
            return None
        store.import_investment_transfers(transfers)
    return store


def _check_side_sheet_options(
    income_csv: str | None,
    income_output: str | None,
    transfers_csv: str | None,
    transfers_output: str | None,
) -> bool:
    """An income or investment/transfer output needs its matching input."""

    import sys

    if income_output is not None and income_csv is None:
        print("Error: --income-output requires --income-csv", file=sys.stderr)
        return False
    if transfers_output is not None and transfers_csv is None:
        print("Error: --transfers-output requires --transfers-csv", file=sys.stderr)
        return False
    return True


def _write_csv(output: str, write: Callable[[TextIO], int]) -> int | None:
    import sys

    try:
        with open(output, "w", encoding="utf-8", newline="") as f:
            return write(f)
    except OSError as e:
        print(f"Error: Failed to write '{output}': {e}", file=sys.stderr)
        return None


def _write_export(store, output: str, *, include_flags: bool) -> int | None:
    from .export import export_expenses_csv

    return _write_csv(
        output, lambda f: export_expenses_csv(store.expenses, f, include_flags=include_flags)
    )


def _write_side_exports(
    store, *, income_output: str | None, transfers_output: str | None
) -> bool:
    """Write the income and investment/transfer sheets that were asked for."""

    from .export import export_income_csv, export_investment_transfers_csv

    targets = (
        (income_output, "income", lambda f: export_income_csv(store.incomes, f)),
        (
            transfers_output,
            "investment/transfer",
            lambda f: export_investment_transfers_csv(store.investment_transfers, f),
        ),
    )
    for output, kind, write in targets:
        if output is None:
            continue
        written = _write_csv(output, write)
        if written is None:
            return False
        print(f"Wrote {written} {kind} rows to {output}.")
    return True


def _recommendation_json(rec: Recommendation) -> dict:
    from dataclasses import asdict, is_dataclass

    original = rec.original_value
    if is_dataclass(original) and not isinstance(original, type):
        original = asdict(original)
    return {
        "id": rec.id,
        "type": rec.type.value,
        "transaction_ids": list(rec.transaction_ids),
        "affected_field": rec.affected_field,
        "original_value": original,
        "suggested_value": rec.suggested_value,
        "confidence": rec.confidence,
        "description": rec.description,
        "status": rec.status,
    }


# ---- Command handlers ----------------------------------------------------------


def cmd_recommend(csv_path: str, *, as_json: bool = False) -> int:
    """Print the pending recommendations for an expense CSV.

    One line per recommendation, formatted as
    ``"<id>\\t<type>\\t<confidence>\\t<description>"`` or, with ``as_json``,
    one JSON object per line. Errors go to stderr with a non-zero return.
    """

    import json

    store = _load_store(csv_path)
    if store is None:
        return 1

    pending = store.pending_recommendations
    for rec in pending:
        if as_json:
            print(json.dumps(_recommendation_json(rec), sort_keys=True))
        else:
            conf = "" if rec.confidence is None else f"{rec.confidence:.2f}"
            print(f"{rec.id}\t{rec.type.value}\t{conf}\t{rec.description}")
    _logger.info("recommend:done records=%d pending=%d", len(store.expenses), len(pending))
    return 0


def cmd_apply(
    csv_path: str,
    output: str,
    *,
    min_confidence: float | None = None,
    include_flags: bool = False,
    income_csv: str | None = None,
    income_output: str | None = None,
    transfers_csv: str | None = None,
    transfers_output: str | None = None,
) -> int:
    """Bulk-apply confident recommendations and export the cleaned sheet.

    Income and investment/transfer sheets ride along unchanged: when given
    with a matching ``*_output`` they are re-exported next to the expenses.
    """

    if not _check_side_sheet_options(income_csv, income_output, transfers_csv, transfers_output):
        return 1
    threshold = _resolve_min_confidence(min_confidence)
    store = _load_store(csv_path, income_csv=income_csv, transfers_csv=transfers_csv)
    if store is None:
        return 1

    chosen = _select_auto_apply(store.pending_recommendations, threshold)
    store.apply_many([r.id for r in chosen])

    written = _write_export(store, output, include_flags=include_flags)
    if written is None:
        return 1
    print(
        f"Applied {len(chosen)} recommendations (min confidence {threshold:.2f}); "
        f"wrote {written} rows to {output}; {len(store.pending_recommendations)} still pending."
    )
    if not _write_side_exports(
        store, income_output=income_output, transfers_output=transfers_output
    ):
        return 1
    return 0


def cmd_review(
    csv_path: str,
    output: str | None = None,
    *,
    include_flags: bool = False,
    income_csv: str | None = None,
    income_output: str | None = None,
    transfers_csv: str | None = None,
    transfers_output: str | None = None,
) -> int:
    """Interactively review pending recommendations, optionally exporting after."""

    import sys

    from .review import review_recommendations

    if not _check_side_sheet_options(income_csv, income_output, transfers_csv, transfers_output):
        return 1
    store = _load_store(csv_path, income_csv=income_csv, transfers_csv=transfers_csv)
    if store is None:
        return 1

    try:
        review_recommendations(store)
    except EOFError:
        print("Error: review aborted (no terminal input).", file=sys.stderr)
        return 1

    if output is not None:
        written = _write_export(store, output, include_flags=include_flags)
        if written is None:
            return 1
        print(f"Wrote {written} rows to {output}.")
    if not _write_side_exports(
        store, income_output=income_output, transfers_output=transfers_output
    ):
        return 1
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Suggest and apply clean-ups (duplicates, merchant names, missing fields, "
        "categories) for an expense CSV. Loads settings from a local .env."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--csv-path",
    help="Path to an expense CSV exported from the expense sheet",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
    readable=True,
)

OUTPUT_OPTION: OptionInfo = typer.Option(
    ...,
    "--output",
    help="Where to write the cleaned expense CSV",
    dir_okay=False,
    file_okay=True,
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("recommend")
def recommend_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    as_json: bool = typer.Option(False, "--json", help="Emit one JSON object per line."),
) -> None:
    """List pending recommendations for a CSV."""

    _exit(cmd_recommend(str(csv_path), as_json=as_json))


def _opt_str(path: Path | None) -> str | None:
    return str(path) if path is not None else None


@app.command("apply")
def apply_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    output: Annotated[Path, OUTPUT_OPTION],
    *,
    min_confidence: float | None = typer.Option(
        None,
        min=0.0,
        max=1.0,
        help="Apply only recommendations at or above this confidence "
        "(falls back to EA_AUTO_APPLY_MIN_CONFIDENCE, then 0.9).",
    ),
    include_flags: bool = typer.Option(
        False, help="Add provenance flag and original-value columns to the export."
    ),
    income_csv: Path | None = typer.Option(None, help="Optional income sheet CSV."),
    income_output: Path | None = typer.Option(
        None, help="Where to re-export the income sheet (needs --income-csv)."
    ),
    transfers_csv: Path | None = typer.Option(
        None, help="Optional investments/transfers sheet CSV."
    ),
    transfers_output: Path | None = typer.Option(
        None, help="Where to re-export the investments/transfers sheet (needs --transfers-csv)."
    ),
) -> None:
    """Bulk-apply confident recommendations and export the result."""

    _exit(
        cmd_apply(
            str(csv_path),
            str(output),
            min_confidence=min_confidence,
            include_flags=include_flags,
            income_csv=_opt_str(income_csv),
            income_output=_opt_str(income_output),
            transfers_csv=_opt_str(transfers_csv),
            transfers_output=_opt_str(transfers_output),
        )
    )


@app.command("review")
def review_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    output: Path | None = typer.Option(
        None, help="Optional path to write the reviewed expense CSV."
    ),
    include_flags: bool = typer.Option(
        False, help="Add provenance flag and original-value columns to the export."
    ),
    income_csv: Path | None = typer.Option(None, help="Optional income sheet CSV."),
    income_output: Path | None = typer.Option(
        None, help="Where to re-export the income sheet (needs --income-csv)."
    ),
    transfers_csv: Path | None = typer.Option(
        None, help="Optional investments/transfers sheet CSV."
    ),
    transfers_output: Path | None = typer.Option(
        None, help="Where to re-export the investments/transfers sheet (needs --transfers-csv)."
    ),
) -> None:
    """Review pending recommendations one at a time."""

    _exit(
        cmd_review(
            str(csv_path),
            _opt_str(output),
            include_flags=include_flags,
            income_csv=_opt_str(income_csv),
            income_output=_opt_str(income_output),
            transfers_csv=_opt_str(transfers_csv),
            transfers_output=_opt_str(transfers_output),
        )
    )


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING...). Defaults to EXPENSE_ADVISOR_LOG_LEVEL.",
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m expense_advisor.cli`
    app()
