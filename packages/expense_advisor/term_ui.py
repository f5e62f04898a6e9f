"""Tiny terminal UI helpers (prompt_toolkit-based).

Kept separate from the review loop so the prompts can be driven in tests with
a pipe input and a dummy output.
"""

from __future__ import annotations

from typing import Literal

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

type ReviewAction = Literal["apply", "ignore", "skip", "quit"]

ACTIONS: tuple[ReviewAction, ...] = ("apply", "ignore", "skip", "quit")

# Single-letter shortcuts map onto the full action names.
_ALIASES: dict[str, ReviewAction] = {a[0]: a for a in ACTIONS} | {a: a for a in ACTIONS}


def _session(kb: KeyBindings, session: PromptSession | None) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def select_review_action(
    *,
    default: ReviewAction = "skip",
    session: PromptSession | None = None,
    message: str = "Action [a]pply / [i]gnore / [s]kip / [q]uit: ",
) -> ReviewAction:
    """Ask what to do with the recommendation on screen.

    Accepts the full action names or their first letters, case-insensitively.
    Enter on the pre-filled default accepts it; Esc or Ctrl+C means ``quit``.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="quit")

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="quit")

    completer = WordCompleter(list(ACTIONS), ignore_case=True, sentence=False)

    class _ActionValidator(Validator):
        def validate(self, document) -> None:
            if document.text.strip().lower() not in _ALIASES:
                raise ValidationError(message="Type apply, ignore, skip or quit (or a, i, s, q).")

    value = _session(kb, session).prompt(
        message,
        default=default,
        completer=completer,
        complete_while_typing=False,
        validator=_ActionValidator(),
        validate_while_typing=False,
    )
    return _ALIASES.get(str(value).strip().lower(), "quit")


__all__ = ["ACTIONS", "ReviewAction", "select_review_action"]
