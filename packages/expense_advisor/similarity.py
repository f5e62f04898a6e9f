"""String normalization and edit-distance similarity shared by the rules.

``normalized_edit_similarity`` is the single similarity primitive: the
duplicate detector and the merchant normalizer both call it and differ only in
the cutoffs they apply. ``containment_similarity`` layers a cheap containment
check in front of it for the duplicate detector.
"""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WS_RE = re.compile(r"\s+")

# Score returned by the containment fast path.
CONTAINMENT_SCORE = 0.8


def normalize_text(value: str) -> str:
    """Lowercase, drop characters other than ``[a-z0-9]`` and whitespace, and
    collapse whitespace runs to single spaces."""

    s = _NON_ALNUM_RE.sub("", value.lower())
    return _WS_RE.sub(" ", s).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute edit distance."""

    return Levenshtein.distance(a, b)


def _too_far_apart(m: int, n: int) -> bool:
    # Long free-text pairs of very different length are never similar.
    return abs(m - n) > 5 and min(m, n) / max(m, n) < 0.5


def normalized_edit_similarity(a: str, b: str) -> float:
    """Return ``1 - distance / max_len`` over the normalized strings.

    Returns ``1.0`` when the normalized strings are equal (including both
    empty) and ``0.0`` without building the distance table when the lengths
    differ too much.
    """

    na = normalize_text(a)
    nb = normalize_text(b)
    if na == nb:
        return 1.0
    m, n = len(na), len(nb)
    if _too_far_apart(m, n):
        return 0.0
    # normalized_similarity is 1 - distance / max(len(a), len(b)) at unit weights.
    return Levenshtein.normalized_similarity(na, nb)


def containment_similarity(a: str, b: str) -> float:
    """Like :func:`normalized_edit_similarity`, but a pair where one
    normalized string contains the other with a length difference under 5
    scores :data:`CONTAINMENT_SCORE` directly."""

    na = normalize_text(a)
    nb = normalize_text(b)
    if na == nb:
        return 1.0
    shorter, longer = (na, nb) if len(na) <= len(nb) else (nb, na)
    if shorter in longer and len(longer) - len(shorter) < 5:
        return CONTAINMENT_SCORE
    return normalized_edit_similarity(na, nb)


__all__ = [
    "CONTAINMENT_SCORE",
    "containment_similarity",
    "levenshtein_distance",
    "normalize_text",
    "normalized_edit_similarity",
]
