"""Fuzzy organization-name matching shared by verification and merge.

Names of the same fund vary mostly by legal suffix and punctuation
("Acme Ventures, LLC" vs "ACME VENTURES"), so both are stripped before
comparing. Containment matching needs both normalized names to be longer
than `MIN_CONTAINMENT_LENGTH`; short common words would otherwise match
almost anything. This is a heuristic, not an entity-resolution guarantee.
"""

from __future__ import annotations

import re

STOP_WORDS: tuple[str, ...] = (
    "the",
    "llc",
    "lp",
    "inc",
    "corp",
    "fund",
    "partners",
    "group",
    "management",
    "capital",
    "ventures",
    "advisors",
    "holdings",
)

MIN_CONTAINMENT_LENGTH = 3
CONTAINMENT_SCORE = 0.8

NAME_MATCH = "name-match"
NAME_CONTAINMENT = "name-containment"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_STOP_WORDS_RE = re.compile(r"\b(?:" + "|".join(STOP_WORDS) + r")\b")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: str | None) -> str:
    """Lower-case, drop punctuation and legal/organizational suffix words.

    Idempotent: normalizing an already-normalized name returns it unchanged.

    Args:
        name: Free-text organization name (None is treated as empty).

    Returns:
        Space-separated lower-case alphanumeric words, possibly empty.
    """
    text = (name or "").lower()
    text = _NON_ALNUM_RE.sub("", text)
    text = _STOP_WORDS_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _contains(na: str, nb: str) -> bool:
    if len(na) <= MIN_CONTAINMENT_LENGTH or len(nb) <= MIN_CONTAINMENT_LENGTH:
        return False
    return na in nb or nb in na


def match_reason(a: str | None, b: str | None) -> str | None:
    """Return why two names denote the same entity, or None.

    Exact equality of the normalized names gives `name-match`, containment
    gives `name-containment`. Names that normalize to nothing (only suffix
    words) never match.
    """
    na, nb = normalize_name(a), normalize_name(b)
    if not na or not nb:
        return None
    if na == nb:
        return NAME_MATCH
    if _contains(na, nb):
        return NAME_CONTAINMENT
    return None


def names_match(a: str | None, b: str | None) -> bool:
    """Boolean form of `match_reason`, used by the merge gate."""
    return match_reason(a, b) is not None


def similarity(a: str | None, b: str | None) -> float:
    """Score two names in [0, 1].

    1.0 for equal normalized names, 0.8 for containment, otherwise the
    Jaccard index of the two word sets.
    """
    na, nb = normalize_name(a), normalize_name(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0
    if _contains(na, nb):
        return CONTAINMENT_SCORE

    wa, wb = set(na.split(" ")), set(nb.split(" "))
    union = wa | wb
    return len(wa & wb) / len(union) if union else 0.0
