"""Confidence scoring for discovered candidates.

The score estimates whether a filing carries enough structured signal to
populate a directory record without human review. Explicit fund type and
fund size weigh most; named people and a location corroborate.
"""

from __future__ import annotations

from investor_pipeline.models import Confidence, FilingCandidate
from investor_pipeline.verify.classify import PRIVATE_EQUITY_FUND, VENTURE_CAPITAL_FUND

SIZE_FLOOR = 5_000_000
HIGH_THRESHOLD = 5
MEDIUM_THRESHOLD = 3

AUTO_MERGE_TIERS: frozenset[str] = frozenset({"high", "medium"})


def confidence_points(candidate: FilingCandidate, has_existing_match: bool) -> int:
    """Return the additive confidence score.

    +1 named people, +1 location, +2 explicit VC/PE fund type, +1 positive
    amount sold, +1 not already in the directory, +1 amount sold above
    `SIZE_FLOOR`.
    """
    score = 0
    if candidate.key_people:
        score += 1
    if candidate.location:
        score += 1
    if candidate.fund_type in (VENTURE_CAPITAL_FUND, PRIVATE_EQUITY_FUND):
        score += 2
    if candidate.total_sold and candidate.total_sold > 0:
        score += 1
    if not has_existing_match:
        score += 1
    if candidate.total_sold and candidate.total_sold > SIZE_FLOOR:
        score += 1
    return score


def tier_for(points: int) -> Confidence:
    if points >= HIGH_THRESHOLD:
        return "high"
    if points >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def score_confidence(candidate: FilingCandidate, has_existing_match: bool) -> Confidence:
    """Return `high`, `medium` or `low` for a candidate."""
    return tier_for(confidence_points(candidate, has_existing_match))
