from __future__ import annotations

import pytest

from investor_pipeline.verify.scoring import confidence_points, score_confidence, tier_for


def test_fully_populated_candidate_is_high(make_candidate) -> None:
    c = make_candidate()
    assert confidence_points(c, has_existing_match=False) == 7
    assert score_confidence(c, has_existing_match=False) == "high"


def test_sparse_candidate_is_low(make_candidate) -> None:
    c = make_candidate(key_people=None, location=None, fund_type=None, total_sold=None)
    assert confidence_points(c, has_existing_match=False) == 1
    assert score_confidence(c, has_existing_match=False) == "low"


def test_existing_match_costs_one_point(make_candidate) -> None:
    c = make_candidate()
    assert confidence_points(c, True) == confidence_points(c, False) - 1


def test_private_equity_counts_like_venture(make_candidate) -> None:
    vc = make_candidate(fund_type="Venture Capital Fund")
    pe = make_candidate(fund_type="Private Equity Fund")
    other = make_candidate(fund_type="Other Investment Fund")
    assert confidence_points(vc, False) == confidence_points(pe, False)
    assert confidence_points(other, False) == confidence_points(vc, False) - 2


def test_adding_information_never_lowers_the_score(make_candidate) -> None:
    base = make_candidate(key_people=None, location=None, fund_type=None, total_sold=None)
    richer = [
        make_candidate(key_people=["Jane Doe"], location=None, fund_type=None, total_sold=None),
        make_candidate(key_people=None, location="Austin, TEXAS", fund_type=None, total_sold=None),
        make_candidate(key_people=None, location=None, total_sold=None),
        make_candidate(key_people=None, location=None, fund_type=None, total_sold=1_000_000),
        make_candidate(key_people=None, location=None, fund_type=None, total_sold=50_000_000),
    ]
    for c in richer:
        assert confidence_points(c, False) > confidence_points(base, False)


@pytest.mark.parametrize(
    "points,tier",
    [(7, "high"), (5, "high"), (4, "medium"), (3, "medium"), (2, "low"), (0, "low")],
)
def test_tier_thresholds(points: int, tier: str) -> None:
    assert tier_for(points) == tier
