"""Heuristics that turn filing attributes into directory fields.

Investor type comes from name keywords and the filed fund type; check
size and stages are estimated from the amount sold; geography from the
issuer's state. All rough by nature: a fund typically writes cheques of a
few percent of its size.
"""

from __future__ import annotations

import re

from investor_pipeline.models import CheckSize, FilingCandidate

VENTURE_CAPITAL_FUND = "Venture Capital Fund"
PRIVATE_EQUITY_FUND = "Private Equity Fund"

# (exclusive lower bound on total sold, min cheque, max cheque)
CHECK_SIZE_BANDS: tuple[tuple[int, int, int], ...] = (
    (1_000_000_000, 10_000_000, 100_000_000),
    (100_000_000, 1_000_000, 25_000_000),
    (10_000_000, 250_000, 5_000_000),
    (0, 50_000, 1_000_000),
)

STAGE_BANDS: tuple[tuple[int, list[str]], ...] = (
    (500_000_000, ["series_b", "growth"]),
    (100_000_000, ["series_a", "series_b"]),
    (10_000_000, ["seed", "series_a"]),
)
DEFAULT_STAGES = ["seed", "series_a"]
SMALL_FUND_STAGES = ["pre_seed", "seed"]

# state description / postal code → regional tag
REGIONS: dict[str, tuple[str, str]] = {
    "sf_bay": ("california", "ca"),
    "nyc": ("new york", "ny"),
    "boston": ("massachusetts", "ma"),
    "texas": ("texas", "tx"),
}


def classify_type(candidate: FilingCandidate) -> str:
    """Return `vc`, `angel` or `family-office` (default `vc`)."""
    name = f"{candidate.fund_name} {candidate.firm or ''}".lower()
    if "venture" in name or candidate.fund_type == VENTURE_CAPITAL_FUND:
        return "vc"
    if "angel" in name:
        return "angel"
    if "family" in name or "office" in name:
        return "family-office"
    return "vc"


def estimate_check_size(total_sold: int | None) -> CheckSize | None:
    """Estimate a cheque range from fund size; None without a positive amount."""
    if not total_sold or total_sold <= 0:
        return None
    for floor, low, high in CHECK_SIZE_BANDS:
        if total_sold > floor:
            return CheckSize(min=low, max=high)
    return None


def estimate_stages(total_sold: int | None) -> list[str]:
    if not total_sold:
        return list(DEFAULT_STAGES)
    for floor, stages in STAGE_BANDS:
        if total_sold > floor:
            return list(stages)
    return list(SMALL_FUND_STAGES)


def state_to_geo(state: str | None) -> list[str]:
    """Map a state description ("CALIFORNIA") or code ("CA") to geography tags.

    Codes only match as whole words so that e.g. "NEBRASKA" is not read as
    Massachusetts.
    """
    if not state:
        return ["us"]
    s = state.strip().lower()
    for region, (full_name, code) in REGIONS.items():
        if full_name in s or re.search(rf"\b{code}\b", s):
            return ["us", region]
    return ["us"]


def format_fund_size(total_sold: int | None) -> str | None:
    """Render an amount as whole millions, e.g. 25_400_000 → "$25M"."""
    if not total_sold:
        return None
    return f"${total_sold / 1_000_000:.0f}M"
