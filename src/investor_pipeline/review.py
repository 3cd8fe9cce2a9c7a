"""Read-only pandas views over the pipeline files for human review.

Used by the Streamlit dashboard. Every loader tolerates a missing file (the
stage simply has not run yet) and returns an empty frame or None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import pandas as pd

from investor_pipeline.config import Settings
from investor_pipeline.enrich.enrich import completeness_score, is_skeleton
from investor_pipeline.models import (
    DirectoryEntry,
    EnrichmentReport,
    MergeReport,
    VerificationResult,
)
from investor_pipeline.storage import load_directory, load_model

log = logging.getLogger(__name__)

DIRECTORY_COLUMNS = [
    "id",
    "firm",
    "name",
    "type",
    "location",
    "fund_size",
    "origin",
    "enriched_at",
    "skeleton",
    "completeness",
]
FLAGGED_COLUMNS = ["firm", "location", "confidence", "fund_size", "filing_date", "cik"]
CONFIDENCE_ORDER = ["high", "medium", "low", "duplicate"]


@dataclass
class ReviewData:
    """Everything the dashboard shows, loaded once per page render."""
    directory: list[DirectoryEntry] = field(default_factory=list)
    verification: VerificationResult | None = None
    merge_report: MergeReport | None = None
    enrichment_report: EnrichmentReport | None = None


def _optional(path: Path, model: type, producer: str):
    if not path.exists():
        log.info("%s not found; skipping.", path)
        return None
    return load_model(path, model, producer)


def load_review_data(settings: Settings) -> ReviewData:
    """Load the directory and whichever stage outputs exist."""
    return ReviewData(
        directory=load_directory(settings.directory_path),
        verification=_optional(
            settings.verified_path, VerificationResult, "investor-pipeline verify"
        ),
        merge_report=_optional(settings.merge_report_path, MergeReport, "investor-pipeline merge"),
        enrichment_report=_optional(
            settings.enrichment_report_path, EnrichmentReport, "investor-pipeline enrich"
        ),
    )


def directory_frame(entries: Sequence[DirectoryEntry]) -> pd.DataFrame:
    """One row per directory entry with origin and completeness columns."""
    rows = [
        {
            "id": e.id,
            "firm": e.display_firm,
            "name": e.name,
            "type": e.type,
            "location": e.location,
            "fund_size": e.fund_size,
            "origin": e.origin or "original",
            "enriched_at": e.enriched_at,
            "skeleton": is_skeleton(e),
            "completeness": completeness_score(e),
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=DIRECTORY_COLUMNS)


def flagged_frame(verification: VerificationResult | None) -> pd.DataFrame:
    """The low-confidence queue awaiting a manual decision."""
    if verification is None:
        return pd.DataFrame(columns=FLAGGED_COLUMNS)
    rows = [
        {
            "firm": r.firm,
            "location": r.location,
            "confidence": r.confidence,
            "fund_size": r.fund_size,
            "filing_date": r.source.filing_date,
            "cik": r.source.cik,
        }
        for r in verification.flagged_for_review
    ]
    return pd.DataFrame(rows, columns=FLAGGED_COLUMNS)


def confidence_counts(verification: VerificationResult | None) -> pd.DataFrame:
    """Candidates per confidence tier, duplicates counted separately.

    Returns:
        DataFrame with columns `tier` and `candidates`, in tier order.
    """
    if verification is None:
        return pd.DataFrame(columns=["tier", "candidates"])
    s = verification.summary
    counts = {
        "high": s.high_confidence,
        "medium": s.medium_confidence,
        "low": s.low_confidence,
        "duplicate": s.duplicates,
    }
    return pd.DataFrame(
        [{"tier": t, "candidates": counts[t]} for t in CONFIDENCE_ORDER],
        columns=["tier", "candidates"],
    )


def origin_counts(directory: pd.DataFrame) -> pd.DataFrame:
    """Directory entries per origin (`original` for entries from elsewhere)."""
    if directory.empty:
        return pd.DataFrame(columns=["origin", "entries"])
    return (
        directory.groupby("origin", dropna=False)
        .size()
        .reset_index(name="entries")
        .sort_values("entries", ascending=False, ignore_index=True)
    )
