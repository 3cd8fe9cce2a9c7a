"""Verification stage: score candidates against the existing directory.

Each discovered candidate is fuzzy-matched against the directory. Matches
are reported as duplicates; the rest become directory-shaped records
tagged with a confidence tier, split into `verified` (high/medium) and
`flaggedForReview` (low).
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from investor_pipeline.matching import similarity
from investor_pipeline.models import (
    PLACEHOLDER_THESIS_MARKER,
    SEC_FORM_D_SOURCE,
    CandidateInvestor,
    Confidence,
    DirectoryEntry,
    DuplicateMatch,
    FilingCandidate,
    Provenance,
    VerificationResult,
    VerificationSummary,
)
from investor_pipeline.storage import load_directory, load_model_list, write_json
from investor_pipeline.verify.classify import (
    classify_type,
    estimate_check_size,
    estimate_stages,
    format_fund_size,
    state_to_geo,
)
from investor_pipeline.verify.scoring import AUTO_MERGE_TIERS, score_confidence

log = logging.getLogger(__name__)

MATCH_THRESHOLD = 0.5
MAX_ID_LENGTH = 60
DEFAULT_SECTORS = ["enterprise", "saas"]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def find_existing(
    candidate: FilingCandidate,
    directory: Sequence[DirectoryEntry],
) -> DirectoryEntry | None:
    """Return the first directory entry similar enough to the candidate.

    Every non-empty candidate name (fund name, firm) is compared with every
    non-empty entry name (name, firm); a similarity above 0.5 is a match.
    """
    candidate_names = [n for n in (candidate.fund_name, candidate.firm) if n]
    for entry in directory:
        entry_names = [n for n in (entry.name, entry.firm) if n]
        for cn in candidate_names:
            for en in entry_names:
                if similarity(cn, en) > MATCH_THRESHOLD:
                    return entry
    return None


def slugify_id(text: str) -> str:
    """Return a lower-case, dash-separated id of at most 60 characters."""
    return _SLUG_RE.sub("-", text.lower()).strip("-")[:MAX_ID_LENGTH]


def placeholder_thesis(location: str | None) -> str:
    return (
        f"Investment fund based in {location or 'the United States'}. "
        f"{PLACEHOLDER_THESIS_MARKER}."
    )


def to_candidate_investor(candidate: FilingCandidate, confidence: Confidence) -> CandidateInvestor:
    """Build a directory-shaped record (plus internals) from a candidate."""
    firm = candidate.firm or candidate.fund_name
    lead = candidate.key_people[0] if candidate.key_people else None

    return CandidateInvestor(
        id=slugify_id(firm) or candidate.id,
        name=lead or firm,
        firm=firm,
        title="Managing Partner" if lead else None,
        type=classify_type(candidate),
        photo=None,
        thesis=placeholder_thesis(candidate.location),
        stages=estimate_stages(candidate.total_sold),
        sectors=list(DEFAULT_SECTORS),
        check_size=estimate_check_size(candidate.total_sold),
        geography=state_to_geo(candidate.state),
        recent_investments=[],
        portfolio_highlights=[],
        fund_size=format_fund_size(candidate.total_sold),
        actively_deploying=True,
        last_active=candidate.filing_date[:7] if candidate.filing_date else None,
        linked_in=None,
        twitter=None,
        firm_url=None,
        location=candidate.location,
        entity="firm",
        member_count=None,
        key_people=candidate.key_people,
        origin=SEC_FORM_D_SOURCE,
        confidence=confidence,
        source=Provenance(
            type=candidate.source,
            cik=candidate.cik,
            accession_number=candidate.accession_number,
            filing_date=candidate.filing_date,
            discovered_at=candidate.discovered_at,
        ),
    )


def verify_candidates(
    discovered: Sequence[FilingCandidate],
    directory: Sequence[DirectoryEntry],
    now: datetime | None = None,
) -> VerificationResult:
    """Partition candidates into verified, flagged-for-review and duplicates.

    Args:
        discovered: Discovery output.
        directory: Current directory entries.
        now: Timestamp for the summary.

    Returns:
        VerificationResult ready to be written as `verified.json`.
    """
    verified: list[CandidateInvestor] = []
    flagged: list[CandidateInvestor] = []
    duplicates: list[DuplicateMatch] = []

    for candidate in discovered:
        match = find_existing(candidate, directory)
        confidence = score_confidence(candidate, has_existing_match=match is not None)

        if match is not None:
            duplicates.append(
                DuplicateMatch(
                    candidate=candidate.fund_name,
                    matched_with=match.firm or match.name,
                    confidence=confidence,
                )
            )
            continue

        record = to_candidate_investor(candidate, confidence)
        if confidence in AUTO_MERGE_TIERS:
            verified.append(record)
        else:
            flagged.append(record)

    tiers = Counter(r.confidence for r in verified)
    summary = VerificationSummary(
        total_discovered=len(discovered),
        duplicates=len(duplicates),
        high_confidence=tiers.get("high", 0),
        medium_confidence=tiers.get("medium", 0),
        low_confidence=len(flagged),
        verified_at=now or datetime.now(timezone.utc),
    )
    return VerificationResult(
        verified=verified,
        flagged_for_review=flagged,
        duplicates=duplicates,
        summary=summary,
    )


def verification_payload(result: VerificationResult) -> dict:
    """Serialize a result; records keep only the fields they were built with."""
    return {
        "verified": [r.to_json_dict() for r in result.verified],
        "flaggedForReview": [r.to_json_dict() for r in result.flagged_for_review],
        "duplicates": [d.to_json_dict() for d in result.duplicates],
        "summary": result.summary.to_json_dict(),
    }


def run_verification(
    discovered_path: Path,
    directory_path: Path,
    output_path: Path,
    now: datetime | None = None,
) -> VerificationResult:
    """Run the verification stage and write `verified.json`.

    Raises:
        MissingInputError: if the discovery output does not exist.
    """
    discovered = load_model_list(discovered_path, FilingCandidate, "investor-pipeline discover")
    log.info("Loaded %d discovered investors", len(discovered))

    directory = load_directory(directory_path)
    log.info("Loaded %d existing investors from directory", len(directory))

    result = verify_candidates(discovered, directory, now=now)
    s = result.summary
    log.info("Already in directory (duplicates): %d", s.duplicates)
    log.info("High confidence: %d", s.high_confidence)
    log.info("Medium confidence: %d", s.medium_confidence)
    log.info("Low confidence (flagged): %d", s.low_confidence)

    write_json(output_path, verification_payload(result))
    log.info("Output written to %s", output_path)
    return result
