"""Merge stage: apply verified high-confidence records to the directory.

This is the last gate before persisted state changes, so it re-checks every
record for duplicates against the live directory instead of trusting the
verification output (which may be stale after a partial re-run or a manual
edit). Ids stay unique: an id collision either rejects the record as a
duplicate or, when renaming is enabled, gives it the next free suffix. An
existing entry is never overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from investor_pipeline.matching import match_reason
from investor_pipeline.models import (
    AddedRecord,
    CandidateInvestor,
    DirectoryEntry,
    FlaggedRecord,
    MergeReport,
    SkippedDuplicate,
    SkippedLowConfidence,
    VerificationResult,
)
from investor_pipeline.storage import (
    backup_file,
    load_directory,
    load_model,
    save_directory,
    write_json,
)

log = logging.getLogger(__name__)

ID_COLLISION = "id-collision"
AUTO_APPLY_CONFIDENCE = "high"
FLAGGED_PREVIEW = 10


@dataclass
class MergeOutcome:
    """Result of planning a merge; nothing is written yet."""
    entries: list[DirectoryEntry]
    report: MergeReport
    added: list[DirectoryEntry] = field(default_factory=list)


def find_duplicate(
    record: DirectoryEntry,
    directory: Sequence[DirectoryEntry],
    check_ids: bool = True,
) -> tuple[str, DirectoryEntry] | None:
    """Return (reason, existing entry) if `record` duplicates a directory entry.

    Triggers: normalized-name equality, normalized-name containment (both
    names longer than 3 characters) and, when `check_ids` is set, an
    identical id.
    """
    name = record.firm or record.name
    for entry in directory:
        reason = match_reason(name, entry.firm or entry.name)
        if reason is not None:
            return reason, entry
        if check_ids and entry.id == record.id:
            return ID_COLLISION, entry
    return None


def resolve_unique_id(candidate_id: str, directory: Sequence[DirectoryEntry]) -> str:
    """Return `candidate_id`, or the first free `<id>-1`, `<id>-2`, ..."""
    used = {e.id for e in directory}
    new_id = candidate_id
    counter = 1
    while new_id in used:
        new_id = f"{candidate_id}-{counter}"
        counter += 1
    return new_id


def _flagged(records: Sequence[CandidateInvestor]) -> list[FlaggedRecord]:
    return [
        FlaggedRecord(
            name=r.firm,
            location=r.location,
            confidence=r.confidence,
            fund_size=r.fund_size,
        )
        for r in records
    ]


def merge_candidates(
    verification: VerificationResult,
    directory: Sequence[DirectoryEntry],
    rename_id_collisions: bool = False,
    now: datetime | None = None,
) -> MergeOutcome:
    """Plan the merge of verified records into `directory`.

    Records are gated in order: duplicates are skipped first, then anything
    below high confidence; survivors get a collision-free id and are
    appended. Records added earlier in the run take part in the gate for
    later ones.

    Args:
        verification: Content of `verified.json`.
        directory: Current directory entries (not modified).
        rename_id_collisions: Rename colliding ids instead of rejecting
            them as duplicates.
        now: Report timestamp.

    Returns:
        MergeOutcome with the new entry list and the merge report.
    """
    entries = list(directory)
    added: list[DirectoryEntry] = []
    skipped_duplicate: list[SkippedDuplicate] = []
    skipped_low: list[SkippedLowConfidence] = []

    for record in verification.verified:
        duplicate = find_duplicate(record, entries, check_ids=not rename_id_collisions)
        if duplicate is not None:
            reason, existing = duplicate
            log.info("Skipping %s: %s with %s", record.firm, reason, existing.id)
            skipped_duplicate.append(
                SkippedDuplicate(
                    name=record.firm,
                    reason=reason,
                    matched_with=existing.firm or existing.name,
                )
            )
            continue

        if record.confidence != AUTO_APPLY_CONFIDENCE:
            skipped_low.append(SkippedLowConfidence(name=record.firm, confidence=record.confidence))
            continue

        entry = record.to_directory_entry()
        unique_id = resolve_unique_id(entry.id, entries)
        if unique_id != entry.id:
            log.info("Id %s already taken; using %s", entry.id, unique_id)
            entry.id = unique_id

        entries.append(entry)
        added.append(entry)

    report = MergeReport(
        timestamp=now or datetime.now(timezone.utc),
        previous_count=len(directory),
        new_count=len(entries),
        added=[AddedRecord(name=e.firm, id=e.id, location=e.location) for e in added],
        skipped_duplicate=skipped_duplicate,
        skipped_low_confidence=skipped_low,
        flagged_for_review=_flagged(verification.flagged_for_review),
    )
    return MergeOutcome(entries=entries, report=report, added=added)


def _log_report(report: MergeReport) -> None:
    log.info("Added: %d investors", len(report.added))
    log.info("Skipped (duplicate): %d", len(report.skipped_duplicate))
    log.info("Skipped (low confidence): %d", len(report.skipped_low_confidence))
    log.info("Flagged for manual review: %d", len(report.flagged_for_review))
    log.info("Total investors now: %d", report.new_count)

    for a in report.added:
        log.info("  + %s (%s) [%s]", a.name, a.location or "Unknown location", a.id)

    for f in report.flagged_for_review[:FLAGGED_PREVIEW]:
        log.info(
            "  ? %s (%s): %s confidence, %s",
            f.name,
            f.location or "?",
            f.confidence,
            f.fund_size or "unknown size",
        )
    remaining = len(report.flagged_for_review) - FLAGGED_PREVIEW
    if remaining > 0:
        log.info("  ... and %d more", remaining)


def run_merge(
    verified_path: Path,
    directory_path: Path,
    report_path: Path,
    rename_id_collisions: bool = False,
    now: datetime | None = None,
) -> MergeReport:
    """Run the merge stage: gate, back up, rewrite the directory, report.

    The directory is only backed up and rewritten when at least one record
    is added.

    Raises:
        MissingInputError: if `verified.json` does not exist.
    """
    verification = load_model(verified_path, VerificationResult, "investor-pipeline verify")
    directory = load_directory(directory_path)

    log.info("Existing investors: %d", len(directory))
    log.info("Verified candidates: %d", len(verification.verified))
    log.info("Flagged for review: %d", len(verification.flagged_for_review))

    outcome = merge_candidates(
        verification,
        directory,
        rename_id_collisions=rename_id_collisions,
        now=now,
    )

    if outcome.added:
        backup = backup_file(directory_path, now=now)
        outcome.report.backup_path = str(backup) if backup else None
        save_directory(directory_path, outcome.entries)
        log.info("Updated %s", directory_path)

    write_json(report_path, outcome.report.to_json_dict())
    _log_report(outcome.report)
    log.info("Report saved to %s", report_path)
    return outcome.report
