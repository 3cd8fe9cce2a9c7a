"""Enrichment stage: filter non-VC skeletons, apply curated data, prune.

Skeletons are the directory records merge created from Form D filings.
Each one is either removed as a non-VC entity, enriched from the curated
overlay and kept, or dropped because it carries too little information to
be useful. Entries that did not come from this pipeline are never touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from investor_pipeline.enrich.rules import NonVcRules, load_rules
from investor_pipeline.models import (
    PLACEHOLDER_THESIS_MARKER,
    SEC_FORM_D_SOURCE,
    DirectoryEntry,
    DroppedFund,
    EnrichmentOverride,
    EnrichmentReport,
    FilteredFund,
    KeptFund,
)
from investor_pipeline.storage import (
    InvalidInputError,
    backup_file,
    load_directory,
    read_json,
    save_directory,
    write_json,
)

log = logging.getLogger(__name__)

KEEP_THRESHOLD = 2
MIN_THESIS_LENGTH = 50
THESIS_PREVIEW = 80
UNAVATAR_TWITTER = "https://unavatar.io/twitter/{handle}"

REMOVED_BY_OVERLAY = "non-vc (enrichment)"
REMOVED_BY_HEURISTIC = "non-vc (heuristic)"

# Overlay fields copied onto a skeleton when present and non-empty.
OVERLAY_FIELDS = (
    "thesis",
    "firm_url",
    "linked_in",
    "twitter",
    "stages",
    "sectors",
    "portfolio_highlights",
    "type",
)


@dataclass
class EnrichmentOutcome:
    """Result of planning an enrichment pass; nothing is written yet."""
    entries: list[DirectoryEntry]
    report: EnrichmentReport
    changed: bool = False
    kept: list[DirectoryEntry] = field(default_factory=list)


def is_placeholder_thesis(thesis: str | None) -> bool:
    return bool(thesis) and PLACEHOLDER_THESIS_MARKER in thesis


def is_skeleton(entry: DirectoryEntry) -> bool:
    """True for pipeline-created records that have not been enriched yet.

    Records written before the `origin` field existed are recognised by the
    placeholder thesis instead.
    """
    if entry.enriched_at:
        return False
    if entry.origin == SEC_FORM_D_SOURCE:
        return True
    return entry.origin is None and is_placeholder_thesis(entry.thesis)


def completeness_score(entry: DirectoryEntry) -> int:
    """Return how much usable information a record carries.

    +2 substantive thesis (not the placeholder, longer than 50 characters),
    +2 portfolio highlights, +2 recent investments, +1 photo, +1 LinkedIn,
    +1 firm URL.
    """
    score = 0
    thesis = entry.thesis
    if thesis and not is_placeholder_thesis(thesis) and len(thesis) > MIN_THESIS_LENGTH:
        score += 2
    if entry.portfolio_highlights:
        score += 2
    if entry.recent_investments:
        score += 2
    if entry.photo:
        score += 1
    if entry.linked_in:
        score += 1
    if entry.firm_url:
        score += 1
    return score


def apply_overlay(entry: DirectoryEntry, override: EnrichmentOverride) -> DirectoryEntry:
    """Return a copy of `entry` with the non-empty overlay fields applied.

    A Twitter handle also sets the photo to the handle's unavatar image.
    """
    updated = entry.model_copy(deep=True)
    for name in OVERLAY_FIELDS:
        value = getattr(override, name)
        if value:
            setattr(updated, name, value)
    if override.twitter:
        updated.photo = UNAVATAR_TWITTER.format(handle=override.twitter)
    return updated


def load_overlay(path: Path) -> dict[str, EnrichmentOverride]:
    """Load the curated overlay keyed by firm name; a missing file is empty.

    Raises:
        InvalidInputError: if the file exists but is malformed.
    """
    if not path.exists():
        log.info("No enrichment overlay at %s; continuing without curated data.", path)
        return {}
    raw = read_json(path)
    try:
        overlay = TypeAdapter(dict[str, EnrichmentOverride]).validate_python(raw)
    except ValidationError as e:
        raise InvalidInputError(f"{path} is not a valid enrichment overlay: {e}") from e
    log.info("Loaded enrichment data for %d funds", len(overlay))
    return overlay


def _thesis_preview(thesis: str | None) -> str | None:
    if not thesis:
        return None
    return thesis[:THESIS_PREVIEW] + "..."


def enrich_directory(
    directory: Sequence[DirectoryEntry],
    overlay: Mapping[str, EnrichmentOverride],
    rules: NonVcRules,
    now: datetime | None = None,
) -> EnrichmentOutcome:
    """Plan an enrichment pass over the whole directory.

    Skeletons are processed in order: an overlay removal directive or a
    non-VC verdict filters the record, otherwise curated fields are applied
    and the record is kept when its completeness score reaches 2. Kept
    records are stamped with `enrichedAt`. Other entries pass through
    unchanged and every survivor keeps its position.

    Args:
        directory: Current directory entries (not modified).
        overlay: Curated overrides keyed by firm name.
        rules: Non-VC rule table.
        now: Timestamp for `enrichedAt` and the report.

    Returns:
        EnrichmentOutcome with the new entry list and the report.
    """
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    entries: list[DirectoryEntry] = []
    kept: list[DirectoryEntry] = []
    kept_funds: list[KeptFund] = []
    dropped: list[DroppedFund] = []
    filtered: list[FilteredFund] = []
    original = 0

    for entry in directory:
        if not is_skeleton(entry):
            original += 1
            entries.append(entry)
            continue

        firm = entry.firm or ""
        override = overlay.get(firm)

        if override is not None and override.remove:
            filtered.append(
                FilteredFund(id=entry.id, firm=firm, reason=override.reason or REMOVED_BY_OVERLAY)
            )
            continue

        verdict = rules.classify(firm)
        if verdict.excluded:
            log.debug("Filtered %s (%s)", firm, verdict.reason)
            filtered.append(FilteredFund(id=entry.id, firm=firm, reason=REMOVED_BY_HEURISTIC))
            continue

        candidate = apply_overlay(entry, override) if override is not None else entry.model_copy(deep=True)
        score = completeness_score(candidate)
        if score < KEEP_THRESHOLD:
            dropped.append(DroppedFund(id=entry.id, firm=firm, score=score))
            continue

        candidate.enriched_at = stamp
        entries.append(candidate)
        kept.append(candidate)
        kept_funds.append(
            KeptFund(
                firm=firm,
                score=score,
                firm_url=candidate.firm_url,
                thesis=_thesis_preview(candidate.thesis),
            )
        )

    skeletons = len(kept) + len(dropped) + len(filtered)
    report = EnrichmentReport(
        timestamp=now,
        original=original,
        skeletons_processed=skeletons,
        filtered=len(filtered),
        enriched_kept=len(kept),
        dropped=len(dropped),
        final_total=len(entries),
        kept_funds=kept_funds,
        dropped_funds=dropped,
        filtered_funds=filtered,
    )
    return EnrichmentOutcome(entries=entries, report=report, changed=skeletons > 0, kept=kept)


def _log_report(report: EnrichmentReport) -> None:
    log.info("Filtered (non-VC): %d", report.filtered)
    log.info("Enriched & kept (score >= %d): %d", KEEP_THRESHOLD, report.enriched_kept)
    log.info("Dropped (unenrichable, score < %d): %d", KEEP_THRESHOLD, report.dropped)
    log.info(
        "Final total: %d (%d original + %d enriched)",
        report.final_total,
        report.original,
        report.enriched_kept,
    )
    for k in report.kept_funds:
        log.info("  [%d] %s: %s", k.score, k.firm, k.firm_url or "no url")


def run_enrichment(
    directory_path: Path,
    overlay_path: Path,
    report_path: Path,
    rules_path: Path | None = None,
    now: datetime | None = None,
) -> EnrichmentReport:
    """Run the enrichment stage: filter, enrich, back up, rewrite, report.

    Raises:
        MissingInputError: if the directory file does not exist.
    """
    directory = load_directory(directory_path, required=True)
    overlay = load_overlay(overlay_path)
    rules = load_rules(rules_path)

    outcome = enrich_directory(directory, overlay, rules, now=now)
    log.info("Original (untouched): %d", outcome.report.original)
    log.info("SEC EDGAR skeletons: %d", outcome.report.skeletons_processed)

    if outcome.changed:
        backup = backup_file(directory_path, now=now)
        outcome.report.backup_path = str(backup) if backup else None
        save_directory(directory_path, outcome.entries)
        log.info("Saved %s", directory_path)
    else:
        log.info("No skeletons to process; %s left unchanged.", directory_path)

    write_json(report_path, outcome.report.to_json_dict())
    _log_report(outcome.report)
    log.info("Enrichment report saved to %s", report_path)
    return outcome.report
