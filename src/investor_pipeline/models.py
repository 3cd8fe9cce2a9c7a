"""Pydantic models for every file the pipeline reads or writes.

On disk every record uses camelCase keys (the directory is shared with a
JavaScript front end); in Python the fields are snake_case. Internal fields
of candidate records keep their leading underscore on disk (`_confidence`,
`_source`) so they are easy to spot and strip.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Confidence = Literal["high", "medium", "low"]

SEC_FORM_D_SOURCE = "sec-edgar-form-d"
PLACEHOLDER_THESIS_MARKER = "Discovered via SEC Form D filing"


class _FileModel(BaseModel):
    """Base for file contracts: camelCase aliases, snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON-ready, alias-keyed representation of the model."""
        return self.model_dump(mode="json", by_alias=True)


# --------------------------------------------------
# Stage 1: discovery
# --------------------------------------------------
class FilingCandidate(_FileModel):
    """One investment-fund filer discovered from a Form D filing.

    Attributes:
        id: `sec-<accession number>`.
        fund_name: Issuer name as filed.
        firm: Short firm name derived from the issuer name.
        type: Coarse type from the filing: `vc`, `hedge` or `fund`.
        key_people: Related persons as "First Last", or None.
        total_offering: Raw total offering amount (may be "Indefinite").
        total_sold: Total amount sold, None when absent or indefinite.
        fund_type: Investment fund type, e.g. "Venture Capital Fund".
        accession_number: EDGAR accession number (dashed).
        discovered_at: Timestamp of the discovery run.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")
    id: str
    fund_name: str
    firm: str
    type: str
    location: str | None = None
    state: str | None = None
    key_people: list[str] | None = None
    total_offering: str | None = None
    total_sold: int | None = None
    industry_type: str | None = None
    fund_type: str | None = None
    entity_type: str | None = None
    filing_date: str | None = None
    filing_type: str | None = None
    cik: str | None = None
    accession_number: str | None = None
    source: str = SEC_FORM_D_SOURCE
    source_url: str | None = None
    discovered_at: datetime


# --------------------------------------------------
# Directory
# --------------------------------------------------
class CheckSize(_FileModel):
    """Typical cheque size range in currency units."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")
    min: int
    max: int


class DirectoryEntry(_FileModel):
    """A record in the shared investor directory.

    Entries written by other tools may carry fields this model does not
    know; they are kept (`extra="allow"`) and only the fields that were
    present on load are written back, so untouched entries round-trip.
    Fields the pipeline never reads accept any shape for the same reason.

    Attributes:
        id: Unique identifier within the directory.
        origin: Provenance tag; `sec-edgar-form-d` for pipeline records.
        enriched_at: Set once the enrichment stage has accepted the record.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")
    id: str
    name: str | None = None
    firm: str | None = None
    title: Any = None
    type: Any = None
    photo: str | None = None
    thesis: str | None = None
    stages: Any = None
    sectors: Any = None
    check_size: Any = None
    geography: Any = None
    recent_investments: list[Any] | None = None
    portfolio_highlights: list[Any] | None = None
    fund_size: Any = None
    actively_deploying: Any = None
    last_active: Any = None
    linked_in: str | None = None
    twitter: Any = None
    firm_url: str | None = None
    location: Any = None
    entity: Any = None
    member_count: Any = None
    key_people: Any = None
    origin: str | None = None
    enriched_at: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    @property
    def display_firm(self) -> str:
        return self.firm or self.name or ""


class Provenance(_FileModel):
    """Where a candidate record came from (never persisted to the directory)."""
    type: str
    cik: str | None = None
    accession_number: str | None = None
    filing_date: str | None = None
    discovered_at: datetime | None = None


class CandidateInvestor(DirectoryEntry):
    """Verification output: a directory record plus merge-only internals."""
    type: str | None = None
    stages: list[str] | None = None
    sectors: list[str] | None = None
    check_size: CheckSize | None = None
    geography: list[str] | None = None
    fund_size: str | None = None
    location: str | None = None
    member_count: int | None = None
    key_people: list[str] | None = None
    confidence: Confidence = Field(alias="_confidence")
    source: Provenance = Field(alias="_source")

    def to_directory_entry(self) -> DirectoryEntry:
        """Strip the internal fields and return the persistable record."""
        data = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
            exclude={"confidence", "source"},
        )
        return DirectoryEntry.model_validate(data)


# --------------------------------------------------
# Stage 2: verification
# --------------------------------------------------
class DuplicateMatch(_FileModel):
    """A discovered candidate that already exists in the directory."""
    candidate: str
    matched_with: str | None
    confidence: Confidence


class VerificationSummary(_FileModel):
    total_discovered: int
    duplicates: int
    high_confidence: int
    medium_confidence: int
    low_confidence: int
    verified_at: datetime


class VerificationResult(_FileModel):
    """Content of `verified.json`."""
    verified: list[CandidateInvestor] = Field(default_factory=list)
    flagged_for_review: list[CandidateInvestor] = Field(default_factory=list)
    duplicates: list[DuplicateMatch] = Field(default_factory=list)
    summary: VerificationSummary


# --------------------------------------------------
# Stage 3: merge
# --------------------------------------------------
class AddedRecord(_FileModel):
    name: str | None
    id: str
    location: str | None = None


class SkippedDuplicate(_FileModel):
    name: str | None
    reason: str
    matched_with: str | None = None


class SkippedLowConfidence(_FileModel):
    name: str | None
    confidence: Confidence
    reason: str = "not high confidence"


class FlaggedRecord(_FileModel):
    name: str | None
    location: str | None = None
    confidence: Confidence
    fund_size: str | None = None


class MergeReport(_FileModel):
    """Content of `merge-report.json`."""
    timestamp: datetime
    previous_count: int = Field(..., ge=0)
    new_count: int = Field(..., ge=0)
    added: list[AddedRecord] = Field(default_factory=list)
    skipped_duplicate: list[SkippedDuplicate] = Field(default_factory=list)
    skipped_low_confidence: list[SkippedLowConfidence] = Field(default_factory=list)
    flagged_for_review: list[FlaggedRecord] = Field(default_factory=list)
    backup_path: str | None = None


# --------------------------------------------------
# Stage 4: enrichment
# --------------------------------------------------
class EnrichmentOverride(_FileModel):
    """Curated overrides for one firm, or a removal directive."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
    thesis: str | None = None
    firm_url: str | None = None
    linked_in: str | None = None
    twitter: str | None = None
    stages: list[str] | None = None
    sectors: list[str] | None = None
    portfolio_highlights: list[Any] | None = None
    type: str | None = None
    remove: bool = Field(False, alias="_remove")
    reason: str | None = Field(None, alias="_reason")


class KeptFund(_FileModel):
    firm: str
    score: int
    firm_url: str | None = None
    thesis: str | None = None


class DroppedFund(_FileModel):
    id: str
    firm: str
    score: int


class FilteredFund(_FileModel):
    id: str
    firm: str
    reason: str


class EnrichmentReport(_FileModel):
    """Content of `enrichment-report.json`."""
    timestamp: datetime
    original: int
    skeletons_processed: int
    filtered: int
    enriched_kept: int
    dropped: int
    final_total: int
    kept_funds: list[KeptFund] = Field(default_factory=list)
    dropped_funds: list[DroppedFund] = Field(default_factory=list)
    filtered_funds: list[FilteredFund] = Field(default_factory=list)
    backup_path: str | None = None
