"""Discovery stage: Form D filings → deduplicated investor candidates.

This is the coarse first filter. It keeps filers that look like investment
funds structured as LPs/LLCs; the finer non-VC classification happens much
later, in the enrichment stage.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

import requests  # type: ignore[import-untyped]

from investor_pipeline.ingest.parse_form_d import FormDParseError, ParsedFormD, parse_form_d
from investor_pipeline.ingest.sec_client import (
    SecClient,
    company_browse_url,
    primary_doc_url,
    search_form_d,
)
from investor_pipeline.models import SEC_FORM_D_SOURCE, FilingCandidate
from investor_pipeline.storage import write_models

log = logging.getLogger(__name__)

FUND_KEYWORDS = ("fund", "ventures", "capital", "partners", "venture", "investment", "equity", "growth")
FUND_ENTITY_TYPES = ("limited partnership", "limited liability")
EXCLUDED_SECTOR_KEYWORDS = ("bank", "insurance", "realty", "real estate", "mortgage", "housing")

FUND_TYPE_TO_COARSE = {
    "Venture Capital Fund": "vc",
    "Private Equity Fund": "vc",
    "Hedge Fund": "hedge",
}

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_MAX_RESULTS = 500
PROGRESS_EVERY = 20
MAX_LOGGED_ERRORS = 5

# Issuer name minus a trailing " Fund ...", " LP ..." or " L.P. ..." part.
FIRM_RE = re.compile(r"(.+?)(?:\s+(?:Fund|LP|L\.P\.).*)?", re.IGNORECASE)
TRAILING_COMMA_RE = re.compile(r",?\s*$")
LEADING_INT_RE = re.compile(r"\s*(-?\d+)")
DEDUPE_KEY_RE = re.compile(r"[^a-z0-9]")


@dataclass
class DiscoveryResult:
    """Outcome of a discovery run."""
    candidates: list[FilingCandidate] = field(default_factory=list)
    searched: int = 0
    fetched: int = 0
    skipped: int = 0
    errors: int = 0
    unique: int = 0


def default_date_range(today: date | None = None) -> tuple[str, str]:
    """Return (start, end) ISO dates covering the last 30 days."""
    end = today or datetime.now(timezone.utc).date()
    start = end - timedelta(days=DEFAULT_LOOKBACK_DAYS)
    return start.isoformat(), end.isoformat()


# --------------------------------------------------
# Classification
# --------------------------------------------------
def is_likely_investment_fund(parsed: ParsedFormD) -> bool:
    """Decide whether a filer is worth carrying forward as a fund.

    All three must hold: a fund keyword in the name or an investment-fund
    block in the filing; an LP or LLC entity type; no excluded-sector
    keyword (bank, insurance, real estate, ...) in the name.
    """
    name = (parsed.issuer.name or "").lower()
    entity_type = (parsed.issuer.entity_type or "").lower()

    has_fund_signal = any(k in name for k in FUND_KEYWORDS) or parsed.fund_type is not None
    is_fund_entity = any(t in entity_type for t in FUND_ENTITY_TYPES)
    is_excluded = any(k in name for k in EXCLUDED_SECTOR_KEYWORDS)

    return has_fund_signal and is_fund_entity and not is_excluded


def derive_firm(name: str) -> str:
    """Strip fund-number and partnership suffixes from an issuer name.

    >>> derive_firm("Acme Ventures Fund II, L.P.")
    'Acme Ventures'
    """
    m = FIRM_RE.fullmatch(name)
    firm = m.group(1) if m else name
    return TRAILING_COMMA_RE.sub("", firm) or name


def parse_amount(value: str | None) -> int | None:
    """Parse an offering amount; None for missing, indefinite or non-numeric."""
    if not value or value.strip().lower() == "indefinite":
        return None
    m = LEADING_INT_RE.match(value)
    return int(m.group(1)) if m else None


def to_candidate(
    parsed: ParsedFormD,
    accession_number: str | None,
    filing_date: str | None,
    discovered_at: datetime,
) -> FilingCandidate:
    """Transform a parsed filing into a `FilingCandidate`."""
    name = parsed.issuer.name or "Unknown"
    people = [
        f"{p.first_name or ''} {p.last_name}".strip()
        for p in parsed.related_persons
        if p.first_name != "-" and p.last_name
    ]
    location = ", ".join(x for x in (parsed.issuer.city, parsed.issuer.state) if x)
    fund_type = parsed.fund_type.type if parsed.fund_type else None

    return FilingCandidate(
        id=f"sec-{accession_number or 'unknown'}",
        fund_name=name,
        firm=derive_firm(name),
        type=FUND_TYPE_TO_COARSE.get(fund_type or "", "fund"),
        location=location or None,
        state=parsed.issuer.state,
        key_people=people or None,
        total_offering=parsed.offering.total_offering,
        total_sold=parse_amount(parsed.offering.total_sold),
        industry_type=parsed.industry_type,
        fund_type=fund_type,
        entity_type=parsed.issuer.entity_type,
        filing_date=filing_date,
        filing_type=parsed.submission_type,
        cik=parsed.issuer.cik,
        accession_number=accession_number,
        source=SEC_FORM_D_SOURCE,
        source_url=company_browse_url(parsed.issuer.cik),
        discovered_at=discovered_at,
    )


# --------------------------------------------------
# Batch dedup
# --------------------------------------------------
def dedupe_key(firm: str) -> str:
    return DEDUPE_KEY_RE.sub("", firm.lower())


def dedupe_candidates(candidates: Iterable[FilingCandidate]) -> list[FilingCandidate]:
    """Keep one candidate per normalized firm name.

    The first candidate for a key is kept unless a later one reports a
    strictly larger `total_sold` (missing counts as 0). Output order is the
    order in which keys were first seen.
    """
    kept: dict[str, FilingCandidate] = {}
    for c in candidates:
        key = dedupe_key(c.firm)
        current = kept.get(key)
        if current is None or (c.total_sold or 0) > (current.total_sold or 0):
            kept[key] = c
    return list(kept.values())


# --------------------------------------------------
# Stage runner
# --------------------------------------------------
def _hit_ids(hit: dict[str, Any]) -> tuple[str | None, str | None, str | None]:
    src = hit.get("_source") or {}
    ciks = src.get("ciks") or []
    return src.get("adsh"), (ciks[0] if ciks else None), src.get("file_date")


def collect_candidates(
    client: SecClient,
    hits: list[dict[str, Any]],
    discovered_at: datetime,
) -> DiscoveryResult:
    """Fetch, parse and classify each search hit.

    A failed fetch or unparseable document skips that filing; only the
    first few errors are logged individually.
    """
    result = DiscoveryResult(searched=len(hits))

    for hit in hits:
        adsh, cik, filing_date = _hit_ids(hit)
        if not adsh or not cik:
            result.skipped += 1
            continue

        try:
            parsed = parse_form_d(client.get_text(primary_doc_url(cik, adsh)))
        except (requests.RequestException, FormDParseError) as e:
            result.errors += 1
            if result.errors <= MAX_LOGGED_ERRORS:
                log.warning("Error fetching %s: %s", adsh, e)
        else:
            result.fetched += 1
            if is_likely_investment_fund(parsed):
                result.candidates.append(to_candidate(parsed, adsh, filing_date, discovered_at))
            else:
                result.skipped += 1

        processed = result.fetched + result.errors
        if processed % PROGRESS_EVERY == 0:
            log.info(
                "Progress: %d/%d (%d candidates, %d errors)",
                processed,
                len(hits),
                len(result.candidates),
                result.errors,
            )

    return result


def run_discovery(
    client: SecClient,
    start_date: str,
    end_date: str,
    max_results: int,
    output_path: Path,
    now: datetime | None = None,
) -> DiscoveryResult:
    """Run the discovery stage end to end and write `discovered.json`.

    Args:
        client: Throttled SEC client.
        start_date: ISO start date.
        end_date: ISO end date.
        max_results: Cap on search hits.
        output_path: Where to write the deduplicated candidates.
        now: Discovery timestamp (defaults to the current UTC time).

    Returns:
        DiscoveryResult whose `candidates` are the deduplicated candidates.
    """
    discovered_at = now or datetime.now(timezone.utc)
    log.info("SEC EDGAR Form D discovery: %s to %s (max %d)", start_date, end_date, max_results)

    hits = search_form_d(client, start_date, end_date, max_results)
    log.info("Found %d filings", len(hits))

    result = collect_candidates(client, hits, discovered_at)
    log.info(
        "Results: %d investor candidates from %d filings (%d skipped, %d errors)",
        len(result.candidates),
        result.fetched,
        result.skipped,
        result.errors,
    )

    result.candidates = dedupe_candidates(result.candidates)
    result.unique = len(result.candidates)
    log.info("After deduplication: %d unique funds", result.unique)

    write_models(output_path, result.candidates)
    log.info("Output written to %s", output_path)
    return result
