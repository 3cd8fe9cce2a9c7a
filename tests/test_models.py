from __future__ import annotations

from investor_pipeline.models import (
    DirectoryEntry,
    EnrichmentOverride,
    MergeReport,
)

from conftest import NOW


def test_directory_entry_round_trips_unknown_and_absent_fields() -> None:
    raw = {"id": "a", "name": "Ann", "linkedIn": "https://linkedin.com/in/ann", "memberCount": 3, "badge": "gold"}
    entry = DirectoryEntry.model_validate(raw)

    assert entry.linked_in == "https://linkedin.com/in/ann"
    assert entry.member_count == 3
    assert entry.to_json_dict() == raw


def test_display_firm_falls_back_to_name() -> None:
    assert DirectoryEntry(id="a", name="Ann").display_firm == "Ann"
    assert DirectoryEntry(id="a", name="Ann", firm="Acme").display_firm == "Acme"
    assert DirectoryEntry(id="a").display_firm == ""


def test_override_reads_underscore_directives() -> None:
    o = EnrichmentOverride.model_validate({"_remove": True, "_reason": "hedge fund", "portfolioHighlights": ["x"]})
    assert o.remove is True
    assert o.reason == "hedge fund"
    assert o.portfolio_highlights == ["x"]
    assert EnrichmentOverride().remove is False


def test_merge_report_uses_camel_case_keys() -> None:
    report = MergeReport(timestamp=NOW, previous_count=1, new_count=1)
    payload = report.to_json_dict()
    assert set(payload) >= {"previousCount", "newCount", "skippedDuplicate", "skippedLowConfidence", "flaggedForReview"}
    assert payload["timestamp"].startswith("2025-03-01T12:00:00")
