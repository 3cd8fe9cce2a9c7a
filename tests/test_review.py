from __future__ import annotations

from pathlib import Path

from investor_pipeline.config import Settings
from investor_pipeline.models import DirectoryEntry, VerificationResult, VerificationSummary
from investor_pipeline.review import (
    confidence_counts,
    directory_frame,
    flagged_frame,
    load_review_data,
    origin_counts,
)
from investor_pipeline.storage import write_json
from investor_pipeline.verify.verify import to_candidate_investor, verification_payload

from conftest import NOW


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        sec_user_agent="",
        data_dir=tmp_path,
        directory_path=tmp_path / "investors.json",
        overlay_path=tmp_path / "enrichment-data.json",
        rules_path=None,
        request_interval=0.0,
        request_timeout=1.0,
        log_level="INFO",
        log_path=tmp_path / "pipeline.log",
    )


def test_directory_frame_flags_skeletons() -> None:
    entries = [
        DirectoryEntry(id="hand", name="Ann", firm="Ann Capital"),
        DirectoryEntry(
            id="sk",
            firm="Kestrel Partners",
            origin="sec-edgar-form-d",
            thesis="Investment fund based in Austin. Discovered via SEC Form D filing.",
        ),
    ]
    df = directory_frame(entries)

    assert list(df["id"]) == ["hand", "sk"]
    assert list(df["origin"]) == ["original", "sec-edgar-form-d"]
    assert list(df["skeleton"]) == [False, True]
    assert list(df["completeness"]) == [0, 0]

    counts = origin_counts(df)
    assert set(counts["origin"]) == {"original", "sec-edgar-form-d"}
    assert counts["entries"].sum() == 2


def test_empty_views() -> None:
    assert directory_frame([]).empty
    assert origin_counts(directory_frame([])).empty
    assert flagged_frame(None).empty
    assert confidence_counts(None).empty


def test_verification_views(make_candidate) -> None:
    low = to_candidate_investor(make_candidate(firm="Gamma Labs"), "low")
    result = VerificationResult(
        verified=[],
        flagged_for_review=[low],
        duplicates=[],
        summary=VerificationSummary(
            total_discovered=4,
            duplicates=1,
            high_confidence=2,
            medium_confidence=0,
            low_confidence=1,
            verified_at=NOW,
        ),
    )

    flagged = flagged_frame(result)
    assert list(flagged["firm"]) == ["Gamma Labs"]
    assert list(flagged["cik"]) == ["0001234567"]

    counts = confidence_counts(result)
    assert list(counts["tier"]) == ["high", "medium", "low", "duplicate"]
    assert list(counts["candidates"]) == [2, 0, 1, 1]


def test_load_review_data_tolerates_missing_files(tmp_path: Path, make_candidate) -> None:
    settings = _settings(tmp_path)
    empty = load_review_data(settings)
    assert empty.directory == []
    assert empty.verification is None
    assert empty.merge_report is None

    record = to_candidate_investor(make_candidate(), "low")
    result = VerificationResult(
        flagged_for_review=[record],
        summary=VerificationSummary(
            total_discovered=1,
            duplicates=0,
            high_confidence=0,
            medium_confidence=0,
            low_confidence=1,
            verified_at=NOW,
        ),
    )
    write_json(settings.verified_path, verification_payload(result))
    write_json(settings.directory_path, [{"id": "hand", "name": "Ann"}])

    data = load_review_data(settings)
    assert [e.id for e in data.directory] == ["hand"]
    assert data.verification is not None
    assert data.verification.flagged_for_review[0].firm == "Beta Capital"
