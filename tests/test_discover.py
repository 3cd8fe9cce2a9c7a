from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import requests  # type: ignore[import-untyped]

from investor_pipeline.ingest.discover import (
    default_date_range,
    dedupe_candidates,
    derive_firm,
    is_likely_investment_fund,
    parse_amount,
    run_discovery,
    to_candidate,
)
from investor_pipeline.ingest.parse_form_d import parse_form_d
from investor_pipeline.ingest.sec_client import SEARCH_URL, primary_doc_url, search_form_d

from conftest import NOW, form_d_xml


class StubClient:
    """Serves canned search pages and Form D documents; no network."""

    def __init__(self, pages: list[dict[str, Any]], docs: dict[str, str | Exception]) -> None:
        self.pages = pages
        self.docs = docs
        self.search_params: list[dict[str, Any]] = []

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        assert url == SEARCH_URL
        self.search_params.append(dict(params or {}))
        return self.pages.pop(0) if self.pages else {"hits": {"hits": [], "total": {"value": 0}}}

    def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        doc = self.docs[url]
        if isinstance(doc, Exception):
            raise doc
        return doc


def _hit(adsh: str, cik: str, file_date: str = "2025-02-14") -> dict[str, Any]:
    return {"_source": {"adsh": adsh, "ciks": [cik], "file_date": file_date}}


def _page(hits: list[dict[str, Any]], total: int) -> dict[str, Any]:
    return {"hits": {"hits": hits, "total": {"value": total}}}


# ----- classification -----
def test_fund_filer_is_kept() -> None:
    assert is_likely_investment_fund(parse_form_d(form_d_xml()))


def test_corporation_is_not_a_fund() -> None:
    parsed = parse_form_d(form_d_xml(name="Acme Robotics Inc", entity_type="Corporation"))
    assert not is_likely_investment_fund(parsed)


def test_excluded_sector_wins_over_fund_signal() -> None:
    parsed = parse_form_d(form_d_xml(name="Harbor Real Estate Fund III, LP"))
    assert not is_likely_investment_fund(parsed)


@pytest.mark.parametrize(
    "name,firm",
    [
        ("Acme Ventures Fund II, L.P.", "Acme Ventures"),
        ("Acme Capital, LP", "Acme Capital"),
        ("Orion Partners L.P.", "Orion Partners"),
        ("Plain Name Holdings", "Plain Name Holdings"),
    ],
)
def test_derive_firm(name: str, firm: str) -> None:
    assert derive_firm(name) == firm


def test_parse_amount() -> None:
    assert parse_amount("12500000") == 12_500_000
    assert parse_amount("Indefinite") is None
    assert parse_amount(None) is None
    assert parse_amount("n/a") is None


def test_to_candidate_maps_filing_fields() -> None:
    c = to_candidate(parse_form_d(form_d_xml()), "0001234567-25-000001", "2025-02-14", NOW)

    assert c.id == "sec-0001234567-25-000001"
    assert c.fund_name == "Acme Ventures Fund II, L.P."
    assert c.firm == "Acme Ventures"
    assert c.type == "vc"
    assert c.location == "Menlo Park, CALIFORNIA"
    assert c.key_people == ["Jane Doe"]
    assert c.total_sold == 12_500_000
    assert c.fund_type == "Venture Capital Fund"
    assert c.source == "sec-edgar-form-d"


def test_default_date_range_covers_thirty_days() -> None:
    assert default_date_range(date(2025, 3, 31)) == ("2025-03-01", "2025-03-31")


# ----- dedup -----
def test_dedupe_keeps_larger_total_sold(make_candidate) -> None:
    first = make_candidate(id="a", firm="Acme Ventures", total_sold=1_000_000)
    other = make_candidate(id="b", firm="Beta Capital", total_sold=2_000_000)
    bigger = make_candidate(id="c", firm="ACME  Ventures", total_sold=5_000_000)

    out = dedupe_candidates([first, other, bigger])

    assert [c.id for c in out] == ["c", "b"]


def test_dedupe_tie_keeps_first(make_candidate) -> None:
    a = make_candidate(id="a", firm="Acme", total_sold=None)
    b = make_candidate(id="b", firm="acme", total_sold=0)
    assert [c.id for c in dedupe_candidates([a, b])] == ["a"]


# ----- search -----
def test_search_stops_at_total() -> None:
    client = StubClient([_page([_hit("x-1", "1")], total=1)], {})
    hits = search_form_d(client, "2025-01-01", "2025-01-31", max_results=500)  # type: ignore[arg-type]

    assert len(hits) == 1
    assert len(client.search_params) == 1
    assert client.search_params[0]["forms"] == "D,D/A"
    assert client.search_params[0]["startdt"] == "2025-01-01"


def test_search_error_returns_hits_so_far() -> None:
    class FailingClient(StubClient):
        def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
            if params and params["from"] > 0:
                raise requests.ConnectionError("boom")
            return super().get_json(url, params)

    client = FailingClient([_page([_hit(f"x-{i}", "1") for i in range(2)], total=200)], {})
    hits = search_form_d(client, "2025-01-01", "2025-01-31", max_results=500, page_size=2)  # type: ignore[arg-type]
    assert len(hits) == 2


def test_search_never_exceeds_max_results() -> None:
    oversized = _page([_hit(f"x-{i}", "1") for i in range(50)], total=200)
    client = StubClient([oversized], {})
    hits = search_form_d(client, "2025-01-01", "2025-01-31", max_results=10)  # type: ignore[arg-type]

    assert len(hits) == 10
    assert [p["size"] for p in client.search_params] == [10]


def test_search_shrinks_last_page_to_remaining_budget() -> None:
    pages = [_page([_hit(f"x-{i}", "1") for i in range(4)], total=200) for _ in range(3)]
    client = StubClient(pages, {})
    hits = search_form_d(client, "2025-01-01", "2025-01-31", max_results=10, page_size=4)  # type: ignore[arg-type]

    assert [(p["from"], p["size"]) for p in client.search_params] == [(0, 4), (4, 4), (8, 2)]
    assert len(hits) == 10


# ----- end to end -----
def test_run_discovery_writes_deduplicated_candidates(tmp_path: Path) -> None:
    filings = {
        ("0000000001-25-000001", "0000000001"): form_d_xml("Acme Ventures Fund I, L.P.", "1000000", "0000000001"),
        ("0000000002-25-000001", "0000000002"): form_d_xml("Beta Capital, LP", "2000000", "0000000002"),
        ("0000000003-25-000001", "0000000003"): form_d_xml("Acme Ventures Fund II, L.P.", "5000000", "0000000003"),
        ("0000000004-25-000001", "0000000004"): form_d_xml("Acme Robotics Inc", "100", "0000000004", "Corporation"),
    }
    docs: dict[str, str | Exception] = {
        primary_doc_url(cik, adsh): xml for (adsh, cik), xml in filings.items()
    }
    failing = primary_doc_url("0000000005", "0000000005-25-000001")
    docs[failing] = requests.HTTPError("404")

    hits = [_hit(adsh, cik) for adsh, cik in filings] + [
        _hit("0000000005-25-000001", "0000000005"),
        {"_source": {"ciks": []}},
    ]
    client = StubClient([_page(hits, total=len(hits))], docs)
    out = tmp_path / "pipeline" / "discovered.json"

    result = run_discovery(client, "2025-02-01", "2025-02-28", 500, out, now=NOW)  # type: ignore[arg-type]

    assert result.searched == 6
    assert result.fetched == 4
    assert result.errors == 1
    assert result.skipped == 2
    assert result.unique == 2

    written = json.loads(out.read_text(encoding="utf-8"))
    assert [c["firm"] for c in written] == ["Acme Ventures", "Beta Capital"]
    assert written[0]["totalSold"] == 5_000_000
    assert written[0]["fundName"] == "Acme Ventures Fund II, L.P."
    assert written[0]["discoveredAt"].startswith("2025-03-01T12:00:00")
