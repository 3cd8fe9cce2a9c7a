from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from investor_pipeline.models import FilingCandidate

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

FORM_D_TEMPLATE = """<?xml version="1.0"?>
<edgarSubmission>
  <submissionType>D</submissionType>
  <primaryIssuer>
    <cik>{cik}</cik>
    <entityName>{name}</entityName>
    <issuerAddress>
      <street1>1 Sand Hill Rd</street1>
      <city>Menlo Park</city>
      <stateOrCountry>CA</stateOrCountry>
      <stateOrCountryDescription>CALIFORNIA</stateOrCountryDescription>
    </issuerAddress>
    <entityType>{entity_type}</entityType>
  </primaryIssuer>
  <relatedPersonsList>
    <relatedPersonInfo>
      <relatedPersonName>
        <firstName>Jane</firstName>
        <lastName>Doe</lastName>
      </relatedPersonName>
      <relatedPersonAddress>
        <city>Palo Alto</city>
        <stateOrCountryDescription>CALIFORNIA</stateOrCountryDescription>
      </relatedPersonAddress>
      <relatedPersonRelationshipList>
        <relationship>Executive Officer</relationship>
        <relationship>Promoter</relationship>
      </relatedPersonRelationshipList>
      <relationshipClarification>Managing Member of the GP</relationshipClarification>
    </relatedPersonInfo>
    <relatedPersonInfo>
      <relatedPersonName>
        <firstName>-</firstName>
        <lastName>Acme GP, LLC</lastName>
      </relatedPersonName>
      <relatedPersonRelationshipList>
        <relationship>Promoter</relationship>
      </relatedPersonRelationshipList>
    </relatedPersonInfo>
  </relatedPersonsList>
  <offeringData>
    <industryGroup>
      <industryGroupType>Pooled Investment Fund</industryGroupType>
      <investmentFundInfo>
        <investmentFundType>{fund_type}</investmentFundType>
        <is40Act>false</is40Act>
      </investmentFundInfo>
    </industryGroup>
    <offeringSalesAmounts>
      <totalOfferingAmount>Indefinite</totalOfferingAmount>
      <totalAmountSold>{sold}</totalAmountSold>
      <totalRemaining>Indefinite</totalRemaining>
    </offeringSalesAmounts>
  </offeringData>
</edgarSubmission>
"""


def form_d_xml(
    name: str = "Acme Ventures Fund II, L.P.",
    sold: str = "12500000",
    cik: str = "0001234567",
    entity_type: str = "Limited Partnership",
    fund_type: str = "Venture Capital Fund",
) -> str:
    return FORM_D_TEMPLATE.format(
        name=name, sold=sold, cik=cik, entity_type=entity_type, fund_type=fund_type
    )


@pytest.fixture
def make_candidate() -> Callable[..., FilingCandidate]:
    """Factory for well-populated discovery candidates."""

    def _make(**overrides: Any) -> FilingCandidate:
        data: dict[str, Any] = {
            "id": "sec-0001234567-25-000001",
            "fund_name": "Beta Capital Fund I, L.P.",
            "firm": "Beta Capital",
            "type": "vc",
            "location": "Austin, TEXAS",
            "state": "TEXAS",
            "key_people": ["Jane Doe"],
            "total_offering": "Indefinite",
            "total_sold": 25_000_000,
            "industry_type": "Pooled Investment Fund",
            "fund_type": "Venture Capital Fund",
            "entity_type": "Limited Partnership",
            "filing_date": "2025-02-14",
            "filing_type": "D",
            "cik": "0001234567",
            "accession_number": "0001234567-25-000001",
            "discovered_at": NOW,
        }
        data.update(overrides)
        return FilingCandidate(**data)

    return _make
