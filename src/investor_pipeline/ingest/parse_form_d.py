"""Parse a Form D `primary_doc.xml` into a `ParsedFormD`.

Filings vary a lot in completeness, so every lookup is tolerant: a missing
element yields None rather than an error. Only XML that does not parse at
all raises `FormDParseError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from xml.etree import ElementTree as ET


class FormDParseError(ValueError):
    """The document is not well-formed XML."""


@dataclass(frozen=True)
class Issuer:
    name: str | None
    cik: str | None
    city: str | None
    state: str | None
    entity_type: str | None


@dataclass(frozen=True)
class RelatedPerson:
    first_name: str | None
    last_name: str | None
    city: str | None
    state: str | None
    relationships: list[str] = field(default_factory=list)
    clarification: str | None = None


@dataclass(frozen=True)
class FundInfo:
    """Investment fund block; present only for pooled investment funds."""
    type: str | None
    is_40_act: str | None


@dataclass(frozen=True)
class OfferingAmounts:
    total_offering: str | None
    total_sold: str | None
    total_remaining: str | None


@dataclass(frozen=True)
class ParsedFormD:
    """Structured view of the Form D fields the pipeline uses."""
    issuer: Issuer
    related_persons: list[RelatedPerson]
    industry_type: str | None
    fund_type: FundInfo | None
    offering: OfferingAmounts
    submission_type: str | None


def _strip_ns(root: ET.Element) -> None:
    """Remove XML namespaces in-place for simpler tag access."""
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]


def _find(elem: ET.Element | None, tag: str) -> ET.Element | None:
    """Return the first descendant whose tag matches case-insensitively."""
    if elem is None:
        return None
    wanted = tag.lower()
    for child in elem.iter():
        if child is not elem and isinstance(child.tag, str) and child.tag.lower() == wanted:
            return child
    return None


def _find_all(elem: ET.Element | None, tag: str) -> list[ET.Element]:
    if elem is None:
        return []
    wanted = tag.lower()
    return [
        child
        for child in elem.iter()
        if child is not elem and isinstance(child.tag, str) and child.tag.lower() == wanted
    ]


def _text(elem: ET.Element | None, tag: str) -> str | None:
    found = _find(elem, tag)
    if found is None:
        return None
    text = "".join(found.itertext()).strip()
    return text or None


def _parse_person(block: ET.Element) -> RelatedPerson:
    name = _find(block, "relatedPersonName")
    address = _find(block, "relatedPersonAddress")
    relationships = [
        "".join(r.itertext()).strip() for r in _find_all(block, "relationship")
    ]
    return RelatedPerson(
        first_name=_text(name, "firstName"),
        last_name=_text(name, "lastName"),
        city=_text(address, "city"),
        state=_text(address, "stateOrCountryDescription"),
        relationships=[r for r in relationships if r],
        clarification=_text(block, "relationshipClarification"),
    )


def parse_form_d(xml: str) -> ParsedFormD:
    """Parse Form D XML text.

    Args:
        xml: Content of a filing's `primary_doc.xml`.

    Returns:
        ParsedFormD with None for every field the document lacks.

    Raises:
        FormDParseError: if the text is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml.strip())
    except ET.ParseError as e:
        raise FormDParseError(f"Malformed Form D XML: {e}") from e
    _strip_ns(root)

    address = _find(root, "issuerAddress")
    issuer = Issuer(
        name=_text(root, "entityName"),
        cik=_text(root, "cik"),
        city=_text(address, "city"),
        state=_text(address, "stateOrCountryDescription"),
        entity_type=_text(root, "entityType"),
    )

    related = [_parse_person(block) for block in _find_all(root, "relatedPersonInfo")]

    industry = _find(root, "industryGroup")
    fund_block = _find(industry, "investmentFundInfo")
    fund_type = None
    if fund_block is not None:
        fund_type = FundInfo(
            type=_text(fund_block, "investmentFundType"),
            is_40_act=_text(fund_block, "is40Act"),
        )

    amounts = _find(root, "offeringSalesAmounts")
    offering = OfferingAmounts(
        total_offering=_text(amounts, "totalOfferingAmount"),
        total_sold=_text(amounts, "totalAmountSold"),
        total_remaining=_text(amounts, "totalRemaining"),
    )

    return ParsedFormD(
        issuer=issuer,
        related_persons=related,
        industry_type=_text(industry, "industryGroupType"),
        fund_type=fund_type,
        offering=offering,
        submission_type=_text(root, "submissionType"),
    )
