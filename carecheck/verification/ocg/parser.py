"""Parser for OCG employer verification result emails.

The HTML body has two ``<tbody>`` sections:

1. Employer info: ``<th>`` label / ``<td>`` value rows for Employer ID,
   Employer Name and Verification Date/Time.
2. Results: a title row and a column-header row (both using ``<th>``), then
   one ``<td>`` row per person: Family Name, Reference Number, Result Status,
   Expiry Date, Result.

One email can carry results for several people.
"""

import re
from datetime import date
from enum import Enum

from bs4 import BeautifulSoup
from bs4.element import Tag
from pydantic import BaseModel, Field

from carecheck.verification.enums import WwccStatus
from carecheck.verification.errors import MalformedOcgEmailError

_DMY = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_WHITESPACE = re.compile(r"\s+")


class OcgResult(BaseModel):
    """One person's result row."""

    family_name: str
    reference_number: str = Field(..., description="WWCC number, e.g. WWC2752857E")
    result_status: str = Field(..., description="Uppercased, e.g. CLEARED or NOT FOUND")
    expiry_date: str | None = Field(default=None, description="YYYY-MM-DD")
    result_text: str = ""


class OcgEmail(BaseModel):
    """Parsed OCG verification email."""

    employer_id: str = ""
    employer_name: str = ""
    verification_datetime: str = ""
    results: list[OcgResult] = Field(default_factory=list)


class OcgAction(str, Enum):
    """What an OCG result does to the matched WWCC section."""

    CLEAR = "clear"
    OCG_NOT_FOUND = "ocg_not_found"
    BARRED = "barred"
    APPLICATION_PENDING = "application_pending"
    CLOSED = "closed"
    EXPIRED = "expired"
    REVIEW = "review"

    @property
    def wwcc_status(self) -> WwccStatus:
        return _ACTION_STATUS[self]


_ACTION_STATUS: dict[OcgAction, WwccStatus] = {
    OcgAction.CLEAR: WwccStatus.CLEARED,
    OcgAction.OCG_NOT_FOUND: WwccStatus.OCG_NOT_FOUND,
    OcgAction.BARRED: WwccStatus.BARRED,
    OcgAction.APPLICATION_PENDING: WwccStatus.APPLICATION_PENDING,
    OcgAction.CLOSED: WwccStatus.CLOSED,
    OcgAction.EXPIRED: WwccStatus.EXPIRED,
    OcgAction.REVIEW: WwccStatus.REVIEW,
}

_STATUS_ACTIONS: dict[str, OcgAction] = {
    "CLEARED": OcgAction.CLEAR,
    "NOT FOUND": OcgAction.OCG_NOT_FOUND,
    "BARRED": OcgAction.BARRED,
    "INTERIM BAR": OcgAction.BARRED,
    "APPLICATION IN PROGRESS": OcgAction.APPLICATION_PENDING,
    "CLOSED": OcgAction.CLOSED,
    "EXPIRED": OcgAction.EXPIRED,
}


def map_result_status(result_status: str) -> OcgAction:
    """Action for a result status; anything unrecognised goes to review."""
    key = _WHITESPACE.sub(" ", result_status).strip().upper()
    return _STATUS_ACTIONS.get(key, OcgAction.REVIEW)


def _text(cell: Tag) -> str:
    return _WHITESPACE.sub(" ", cell.get_text(" ")).strip()


def _dmy_to_iso(value: str) -> str | None:
    match = _DMY.search(value)
    if not match:
        return None
    day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_authoritative_email(html: str) -> OcgEmail:
    """Parse an OCG verification email.

    Args:
        html: Raw HTML body of the email

    Returns:
        OcgEmail with one OcgResult per data row

    Raises:
        MalformedOcgEmailError: If the employer or results section is missing
    """
    soup = BeautifulSoup(html, "html.parser")
    sections = soup.find_all("tbody")
    if len(sections) < 2:
        raise MalformedOcgEmailError(
            f"Expected at least 2 <tbody> sections, found {len(sections)}"
        )

    employer: dict[str, str] = {}
    for row in sections[0].find_all("tr"):
        label, value = row.find("th"), row.find("td")
        if label is not None and value is not None:
            employer[_text(label)] = _text(value)

    results = []
    for row in sections[1].find_all("tr"):
        if row.find("th") is not None:
            continue
        cells = [_text(td) for td in row.find_all("td")]
        if len(cells) < 5:
            continue
        family_name, reference_number, result_status, expiry_raw, result_text = cells[:5]
        results.append(
            OcgResult(
                family_name=family_name,
                reference_number=reference_number,
                result_status=result_status.upper(),
                expiry_date=_dmy_to_iso(expiry_raw),
                result_text=result_text,
            )
        )

    return OcgEmail(
        employer_id=employer.get("Employer ID", ""),
        employer_name=employer.get("Employer Name", ""),
        verification_datetime=employer.get("Verification Date/Time", ""),
        results=results,
    )
