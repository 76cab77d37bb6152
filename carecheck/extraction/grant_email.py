"""Deterministic parser for OCG WWCC grant emails saved as PDF.

Candidates download the OCG's "you have been granted a clearance" email as a
PDF. The printed email has a fixed shape: sender and recipient header, a
grant heading with the WWCC number, then a details table where each label
sits on its own line with its value on the next line::

    Surname
    WRIGHT
    First Name
    Bailey
    ...

No AI is needed when the template is intact. When it isn't (too few
authenticity markers, or the number or expiry can't be read) the result asks
for an AI fallback instead of failing the candidate.
"""

import io
import re
from collections.abc import Callable, Mapping
from datetime import date, timedelta
from typing import Any

import pdfplumber
from pydantic import BaseModel, Field

from carecheck.extraction.base import DocumentExtractor, ExtractionResult
from carecheck.extraction.documents import DocumentStorage
from carecheck.extraction.manual import WWCC_NUMBER_PATTERN
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)

AUTHENTICITY_MARKERS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"WWCCNotification@ocg\.nsw\.gov\.au", re.I), "OCG sender address"),
    (
        re.compile(r"Information Regarding your Working With Children Check", re.I),
        "Email subject line",
    ),
    (
        re.compile(r"You have been granted a Working with Children Check clearance", re.I),
        "Grant confirmation heading",
    ),
    (re.compile(r"Office of the Children's Guardian", re.I), "OCG organisation name"),
    (
        re.compile(r"You have been cleared to work with children", re.I),
        "Clearance confirmation text",
    ),
    (re.compile(r"Your details are:", re.I), "Details table header"),
    (re.compile(r"Yours sincerely"), "Formal sign-off"),
    (re.compile(r"Director\nWorking With Children Check", re.I), "Director title block"),
    (
        re.compile(
            r"The Office of the Children's Guardian is an independent statutory authority",
            re.I,
        ),
        "OCG footer statement",
    ),
)

_HEADER_NUMBER = re.compile(r"Working With Children Check Number:\s*(WWC\d{7}[A-Z])")
_RECIPIENT = re.compile(
    r"WWCCNotification@ocg\.nsw\.gov\.au[^\n]*\nTo:\s*"
    r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})",
    re.I,
)
_DMY = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


class GrantEmailParseResult(BaseModel):
    """Fields and verdict from one grant email."""

    surname: str | None = None
    first_name: str | None = None
    other_names: str | None = None
    wwcc_number: str | None = None
    clearance_type: str | None = None
    expiry_date: str | None = None
    recipient_email: str | None = None
    markers_found: int = 0
    is_authentic: bool = False
    missing_markers: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    expired: bool = False
    passed: bool = False
    needs_ai_fallback: bool = False

    def extracted_fields(self) -> dict[str, str | None]:
        return {
            "surname": self.surname,
            "first_name": self.first_name,
            "other_names": self.other_names,
            "wwcc_number": self.wwcc_number,
            "clearance_type": self.clearance_type,
            "expiry_date": self.expiry_date,
        }


_TABLE_LABELS = (
    "Surname",
    "First Name",
    "Other Name",
    "WWC Number",
    "Type of Clearance",
    "Expiry Date",
)


def _table_field(text: str, label: str) -> str | None:
    """Value for a table label: the next line, or the rest of the same line."""
    escaped = re.escape(label)
    match = re.search(rf"^[ \t]*{escaped}[ \t]*\n[ \t]*([^\n]+)", text, re.I | re.M)
    if match is None:
        match = re.search(rf"^[ \t]*{escaped}[ \t]*:?[ \t]+([^\n]+)", text, re.I | re.M)
    if match is None:
        return None
    value = match.group(1).strip()
    # An empty row renders the next label where the value should be
    if any(value.casefold().startswith(other.casefold()) for other in _TABLE_LABELS):
        return None
    return value or None


def _dmy_to_iso(value: str | None) -> str | None:
    if not value:
        return None
    match = _DMY.search(value)
    if not match:
        return None
    day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_grant_email_text(
    text: str,
    declared: Mapping[str, Any],
    *,
    today: date,
    min_markers: int = 6,
    min_validity_days: int = 90,
) -> GrantEmailParseResult:
    """Parse the text of a grant email and check it against declared details.

    Args:
        text: Plain text extracted from the PDF
        declared: Candidate's declared ``surname``, ``given_names`` and
            optional ``wwcc_number``
        today: Reference date for expiry checks
        min_markers: Authenticity markers required to trust the template
        min_validity_days: Clearances expiring sooner than this fail

    Returns:
        GrantEmailParseResult
    """
    missing = [label for pattern, label in AUTHENTICITY_MARKERS if not pattern.search(text)]
    found = len(AUTHENTICITY_MARKERS) - len(missing)

    if found < min_markers:
        return GrantEmailParseResult(
            markers_found=found,
            missing_markers=missing,
            issues=[f"Missing marker: {label}" for label in missing]
            + ["Document does not appear to be a genuine OCG grant email"],
            needs_ai_fallback=True,
        )

    surname = _table_field(text, "Surname")
    first_name = _table_field(text, "First Name")
    other_names = _table_field(text, "Other Name")
    table_number = _table_field(text, "WWC Number")
    clearance_type = _table_field(text, "Type of Clearance")
    expiry_raw = _table_field(text, "Expiry Date")

    header_match = _HEADER_NUMBER.search(text)
    header_number = header_match.group(1) if header_match else None
    recipient_match = _RECIPIENT.search(text)
    wwcc_number = (table_number or header_number or "").strip().upper() or None
    expiry_iso = _dmy_to_iso(expiry_raw)

    issues: list[str] = []
    mismatch = False
    expired = False

    if header_number and table_number and header_number != table_number.upper():
        issues.append(
            f'WWCC number inconsistency: header says "{header_number}" '
            f'but table says "{table_number}"'
        )
        mismatch = True

    declared_surname = (declared.get("surname") or "").strip()
    if surname and declared_surname:
        if surname.casefold() != declared_surname.casefold():
            issues.append(
                f'Surname mismatch: document "{surname}" vs submitted "{declared_surname}"'
            )
            mismatch = True
    elif declared_surname:
        issues.append("Could not extract surname from document")

    declared_given = (declared.get("given_names") or "").casefold().split()
    document_names = " ".join(n for n in (first_name, other_names) if n).casefold().split()
    if document_names and declared_given:
        if declared_given[0] not in document_names:
            issues.append(
                f'First name mismatch: document "{" ".join(document_names)}" '
                f'vs submitted "{declared.get("given_names")}"'
            )
            mismatch = True
    elif declared_given:
        issues.append("Could not extract first name from document")

    declared_number = (declared.get("wwcc_number") or "").strip().upper()
    if wwcc_number:
        if declared_number and wwcc_number != declared_number:
            issues.append(
                f'WWCC number mismatch: document "{wwcc_number}" vs submitted "{declared_number}"'
            )
            mismatch = True
        if not WWCC_NUMBER_PATTERN.match(wwcc_number):
            issues.append(f'Invalid WWCC number format: "{wwcc_number}"')
            mismatch = True
    else:
        issues.append("Could not extract WWCC number from document")

    if expiry_iso:
        expiry = date.fromisoformat(expiry_iso)
        if expiry < today:
            issues.append(f"WWCC has expired ({expiry_raw})")
            expired = True
        elif expiry < today + timedelta(days=min_validity_days):
            issues.append(f"WWCC expires within {min_validity_days} days ({expiry_raw})")
            expired = True
    else:
        issues.append("Could not extract expiry date from document")

    missing_critical = wwcc_number is None or expiry_iso is None

    return GrantEmailParseResult(
        surname=surname,
        first_name=first_name,
        other_names=other_names,
        wwcc_number=wwcc_number,
        clearance_type=clearance_type,
        expiry_date=expiry_iso,
        recipient_email=recipient_match.group(1) if recipient_match else None,
        markers_found=found,
        is_authentic=True,
        missing_markers=missing,
        issues=issues,
        expired=expired,
        passed=not (mismatch or expired or missing_critical),
        needs_ai_fallback=missing_critical,
    )


def extract_pdf_text(data: bytes) -> str:
    """Concatenate the text of every page in a PDF."""
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


class GrantEmailExtractor(DocumentExtractor):
    """Extractor for the grant_email WWCC method.

    Parses the PDF deterministically and hands the document to
    ``fallback`` only when the parser could not read it.
    """

    def __init__(
        self,
        storage: DocumentStorage,
        fallback: DocumentExtractor | None = None,
        *,
        today: Callable[[], date] = date.today,
        min_markers: int = 6,
        min_validity_days: int = 90,
    ) -> None:
        self._storage = storage
        self._fallback = fallback
        self._today = today
        self._min_markers = min_markers
        self._min_validity_days = min_validity_days

    async def extract(
        self,
        documents: list[str],
        declared: Mapping[str, Any],
    ) -> ExtractionResult:
        data = await self._storage.fetch(documents[0])

        try:
            text = extract_pdf_text(data)
        except Exception as e:
            logger.warning("grant_email_pdf_unreadable", error=str(e))
            parsed = GrantEmailParseResult(
                issues=["Failed to parse PDF document"], needs_ai_fallback=True
            )
        else:
            parsed = parse_grant_email_text(
                text,
                declared,
                today=self._today(),
                min_markers=self._min_markers,
                min_validity_days=self._min_validity_days,
            )

        if parsed.needs_ai_fallback and self._fallback is not None:
            logger.info(
                "grant_email_ai_fallback",
                markers_found=parsed.markers_found,
                issue_count=len(parsed.issues),
            )
            return await self._fallback.extract(documents, declared)

        return ExtractionResult(
            extracted_fields=parsed.extracted_fields(),
            passed=parsed.passed,
            issues=parsed.issues,
            reasoning=(
                f"Authenticity: {parsed.markers_found}/{len(AUTHENTICITY_MARKERS)} markers found"
            ),
        )
