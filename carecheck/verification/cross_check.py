"""Comparison of identity-document fields against WWCC-document fields.

Names are compared after normalization so that case, accents, punctuation,
hyphenation and spacing differences between documents don't cause a false
mismatch. Dates of birth are compared as dates, whatever their format.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime

from carecheck.verification.models import ExtractedIdentity, ExtractedWwcc

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%d %b %Y", "%d %B %Y")
_APOSTROPHES = re.compile(r"['’`]")
_NON_LETTERS = re.compile(r"[^a-z\s]")
_SPACES = re.compile(r"\s+")


def normalize_name(value: str | None) -> str:
    """Casefolded ASCII letters and single spaces.

    "O'Brien" -> "obrien", "Smith-Jones" -> "smith jones", "José" -> "jose".
    """
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    folded = _APOSTROPHES.sub("", ascii_only.casefold())
    letters = _NON_LETTERS.sub(" ", folded)
    return _SPACES.sub(" ", letters).strip()


def parse_date(value: str | date | None) -> date | None:
    """Parse a date written in any common document format, else None."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


@dataclass
class CrossCheckResult:
    """Verdict of comparing the two documents."""

    passed: bool
    issues: list[str] = field(default_factory=list)
    reasoning: str = ""


def compare_documents(
    identity: ExtractedIdentity | None,
    wwcc: ExtractedWwcc | None,
) -> CrossCheckResult:
    """Compare passport-derived name/DOB with WWCC-derived name/DOB.

    Surnames must match. The passport's first given name must appear among
    the WWCC first and other names. DOB is compared only when both
    documents carry one. Missing names on either side fail the check.
    """
    identity = identity or ExtractedIdentity()
    wwcc = wwcc or ExtractedWwcc()

    passport_surname = normalize_name(identity.surname)
    wwcc_surname = normalize_name(wwcc.surname)
    missing = []
    if not passport_surname:
        missing.append("passport surname")
    if not wwcc_surname:
        missing.append("WWCC surname")
    if missing:
        return CrossCheckResult(
            passed=False,
            issues=[f"Missing {item}" for item in missing],
            reasoning=f"Cannot compare documents: missing {', '.join(missing)}",
        )

    issues: list[str] = []
    notes: list[str] = []

    if passport_surname == wwcc_surname:
        notes.append(f'Surname "{identity.surname}" matches')
    else:
        issues.append(
            f'Surname mismatch: passport "{identity.surname}" vs WWCC "{wwcc.surname}"'
        )

    passport_given = normalize_name(identity.given_names).split()
    wwcc_given = normalize_name(f"{wwcc.first_name or ''} {wwcc.other_names or ''}").split()
    if passport_given and wwcc_given:
        if passport_given[0] in wwcc_given:
            notes.append(f'First name "{passport_given[0]}" matches')
        else:
            issues.append(
                f'First name mismatch: passport "{identity.given_names}" '
                f'vs WWCC "{" ".join(wwcc_given)}"'
            )
    else:
        notes.append("First name not compared: missing on one document")

    passport_dob = parse_date(identity.date_of_birth)
    wwcc_dob = parse_date(wwcc.date_of_birth)
    if passport_dob and wwcc_dob:
        if passport_dob == wwcc_dob:
            notes.append("Date of birth matches")
        else:
            issues.append(
                f"Date of birth mismatch: passport {passport_dob.isoformat()} "
                f"vs WWCC {wwcc_dob.isoformat()}"
            )
    else:
        notes.append("Date of birth not compared: not on both documents")

    return CrossCheckResult(
        passed=not issues,
        issues=issues,
        reasoning="; ".join(notes + issues),
    )
