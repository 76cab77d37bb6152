"""Direct-trust extractor for manually entered WWCC details."""

import re
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from carecheck.extraction.base import DocumentExtractor, ExtractionResult

WWCC_NUMBER_PATTERN = re.compile(r"^WWC\d{7}[A-Z]$")


def normalize_wwcc_number(value: str) -> str:
    """Uppercase and drop whitespace, e.g. ' wwc 1234567a ' -> 'WWC1234567A'."""
    return re.sub(r"\s+", "", value).upper()


class ManualEntryExtractor(DocumentExtractor):
    """Trusts the typed-in WWCC details; only their shape and expiry are checked.

    The name on the clearance is taken to be the declared identity name. The
    OCG email remains the authority that confirms the number belongs to them.
    """

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    async def extract(
        self,
        documents: list[str],  # noqa: ARG002
        declared: Mapping[str, Any],
    ) -> ExtractionResult:
        issues: list[str] = []
        number = normalize_wwcc_number(declared.get("wwcc_number") or "")
        expiry = declared.get("wwcc_expiry")
        if isinstance(expiry, str):
            expiry = date.fromisoformat(expiry)

        if not WWCC_NUMBER_PATTERN.match(number):
            issues.append(f'Invalid WWCC number format: "{number}"')
        if expiry is None:
            issues.append("WWCC expiry date missing")
        elif expiry < self._today():
            issues.append(f"WWCC has expired ({expiry.isoformat()})")

        given = (declared.get("given_names") or "").split()
        return ExtractionResult(
            extracted_fields={
                "surname": declared.get("surname"),
                "first_name": given[0] if given else None,
                "other_names": " ".join(given[1:]) or None,
                "wwcc_number": number or None,
                "clearance_type": None,
                "expiry_date": expiry.isoformat() if expiry else None,
            },
            passed=not issues,
            issues=issues,
            reasoning="Manual entry accepted on the candidate's declaration",
        )
