"""Tests for the WWCC grant email parser and extractor."""

from datetime import date

import pytest

from carecheck.extraction import grant_email
from carecheck.extraction.base import ExtractionResult
from carecheck.extraction.documents import InMemoryDocumentStorage
from carecheck.extraction.grant_email import GrantEmailExtractor, parse_grant_email_text
from carecheck.extraction.mock import MockDocumentExtractor

TODAY = date(2026, 3, 2)

DECLARED = {
    "surname": "Wright",
    "given_names": "Bailey Jordan",
    "wwcc_number": "WWC1234567A",
}


def grant_email_text(
    *,
    surname: str = "WRIGHT",
    other_name: str = "Jordan",
    table_number: str = "WWC1234567A",
    header_number: str = "WWC1234567A",
    expiry: str = "31/01/2029",
) -> str:
    return f"""From: WWCCNotification@ocg.nsw.gov.au
To: bailey@example.com
Subject: Information Regarding your Working With Children Check
Working With Children Check Number: {header_number}
You have been granted a Working with Children Check clearance
Dear Bailey,
You have been cleared to work with children.
Your details are:
Surname
{surname}
First Name
Bailey
Other Name
{other_name}
WWC Number
{table_number}
Type of Clearance
Employee
Expiry Date
{expiry}
Yours sincerely
Director
Working With Children Check
Office of the Children's Guardian
The Office of the Children's Guardian is an independent statutory authority
"""


class TestParseGrantEmailText:
    """Tests for parse_grant_email_text."""

    def test_genuine_email_passes(self) -> None:
        result = parse_grant_email_text(grant_email_text(), DECLARED, today=TODAY)

        assert result.passed is True
        assert result.is_authentic is True
        assert result.markers_found == 9
        assert result.issues == []
        assert result.extracted_fields() == {
            "surname": "WRIGHT",
            "first_name": "Bailey",
            "other_names": "Jordan",
            "wwcc_number": "WWC1234567A",
            "clearance_type": "Employee",
            "expiry_date": "2029-01-31",
        }
        assert result.recipient_email == "bailey@example.com"

    def test_unrecognised_document_asks_for_fallback(self) -> None:
        result = parse_grant_email_text("Service NSW\nWWC1234567A", DECLARED, today=TODAY)

        assert result.needs_ai_fallback is True
        assert result.passed is False
        assert result.markers_found == 0
        assert "Document does not appear to be a genuine OCG grant email" in result.issues

    def test_marker_threshold_is_configurable(self) -> None:
        text = grant_email_text().replace("Yours sincerely", "Regards")

        assert parse_grant_email_text(text, DECLARED, today=TODAY, min_markers=9).needs_ai_fallback
        assert parse_grant_email_text(text, DECLARED, today=TODAY, min_markers=8).passed

    def test_surname_mismatch(self) -> None:
        result = parse_grant_email_text(grant_email_text(surname="WRIGLEY"), DECLARED, today=TODAY)

        assert result.passed is False
        assert result.needs_ai_fallback is False
        assert any("Surname mismatch" in issue for issue in result.issues)

    def test_header_and_table_numbers_disagree(self) -> None:
        result = parse_grant_email_text(
            grant_email_text(header_number="WWC7654321A"), DECLARED, today=TODAY
        )

        assert result.passed is False
        assert any("inconsistency" in issue for issue in result.issues)

    def test_declared_number_mismatch(self) -> None:
        result = parse_grant_email_text(
            grant_email_text(), {**DECLARED, "wwcc_number": "WWC0000000B"}, today=TODAY
        )

        assert result.passed is False
        assert any("WWCC number mismatch" in issue for issue in result.issues)

    def test_expiring_soon(self) -> None:
        result = parse_grant_email_text(
            grant_email_text(expiry="31/03/2026"), DECLARED, today=TODAY
        )

        assert result.expired is True
        assert result.passed is False
        assert "WWCC expires within 90 days (31/03/2026)" in result.issues

    def test_expired(self) -> None:
        result = parse_grant_email_text(
            grant_email_text(expiry="01/01/2026"), DECLARED, today=TODAY
        )

        assert result.expired is True
        assert "WWCC has expired (01/01/2026)" in result.issues

    def test_unreadable_expiry_asks_for_fallback(self) -> None:
        result = parse_grant_email_text(
            grant_email_text(expiry="sometime"), DECLARED, today=TODAY
        )

        assert result.needs_ai_fallback is True
        assert result.passed is False

    def test_empty_row_is_none(self) -> None:
        text = grant_email_text().replace("Other Name\nJordan\n", "Other Name\n")

        result = parse_grant_email_text(text, DECLARED, today=TODAY)

        assert result.other_names is None
        assert result.wwcc_number == "WWC1234567A"
        assert result.passed is True


class TestGrantEmailExtractor:
    """Tests for GrantEmailExtractor."""

    @pytest.fixture
    def storage(self) -> InMemoryDocumentStorage:
        return InMemoryDocumentStorage({"uploads/grant.pdf": b"%PDF-1.4"})

    @pytest.mark.asyncio
    async def test_parses_without_fallback(
        self, storage: InMemoryDocumentStorage, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(grant_email, "extract_pdf_text", lambda data: grant_email_text())
        fallback = MockDocumentExtractor()
        extractor = GrantEmailExtractor(storage, fallback, today=lambda: TODAY)

        result = await extractor.extract(["uploads/grant.pdf"], DECLARED)

        assert result.passed is True
        assert result.extracted_fields["wwcc_number"] == "WWC1234567A"
        assert result.reasoning == "Authenticity: 9/9 markers found"
        assert fallback.call_history == []

    @pytest.mark.asyncio
    async def test_unreadable_pdf_uses_fallback(
        self, storage: InMemoryDocumentStorage, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken(data: bytes) -> str:
            raise ValueError("not a PDF")

        monkeypatch.setattr(grant_email, "extract_pdf_text", broken)
        fallback_result = ExtractionResult(passed=True, reasoning="vision model")
        fallback = MockDocumentExtractor(default_result=fallback_result)
        extractor = GrantEmailExtractor(storage, fallback, today=lambda: TODAY)

        result = await extractor.extract(["uploads/grant.pdf"], DECLARED)

        assert result == fallback_result
        assert fallback.call_history[0]["documents"] == ["uploads/grant.pdf"]

    @pytest.mark.asyncio
    async def test_without_fallback_reports_parser_issues(
        self, storage: InMemoryDocumentStorage, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(grant_email, "extract_pdf_text", lambda data: "Screenshot")
        extractor = GrantEmailExtractor(storage, today=lambda: TODAY)

        result = await extractor.extract(["uploads/grant.pdf"], DECLARED)

        assert result.passed is False
        assert result.issues

    @pytest.mark.asyncio
    async def test_missing_document_raises(self) -> None:
        extractor = GrantEmailExtractor(InMemoryDocumentStorage(), today=lambda: TODAY)

        with pytest.raises(FileNotFoundError):
            await extractor.extract(["uploads/missing.pdf"], DECLARED)
