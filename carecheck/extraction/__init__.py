"""Document extraction: AI vision, deterministic parsers and test doubles."""

from carecheck.extraction.base import DocumentExtractor, ExtractionResult
from carecheck.extraction.documents import (
    DocumentStorage,
    HttpDocumentStorage,
    InMemoryDocumentStorage,
)
from carecheck.extraction.grant_email import (
    GrantEmailExtractor,
    GrantEmailParseResult,
    parse_grant_email_text,
)
from carecheck.extraction.llm import PassportExtractor, WwccScreenshotExtractor
from carecheck.extraction.manual import ManualEntryExtractor, normalize_wwcc_number
from carecheck.extraction.mock import MockDocumentExtractor

__all__ = [
    "DocumentExtractor",
    "DocumentStorage",
    "ExtractionResult",
    "GrantEmailExtractor",
    "GrantEmailParseResult",
    "HttpDocumentStorage",
    "InMemoryDocumentStorage",
    "ManualEntryExtractor",
    "MockDocumentExtractor",
    "PassportExtractor",
    "WwccScreenshotExtractor",
    "normalize_wwcc_number",
    "parse_grant_email_text",
]
