"""OCG verification emails: parsing and ingestion."""

from carecheck.verification.ocg.ingest import (
    OcgIngestionReport,
    OcgIngestionService,
    OcgRowReport,
)
from carecheck.verification.ocg.parser import (
    OcgAction,
    OcgEmail,
    OcgResult,
    map_result_status,
    parse_authoritative_email,
)

__all__ = [
    "OcgAction",
    "OcgEmail",
    "OcgIngestionReport",
    "OcgIngestionService",
    "OcgResult",
    "OcgRowReport",
    "map_result_status",
    "parse_authoritative_email",
]
