"""Test factories for creating test data."""

from tests.factories.ocg import ocg_email_html, ocg_row
from tests.factories.verification import (
    T0,
    TODAY,
    RecordFactory,
    passport_fields,
    passport_result,
    wwcc_fields,
    wwcc_result,
)

__all__ = [
    "T0",
    "TODAY",
    "RecordFactory",
    "ocg_email_html",
    "ocg_row",
    "passport_fields",
    "passport_result",
    "wwcc_fields",
    "wwcc_result",
]
