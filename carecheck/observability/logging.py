"""structlog setup for carecheck.

Verification events carry identity-document data. Values under known
sensitive keys are replaced outright, and any remaining string is scrubbed
for email addresses, phone numbers and passport numbers. WWCC numbers are
left visible because support staff match them against the OCG register.
"""

import logging
import re
import sys
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SENSITIVE_KEYS: frozenset[str] = frozenset({
    # credentials
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
    "credentials",
    "bearer",
    "access_token",
    # contact details
    "email",
    "emails",
    "recipient",
    "recipient_email",
    "phone",
    # identity documents
    "date_of_birth",
    "dob",
    "passport_number",
    "passport_upload_ref",
    "selfie_upload_ref",
    "grant_email_ref",
    "screenshot_ref",
})

REDACTED = "[REDACTED]"

_VALUE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "[EMAIL]"),
    (re.compile(r"\+?[\d\s\-\(\)]{10,}"), "[PHONE]"),
    (re.compile(r"\b[A-Z]{1,2}\d{7}\b"), "[DOCUMENT]"),
)


def scrub_text(text: str) -> str:
    for pattern, placeholder in _VALUE_PATTERNS:
        text = pattern.sub(placeholder, text)
    return text


def _redact(value: Any) -> Any:
    match value:
        case dict():
            return {
                key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _redact(item)
                for key, item in value.items()
            }
        case list():
            return [_redact(item) for item in value]
        case str():
            return scrub_text(value)
        case _:
            return value


class PIIRedactor:
    """structlog processor that strips personal data from an event."""

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, _redact(dict(event_dict)))


def _processors(format: str, redact_pii: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    # ISO timestamps match the phone pattern, so stamp after redacting.
    if redact_pii:
        chain.append(PIIRedactor())
    chain.append(structlog.processors.TimeStamper(fmt="iso"))
    if format == "json":
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    return chain


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name, e.g. "DEBUG" or "WARNING"
        format: "json" for deployed services, "console" for local runs
        redact_pii: Scrub personal data before rendering
    """
    threshold = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=_processors(format, redact_pii),
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
