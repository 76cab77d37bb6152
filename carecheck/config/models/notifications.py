"""Candidate notification configuration."""

from pydantic import BaseModel, Field


class NotificationsConfig(BaseModel):
    """Settings for failure notification emails."""

    failure_delay_minutes: int = Field(
        default=10,
        ge=0,
        description="Minutes a section must stay failed before the candidate is emailed",
    )
    dedup_tolerance_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Max gap between updated_at and the section status_at "
        "for the record to count as untouched since the failure",
    )
    from_address: str = Field(
        default="Verification Team <verify@carecheck.example>",
        description="Sender address for verification emails",
    )
    support_url: str = Field(
        default="https://carecheck.example/dashboard/verification",
        description="Link included in emails so candidates can resubmit",
    )
