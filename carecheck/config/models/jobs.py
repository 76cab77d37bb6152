"""Settings for scheduled background work."""

from pydantic import BaseModel, Field, SecretStr


class HatchetConfig(BaseModel):
    """Connection and schedule for the Hatchet worker that runs the failure-email sweep."""

    enabled: bool = False
    server_url: str = "http://localhost:7077"
    api_key: SecretStr | None = None
    cron_failure_notifications: str = Field(
        default="*/5 * * * *",
        description="How often candidates with failed checks are swept for emails",
    )
    retry_max_attempts: int = Field(default=3, ge=1, le=10)


class JobsConfig(BaseModel):
    hatchet: HatchetConfig = Field(default_factory=HatchetConfig)
