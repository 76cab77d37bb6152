"""Verification pipeline configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

ProviderSortMode = Literal["price", "latency", "throughput"]


class OpenRouterProviderConfig(BaseModel):
    """OpenRouter-specific provider routing configuration.

    Controls how OpenRouter routes requests to underlying providers.
    See: https://openrouter.ai/docs#provider-routing
    """

    provider_order: list[str] | None = Field(
        default=None,
        description="Ordered list of provider names to try",
    )
    provider_sort: ProviderSortMode | None = Field(
        default=None,
        description="Sort providers by: 'price', 'latency', or 'throughput'",
    )
    allow_fallbacks: bool = Field(
        default=True,
        description="Allow fallback to other providers if specified ones fail",
    )

    def to_request_params(self) -> dict | None:
        """Convert to OpenRouter extra_body format."""
        provider: dict = {}

        if self.provider_order:
            provider["order"] = self.provider_order
        if self.provider_sort:
            provider["sort"] = self.provider_sort
        # True is the OpenRouter default
        if not self.allow_fallbacks:
            provider["allow_fallbacks"] = False

        if provider:
            return {"provider": provider}
        return None


class ExtractionStepConfig(BaseModel):
    """Model selection for one AI document-extraction step."""

    model: str = Field(
        default="openai/gpt-4o-mini",
        description="Model string, e.g. 'openai/gpt-4o-mini' or 'mock/test'",
    )
    fallback_models: list[str] = Field(
        default_factory=list,
        description="Models tried in order when the primary fails",
    )
    timeout: float = Field(default=25.0, gt=0, description="Per-request timeout in seconds")
    max_tokens: int = Field(default=1500, ge=1, description="Completion token limit")
    openrouter: OpenRouterProviderConfig | None = Field(
        default=None,
        description="OpenRouter routing, used only for openrouter/* models",
    )


class PipelineConfig(BaseModel):
    """Verification pipeline configuration."""

    phase_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Wall-clock budget for a single triggered phase",
    )
    stale_threshold_seconds: int = Field(
        default=180,
        ge=1,
        description="Age after which an automated check is escalated to review",
    )
    wwcc_min_validity_days: int = Field(
        default=90,
        ge=0,
        description="A WWCC expiring sooner than this fails the document check",
    )
    min_grant_email_markers: int = Field(
        default=6,
        ge=1,
        le=9,
        description="Authenticity markers required in a WWCC grant email",
    )
    identity_extraction: ExtractionStepConfig = Field(
        default_factory=ExtractionStepConfig,
        description="Passport and selfie extraction model",
    )
    wwcc_extraction: ExtractionStepConfig = Field(
        default_factory=ExtractionStepConfig,
        description="WWCC screenshot and grant-email fallback extraction model",
    )
