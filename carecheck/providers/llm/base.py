"""Message, response and error types shared by the LLM executor."""

from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class LLMMessage(BaseModel):
    """One prompt message, optionally carrying document images."""

    role: Role
    content: str
    images: list[str] = Field(
        default_factory=list,
        description="URLs of document photos the model should look at",
    )


class LLMResponse(BaseModel):
    """What a model returned for one call."""

    content: str = Field(..., description="Raw model output")
    model: str = Field(..., description="Model string that produced the output")
    provider: str | None = Field(default=None, description="Provider prefix of the model")
    latency_ms: float | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Step and verification context attached by the executor",
    )


class ProviderError(Exception):
    """A model call failed or returned unusable output."""


class RateLimitError(ProviderError):
    """The provider rejected the call for rate limiting."""


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the executor timeout."""
