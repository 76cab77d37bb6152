"""API server configuration model."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """HTTP API server configuration.

    Secrets (JWT signing key, OCG webhook secret) are read from the
    environment by the auth layer, never from TOML.
    """

    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8000, ge=1, le=65535, description="Port to listen on")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
