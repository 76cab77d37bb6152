"""Document storage configuration."""

from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Where uploaded verification documents are fetched from."""

    documents_base_url: str = Field(
        default="http://localhost:9000/documents",
        description="Base URL that document references are resolved against",
    )
    request_timeout: float = Field(
        default=20.0,
        gt=0,
        description="Timeout in seconds for document downloads",
    )
