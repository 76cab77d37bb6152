"""Document extraction interface.

An extractor reads one submission's documents, compares what it finds with
what the candidate declared and reports a verdict. Implementations are
swappable: AI vision models, deterministic parsers and test doubles all
satisfy the same contract.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


class ExtractionResult(BaseModel):
    """Outcome of extracting a document."""

    extracted_fields: dict[str, str | None] = Field(
        default_factory=dict,
        description="Field values read from the document",
    )
    passed: bool = Field(..., description="Whether the document passed the extractor's checks")
    issues: list[str] = Field(default_factory=list, description="Problems found")
    reasoning: str | None = Field(default=None, description="Extractor's explanation")


class DocumentExtractor(ABC):
    """Reads documents and reports extracted fields plus a verdict."""

    @abstractmethod
    async def extract(
        self,
        documents: list[str],
        declared: Mapping[str, Any],
    ) -> ExtractionResult:
        """Extract fields from documents.

        Args:
            documents: Document references, in the order the extractor expects
            declared: Values the candidate submitted, for comparison

        Returns:
            ExtractionResult

        Raises:
            Exception: Any failure to reach or parse the upstream extractor;
                callers record these as a technical failure
        """
        pass
