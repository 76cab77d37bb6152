"""Mock document extractor for testing."""

import asyncio
from collections.abc import Mapping
from typing import Any

from carecheck.extraction.base import DocumentExtractor, ExtractionResult


class MockDocumentExtractor(DocumentExtractor):
    """Returns configurable results without calling any model.

    Results are consumed in order from ``results``; once exhausted the
    ``default_result`` is returned. ``error`` makes every call raise and
    ``delay`` makes every call sleep first, for timeout tests.
    """

    def __init__(
        self,
        default_result: ExtractionResult | None = None,
        results: list[ExtractionResult] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self._default_result = default_result or ExtractionResult(passed=True)
        self._results = list(results or [])
        self._error = error
        self._delay = delay
        self._call_history: list[dict[str, Any]] = []

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def queue(self, result: ExtractionResult) -> None:
        """Queue a result for the next call."""
        self._results.append(result)

    async def extract(
        self,
        documents: list[str],
        declared: Mapping[str, Any],
    ) -> ExtractionResult:
        self._call_history.append({"documents": list(documents), "declared": dict(declared)})
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        if self._results:
            return self._results.pop(0)
        return self._default_result
