"""Access to uploaded verification documents."""

from abc import ABC, abstractmethod

import httpx

from carecheck.observability.logging import get_logger

logger = get_logger(__name__)


class DocumentStorage(ABC):
    """Resolves document references to URLs and bytes."""

    @abstractmethod
    def url_for(self, ref: str) -> str:
        """URL an external model can fetch the document from."""
        pass

    @abstractmethod
    async def fetch(self, ref: str) -> bytes:
        """Download the document's bytes."""
        pass


class HttpDocumentStorage(DocumentStorage):
    """Document storage served over HTTP(S).

    References are paths relative to ``base_url``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    def url_for(self, ref: str) -> str:
        if ref.startswith(("http://", "https://")):
            return ref
        return f"{self._base_url}/{ref.lstrip('/')}"

    async def fetch(self, ref: str) -> bytes:
        url = self.url_for(ref)
        if self._client is not None:
            response = await self._client.get(url, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url)
        response.raise_for_status()
        logger.debug("document_fetched", size=len(response.content))
        return response.content


class InMemoryDocumentStorage(DocumentStorage):
    """In-memory document storage for testing and development."""

    def __init__(self, documents: dict[str, bytes] | None = None) -> None:
        self._documents: dict[str, bytes] = dict(documents or {})

    def put(self, ref: str, data: bytes) -> None:
        self._documents[ref] = data

    def url_for(self, ref: str) -> str:
        return f"memory://{ref}"

    async def fetch(self, ref: str) -> bytes:
        try:
            return self._documents[ref]
        except KeyError:
            raise FileNotFoundError(f"Document not found: {ref}") from None
