"""VerificationStore abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from carecheck.verification.enums import IdentityStatus, Section, WwccStatus
from carecheck.verification.models import VerificationRecord


class VerificationStore(ABC):
    """Abstract interface for verification record storage.

    One record per candidate. All writes are column-scoped: implementations
    apply ``fields`` through :meth:`VerificationRecord.apply` so the derived
    status and section timestamps are maintained by the store, never by the
    caller.
    """

    @abstractmethod
    async def get(self, verification_id: UUID) -> VerificationRecord | None:
        """Get a record by id."""
        pass

    @abstractmethod
    async def get_by_candidate(self, candidate_id: UUID) -> VerificationRecord | None:
        """Get the record owned by a candidate."""
        pass

    @abstractmethod
    async def upsert(
        self, candidate_id: UUID, fields: Mapping[str, Any]
    ) -> VerificationRecord:
        """Create the candidate's record or update the existing one."""
        pass

    @abstractmethod
    async def update(
        self, verification_id: UUID, fields: Mapping[str, Any]
    ) -> VerificationRecord | None:
        """Unconditionally update a record. Returns None if it doesn't exist."""
        pass

    @abstractmethod
    async def conditional_update(
        self,
        verification_id: UUID,
        expected: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> VerificationRecord | None:
        """Update only if every ``expected`` field currently holds its value.

        Returns:
            The updated record, or None if the record is missing or any
            expected value no longer matches
        """
        pass

    @abstractmethod
    async def find_by_wwcc_number(self, wwcc_number: str) -> list[VerificationRecord]:
        """Records whose submitted or extracted WWCC number matches (case-insensitive)."""
        pass

    @abstractmethod
    async def list_by_section_status(
        self, section: Section, status: IdentityStatus | WwccStatus
    ) -> list[VerificationRecord]:
        """Records whose given section currently holds ``status``."""
        pass
