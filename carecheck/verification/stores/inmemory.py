"""In-memory implementation of VerificationStore."""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from carecheck.verification.enums import IdentityStatus, Section, WwccStatus
from carecheck.verification.models import VerificationRecord, utc_now
from carecheck.verification.store import VerificationStore


class InMemoryVerificationStore(VerificationStore):
    """In-memory implementation of VerificationStore for testing and development.

    Each method completes without awaiting, so a conditional update is atomic
    with respect to other coroutines on the same event loop.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize empty storage.

        Args:
            clock: Source of the current time for write timestamps
        """
        self._records: dict[UUID, VerificationRecord] = {}
        self._clock = clock

    async def get(self, verification_id: UUID) -> VerificationRecord | None:
        """Get a record by id."""
        return self._records.get(verification_id)

    async def get_by_candidate(self, candidate_id: UUID) -> VerificationRecord | None:
        """Get the record owned by a candidate."""
        for record in self._records.values():
            if record.candidate_id == candidate_id:
                return record
        return None

    async def upsert(
        self, candidate_id: UUID, fields: Mapping[str, Any]
    ) -> VerificationRecord:
        """Create the candidate's record or update the existing one."""
        existing = await self.get_by_candidate(candidate_id)
        now = self._clock()
        if existing is None:
            existing = VerificationRecord(
                candidate_id=candidate_id, created_at=now, updated_at=now
            )
        record = existing.apply(fields, now)
        self._records[record.id] = record
        return record

    async def update(
        self, verification_id: UUID, fields: Mapping[str, Any]
    ) -> VerificationRecord | None:
        """Unconditionally update a record."""
        return await self.conditional_update(verification_id, {}, fields)

    async def conditional_update(
        self,
        verification_id: UUID,
        expected: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> VerificationRecord | None:
        """Update only if every expected field still holds its value."""
        current = self._records.get(verification_id)
        if current is None:
            return None
        for name, value in expected.items():
            if getattr(current, name) != value:
                return None

        record = current.apply(fields, self._clock())
        self._records[verification_id] = record
        return record

    async def find_by_wwcc_number(self, wwcc_number: str) -> list[VerificationRecord]:
        """Records whose submitted or extracted WWCC number matches."""
        needle = wwcc_number.strip().upper()
        matches = []
        for record in self._records.values():
            extracted = record.wwcc_extracted.wwcc_number if record.wwcc_extracted else None
            candidates = {n.strip().upper() for n in (record.wwcc_number, extracted) if n}
            if needle in candidates:
                matches.append(record)
        return matches

    async def list_by_section_status(
        self, section: Section, status: IdentityStatus | WwccStatus
    ) -> list[VerificationRecord]:
        """Records whose given section currently holds status."""
        return [
            record
            for record in self._records.values()
            if record.section_status(section) == status
        ]

    async def save(self, record: VerificationRecord) -> None:
        """Store a record as-is, bypassing derivation. For seeding fixtures."""
        self._records[record.id] = record
