"""In-memory implementation of CandidateProfileStore."""

from uuid import UUID

from carecheck.candidates.store import CandidateProfileStore
from carecheck.verification.enums import VerificationLevel


class InMemoryCandidateProfileStore(CandidateProfileStore):
    """In-memory implementation of CandidateProfileStore for testing and development."""

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._levels: dict[UUID, VerificationLevel] = {}
        self._emails: dict[UUID, str] = {}

    async def get_verification_level(self, candidate_id: UUID) -> VerificationLevel:
        """Current level, SIGNED_UP if the candidate is unknown."""
        return self._levels.get(candidate_id, VerificationLevel.SIGNED_UP)

    async def set_verification_level(
        self, candidate_id: UUID, level: VerificationLevel
    ) -> None:
        """Overwrite the candidate's verification level."""
        self._levels[candidate_id] = level

    async def get_email(self, candidate_id: UUID) -> str | None:
        """Contact email address, None if unknown."""
        return self._emails.get(candidate_id)

    def set_email(self, candidate_id: UUID, email: str) -> None:
        self._emails[candidate_id] = email
