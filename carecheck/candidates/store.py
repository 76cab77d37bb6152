"""CandidateProfileStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from carecheck.verification.enums import VerificationLevel


class CandidateProfileStore(ABC):
    """Abstract interface for the candidate's denormalized verification level."""

    @abstractmethod
    async def get_verification_level(self, candidate_id: UUID) -> VerificationLevel:
        """Current level, SIGNED_UP if the candidate is unknown."""
        pass

    @abstractmethod
    async def set_verification_level(
        self, candidate_id: UUID, level: VerificationLevel
    ) -> None:
        """Overwrite the candidate's verification level."""
        pass

    @abstractmethod
    async def get_email(self, candidate_id: UUID) -> str | None:
        """Contact email address, None if unknown."""
        pass
