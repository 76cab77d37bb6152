"""Admin overrides of identity and WWCC outcomes.

Admins can substitute for or override any automated document check. No
override can reach the fully verified status: ``cleared`` is written only
by OCG ingestion.

Each operation touches two stores: the verification record, then the
candidate profile level. The record write is not rolled back if the level
write fails; :class:`PartialUpdateError` tells the caller to retry, and every
operation here is safe to repeat.
"""

from typing import Any
from uuid import UUID

from carecheck.candidates.store import CandidateProfileStore
from carecheck.observability.logging import get_logger
from carecheck.observability.metrics import ADMIN_ACTIONS
from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    WwccStatus,
)
from carecheck.verification.errors import (
    InvalidTransitionError,
    NotAuthorizedError,
    PartialUpdateError,
    SubmissionValidationError,
    VerificationNotFoundError,
)
from carecheck.verification.models import (
    Actor,
    ExtractedIdentity,
    ExtractedWwcc,
    VerificationRecord,
)
from carecheck.verification.pipeline import CROSS_CHECKABLE_WWCC, PipelineOrchestrator
from carecheck.verification.status import derive_verification_level
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)

ADMIN_ROLES = ("admin", "super_admin")


class AdminOverrideHandler:
    """Privileged manual transitions on verification records."""

    def __init__(
        self,
        store: VerificationStore,
        profiles: CandidateProfileStore,
        orchestrator: PipelineOrchestrator,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._orchestrator = orchestrator

    async def verify_identity(self, verification_id: UUID, actor: Actor) -> VerificationRecord:
        """Mark the identity verified and request a cross-check if WWCC is ready."""
        self._authorize(actor)
        record = await self._load(verification_id)
        if record.identity_status == IdentityStatus.NOT_STARTED:
            raise InvalidTransitionError("No identity submission to verify")

        extracted = record.identity_extracted or ExtractedIdentity(
            surname=record.surname,
            given_names=record.given_names,
            date_of_birth=record.date_of_birth.isoformat() if record.date_of_birth else None,
        )
        record = await self._write(
            record,
            "identity_status",
            {
                "identity_status": IdentityStatus.VERIFIED,
                "identity_extracted": extracted,
                "identity_issues": [],
                "identity_rejection_reason": None,
                "identity_user_guidance": None,
            },
        )
        if record.wwcc_status in CROSS_CHECKABLE_WWCC:
            await self._orchestrator.request_cross_check(record.id)

        return await self._finish("verify_identity", actor, record)

    async def reject_identity(
        self, verification_id: UUID, reason: str | None, actor: Actor
    ) -> VerificationRecord:
        """Reject the identity section until the candidate resubmits."""
        self._authorize(actor)
        reason = _require_reason(reason)
        record = await self._load(verification_id)
        if record.identity_status == IdentityStatus.NOT_STARTED:
            raise InvalidTransitionError("No identity submission to reject")

        record = await self._write(
            record,
            "identity_status",
            {
                "identity_status": IdentityStatus.REJECTED,
                "identity_rejection_reason": reason,
                "identity_user_guidance": None,
                "cross_check_status": CrossCheckStatus.NOT_STARTED,
            },
        )
        return await self._finish("reject_identity", actor, record, reason=reason)

    async def confirm_wwcc(self, verification_id: UUID, actor: Actor) -> VerificationRecord:
        """Accept the WWCC document in place of the automated check.

        The admin checks the number on the OCG portal against the declared
        name, so missing extracted names are filled from the declaration.
        """
        self._authorize(actor)
        record = await self._load(verification_id)
        match record.wwcc_status:
            case WwccStatus.BARRED:
                raise InvalidTransitionError("WWCC is barred and cannot be confirmed")
            case WwccStatus.NOT_STARTED:
                raise InvalidTransitionError("No WWCC submission to confirm")
            case WwccStatus.CLEARED:
                raise InvalidTransitionError("WWCC is already cleared by the OCG")
            case _:
                pass

        record = await self._write(
            record,
            "wwcc_status",
            {
                "wwcc_status": WwccStatus.DOC_VERIFIED,
                "wwcc_extracted": _with_declared_names(record),
                "wwcc_issues": [],
                "wwcc_rejection_reason": None,
                "wwcc_user_guidance": None,
            },
        )
        if record.identity_status == IdentityStatus.VERIFIED:
            await self._orchestrator.request_cross_check(record.id)

        return await self._finish("confirm_wwcc", actor, record)

    async def reject_wwcc(
        self, verification_id: UUID, reason: str | None, actor: Actor
    ) -> VerificationRecord:
        """Reject the WWCC section until the candidate resubmits."""
        self._authorize(actor)
        reason = _require_reason(reason)
        record = await self._load(verification_id)
        match record.wwcc_status:
            case WwccStatus.BARRED:
                raise InvalidTransitionError("WWCC is barred and cannot be changed")
            case WwccStatus.NOT_STARTED:
                raise InvalidTransitionError("No WWCC submission to reject")
            case _:
                pass

        record = await self._write(
            record,
            "wwcc_status",
            {
                "wwcc_status": WwccStatus.REJECTED,
                "wwcc_rejection_reason": reason,
                "wwcc_user_guidance": None,
                "cross_check_status": CrossCheckStatus.NOT_STARTED,
            },
        )
        return await self._finish("reject_wwcc", actor, record, reason=reason)

    def _authorize(self, actor: Actor) -> None:
        if not actor.has_any_role(*ADMIN_ROLES):
            logger.warning("admin_action_denied", actor=actor.subject, roles=sorted(actor.roles))
            raise NotAuthorizedError("Admin role required")

    async def _load(self, verification_id: UUID) -> VerificationRecord:
        record = await self._store.get(verification_id)
        if record is None:
            raise VerificationNotFoundError(f"Verification {verification_id} not found")
        return record

    async def _write(
        self, record: VerificationRecord, status_field: str, fields: dict[str, Any]
    ) -> VerificationRecord:
        updated = await self._store.conditional_update(
            record.id,
            record.guard(status_field),
            fields,
        )
        if updated is None:
            raise InvalidTransitionError(
                "Verification changed while the action was applied, reload and retry"
            )
        return updated

    async def _finish(
        self, action: str, actor: Actor, record: VerificationRecord, **details: str
    ) -> VerificationRecord:
        ADMIN_ACTIONS.labels(action=action).inc()
        logger.info(
            "admin_action_applied",
            action=action,
            actor=actor.subject,
            verification_id=str(record.id),
            verification_status=int(record.verification_status),
            **details,
        )

        # Re-read so a cross-check requested above is reflected in the level
        latest = await self._store.get(record.id) or record
        level = derive_verification_level(
            latest.identity_status, latest.wwcc_status, latest.cross_check_status
        )
        try:
            await self._profiles.set_verification_level(latest.candidate_id, level)
        except Exception as e:
            logger.error(
                "admin_level_update_failed",
                action=action,
                verification_id=str(record.id),
                level=level.name,
                error=str(e),
            )
            raise PartialUpdateError(
                f"{action} was recorded but the candidate level update failed; retry"
            ) from e
        return latest


def _require_reason(reason: str | None) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise SubmissionValidationError("A rejection reason is required", fields=["reason"])
    return reason


def _with_declared_names(record: VerificationRecord) -> ExtractedWwcc:
    extracted = record.wwcc_extracted or ExtractedWwcc()
    given = (record.given_names or "").split()
    return extracted.model_copy(
        update={
            "surname": extracted.surname or record.surname,
            "first_name": extracted.first_name or (given[0] if given else None),
            "other_names": extracted.other_names or (" ".join(given[1:]) or None),
            "wwcc_number": extracted.wwcc_number or record.wwcc_number,
            "expiry_date": extracted.expiry_date
            or (record.wwcc_expiry.isoformat() if record.wwcc_expiry else None),
        }
    )
