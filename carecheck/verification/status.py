"""Derivation of the overall verification code from section statuses.

The overall code is a pure function of the identity, WWCC and cross-check
section statuses. Precedence:

1. WWCC confirmed CLEARED by the OCG and cross-check passed: fully verified.
2. Cross-check passed or under review: provisionally verified.
3. Any WWCC progress: the WWCC section's code.
4. Any identity progress: the identity section's code.
5. Otherwise: not started.

Every enum member has an entry in the lookup tables below; the tables are
checked for completeness at import time.
"""

from collections.abc import Mapping
from types import MappingProxyType

from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    OverallStatus,
    VerificationLevel,
    WwccStatus,
)

_IDENTITY_CODES: Mapping[IdentityStatus, OverallStatus] = MappingProxyType({
    IdentityStatus.NOT_STARTED: OverallStatus.NOT_STARTED,
    IdentityStatus.PENDING: OverallStatus.PENDING_ID_AUTO,
    IdentityStatus.PROCESSING: OverallStatus.PENDING_ID_AUTO,
    IdentityStatus.VERIFIED: OverallStatus.PENDING_WWCC_AUTO,
    IdentityStatus.REVIEW: OverallStatus.PENDING_ID_REVIEW,
    IdentityStatus.REJECTED: OverallStatus.ID_REJECTED,
    IdentityStatus.FAILED: OverallStatus.ID_FAILED,
})

_WWCC_CODES: Mapping[WwccStatus, OverallStatus] = MappingProxyType({
    WwccStatus.NOT_STARTED: OverallStatus.NOT_STARTED,
    WwccStatus.PENDING: OverallStatus.PENDING_WWCC_AUTO,
    WwccStatus.PROCESSING: OverallStatus.WWCC_PROCESSING,
    # Document checked but not yet confirmed by the OCG
    WwccStatus.DOC_VERIFIED: OverallStatus.PENDING_WWCC_AUTO,
    # Confirmed by the OCG but the cross-check has not passed yet
    WwccStatus.CLEARED: OverallStatus.PENDING_WWCC_AUTO,
    WwccStatus.REVIEW: OverallStatus.PENDING_WWCC_REVIEW,
    WwccStatus.REJECTED: OverallStatus.WWCC_REJECTED,
    WwccStatus.FAILED: OverallStatus.WWCC_DOCUMENT_FAILED,
    WwccStatus.EXPIRED: OverallStatus.WWCC_EXPIRED,
    WwccStatus.OCG_NOT_FOUND: OverallStatus.WWCC_OCG_NOT_FOUND,
    WwccStatus.CLOSED: OverallStatus.WWCC_CLOSED,
    WwccStatus.APPLICATION_PENDING: OverallStatus.WWCC_APPLICATION_PENDING,
    WwccStatus.BARRED: OverallStatus.WWCC_BARRED,
})

STATUS_LABELS: Mapping[OverallStatus, str] = MappingProxyType({
    OverallStatus.NOT_STARTED: "Not Started",
    OverallStatus.PENDING_ID_AUTO: "Pending ID (Auto)",
    OverallStatus.PENDING_ID_REVIEW: "Pending ID (Review)",
    OverallStatus.ID_REJECTED: "ID Rejected",
    OverallStatus.ID_FAILED: "ID Check Failed",
    OverallStatus.PENDING_WWCC_AUTO: "Pending WWCC (Auto)",
    OverallStatus.PENDING_WWCC_REVIEW: "Pending WWCC (Review)",
    OverallStatus.WWCC_REJECTED: "WWCC Rejected",
    OverallStatus.WWCC_EXPIRED: "WWCC Expired",
    OverallStatus.WWCC_DOCUMENT_FAILED: "WWCC Document Failed",
    OverallStatus.WWCC_PROCESSING: "WWCC Processing",
    OverallStatus.WWCC_OCG_NOT_FOUND: "WWCC Not Found (OCG)",
    OverallStatus.WWCC_CLOSED: "WWCC Closed",
    OverallStatus.WWCC_APPLICATION_PENDING: "WWCC Application Pending",
    OverallStatus.WWCC_BARRED: "WWCC Barred",
    OverallStatus.PROVISIONALLY_VERIFIED: "Provisionally Verified",
    OverallStatus.FULLY_VERIFIED: "Fully Verified",
})


def _assert_exhaustive() -> None:
    for table, enum_cls in (
        (_IDENTITY_CODES, IdentityStatus),
        (_WWCC_CODES, WwccStatus),
        (STATUS_LABELS, OverallStatus),
    ):
        missing = set(enum_cls) - set(table)
        if missing:
            raise RuntimeError(
                f"Status table for {enum_cls.__name__} is missing {sorted(m.name for m in missing)}"
            )


_assert_exhaustive()


def derive_overall_status(
    identity: IdentityStatus,
    wwcc: WwccStatus,
    cross_check: CrossCheckStatus,
) -> OverallStatus:
    """Derive the single authoritative verification code.

    Args:
        identity: Identity section status
        wwcc: WWCC section status
        cross_check: Cross-check section status

    Returns:
        The legacy overall status code
    """
    identity = IdentityStatus(identity)
    wwcc = WwccStatus(wwcc)
    cross_check = CrossCheckStatus(cross_check)

    if wwcc is WwccStatus.CLEARED and cross_check is CrossCheckStatus.PASSED:
        return OverallStatus.FULLY_VERIFIED

    match cross_check:
        case CrossCheckStatus.PASSED | CrossCheckStatus.REVIEW:
            return OverallStatus.PROVISIONALLY_VERIFIED
        case (
            CrossCheckStatus.NOT_STARTED
            | CrossCheckStatus.PENDING
            | CrossCheckStatus.PROCESSING
        ):
            pass

    if wwcc is not WwccStatus.NOT_STARTED:
        return _WWCC_CODES[wwcc]

    return _IDENTITY_CODES[identity]


def status_label(code: OverallStatus | int) -> str:
    """Render a code as "Label (code)".

    Raises:
        ValueError: If code is not a known status code
    """
    status = OverallStatus(code)
    return f"{STATUS_LABELS[status]} ({status.value})"


def derive_verification_level(
    identity: IdentityStatus,
    wwcc: WwccStatus,
    cross_check: CrossCheckStatus,
) -> VerificationLevel:
    """Candidate profile level implied by the section statuses."""
    identity = IdentityStatus(identity)
    wwcc = WwccStatus(wwcc)
    cross_check = CrossCheckStatus(cross_check)

    if cross_check is CrossCheckStatus.PASSED:
        if wwcc is WwccStatus.CLEARED:
            return VerificationLevel.FULLY_VERIFIED
        return VerificationLevel.PROVISIONALLY_VERIFIED
    if identity is IdentityStatus.VERIFIED:
        return VerificationLevel.ID_VERIFIED
    if identity is IdentityStatus.NOT_STARTED:
        return VerificationLevel.SIGNED_UP
    return VerificationLevel.REGISTERED
