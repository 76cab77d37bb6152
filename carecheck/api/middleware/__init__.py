"""API middleware package.

Exports authentication dependencies for request processing.
"""

from carecheck.api.middleware.auth import (
    ActorDep,
    AdminDep,
    CandidateIdDep,
    get_actor,
    get_candidate_id,
    require_admin,
    security_scheme,
    verify_ocg_webhook,
)

__all__ = [
    "ActorDep",
    "AdminDep",
    "CandidateIdDep",
    "get_actor",
    "get_candidate_id",
    "require_admin",
    "security_scheme",
    "verify_ocg_webhook",
]
