"""Candidate profile access used by the verification pipeline.

Only the denormalized verification level is touched here; the rest of the
candidate profile lives in other services.
"""

from carecheck.candidates.store import CandidateProfileStore
from carecheck.candidates.stores.inmemory import InMemoryCandidateProfileStore

__all__ = ["CandidateProfileStore", "InMemoryCandidateProfileStore"]
