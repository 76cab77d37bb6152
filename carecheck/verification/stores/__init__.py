"""Verification store implementations."""

from carecheck.verification.stores.inmemory import InMemoryVerificationStore

__all__ = ["InMemoryVerificationStore"]
