"""Email log store implementations."""

from carecheck.notifications.stores.inmemory import InMemoryEmailLogStore

__all__ = ["InMemoryEmailLogStore"]
