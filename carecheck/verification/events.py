"""Phase events and their router.

Phases don't call each other. A phase emits a PhaseEvent when it reaches an
outcome other phases may depend on, and listeners registered on the
EventRouter (the PhaseScheduler, audit sinks, metrics) react to it.

Event patterns support wildcards:
- "*" matches all events
- "wwcc.*" matches all WWCC events
- "cross_check.requested" matches exact event type
"""

import asyncio
from collections import defaultdict
from datetime import datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from carecheck.observability.logging import get_logger
from carecheck.verification.models import utc_now

logger = get_logger(__name__)


class PhaseEventType(str, Enum):
    """Event types in category.name format."""

    IDENTITY_COMPLETED = "identity.completed"
    IDENTITY_VERIFIED = "identity.verified"
    WWCC_COMPLETED = "wwcc.completed"
    WWCC_DOC_VERIFIED = "wwcc.doc_verified"
    CROSS_CHECK_REQUESTED = "cross_check.requested"
    CROSS_CHECK_COMPLETED = "cross_check.completed"
    OCG_RESULT_APPLIED = "ocg.result_applied"
    STALENESS_ESCALATED = "staleness.escalated"


class PhaseEvent(BaseModel):
    """Something happened to a verification record."""

    model_config = ConfigDict(frozen=True)

    type: PhaseEventType = Field(..., description="Event type")
    verification_id: UUID = Field(..., description="Record the event concerns")
    candidate_id: UUID | None = Field(default=None)
    timestamp: datetime = Field(default_factory=utc_now)
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def category(self) -> str:
        """Example: 'wwcc.doc_verified' -> 'wwcc'"""
        return self.type.value.split(".")[0]


class EventListener(Protocol):
    """Async callable that receives a PhaseEvent."""

    async def __call__(self, event: PhaseEvent) -> None: ...


class EventRouter:
    """Routes PhaseEvents to every listener whose pattern matches.

    Listener failures are logged and never propagate to the emitter.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)

    def register_listener(self, pattern: str, listener: EventListener) -> None:
        """Register a listener for events matching a pattern."""
        self._listeners[pattern].append(listener)
        logger.debug(
            "event_listener_registered",
            pattern=pattern,
            total_listeners=len(self._listeners[pattern]),
        )

    def unregister_listener(self, pattern: str, listener: EventListener) -> None:
        """Unregister a listener from a pattern."""
        try:
            self._listeners[pattern].remove(listener)
        except ValueError:
            logger.warning("event_listener_not_found", pattern=pattern)

    async def route(self, event: PhaseEvent) -> None:
        """Dispatch event to all matching listeners in parallel."""
        listeners = [
            listener
            for pattern, registered in list(self._listeners.items())
            if self._matches_pattern(event.type.value, pattern)
            for listener in registered
        ]
        if not listeners:
            logger.debug("no_listeners_for_event", event_type=event.type.value)
            return

        await asyncio.gather(
            *(self._dispatch_to_listener(listener, event) for listener in listeners)
        )

    def _matches_pattern(self, event_type: str, pattern: str) -> bool:
        if pattern == "*" or event_type == pattern:
            return True
        if pattern.endswith(".*"):
            return event_type.startswith(f"{pattern[:-2]}.")
        return False

    async def _dispatch_to_listener(self, listener: EventListener, event: PhaseEvent) -> None:
        try:
            await listener(event)
        except Exception as e:
            logger.error(
                "event_listener_failed",
                event_type=event.type.value,
                verification_id=str(event.verification_id),
                error=str(e),
                exc_info=True,
            )
