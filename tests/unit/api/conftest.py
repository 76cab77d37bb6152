"""Fixtures for API route tests.

Routes run against the in-memory stores and mock extractors from the root
conftest; tokens are signed with a per-test secret.
"""

from collections.abc import AsyncIterator, Callable
from uuid import UUID

import httpx
import pytest
from fastapi import FastAPI
from jose import jwt

from carecheck.api.app import create_app
from carecheck.api.dependencies import (
    get_event_router,
    get_ocg_ingestion_service,
    get_orchestrator,
    get_profile_store,
    get_staleness_monitor,
    get_verification_store,
    reset_dependencies,
)
from carecheck.candidates import InMemoryCandidateProfileStore
from carecheck.verification.events import EventRouter
from carecheck.verification.ocg.ingest import OcgIngestionService
from carecheck.verification.pipeline import PipelineOrchestrator
from carecheck.verification.staleness import StalenessMonitor
from carecheck.verification.stores import InMemoryVerificationStore

JWT_SECRET = "test-jwt-secret"
WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def auth_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARECHECK_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("CARECHECK_OCG_WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(subject: UUID | str, roles: list[str] | None = None) -> str:
        payload = {"sub": str(subject), "roles": roles or []}
        return jwt.encode(payload, JWT_SECRET, algorithm="HS256")

    return _make


@pytest.fixture
async def app(
    auth_env: None,
    store: InMemoryVerificationStore,
    profiles: InMemoryCandidateProfileStore,
    router: EventRouter,
    orchestrator: PipelineOrchestrator,
    clock,
) -> AsyncIterator[FastAPI]:
    """Create test FastAPI app."""
    await reset_dependencies()

    app = create_app()
    app.dependency_overrides[get_verification_store] = lambda: store
    app.dependency_overrides[get_profile_store] = lambda: profiles
    app.dependency_overrides[get_event_router] = lambda: router
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_staleness_monitor] = lambda: StalenessMonitor(
        store, event_router=router, clock=clock
    )
    app.dependency_overrides[get_ocg_ingestion_service] = lambda: OcgIngestionService(
        store, profiles, orchestrator, clock=clock
    )

    yield app

    await reset_dependencies()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Test client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
