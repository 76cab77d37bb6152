"""Shared test fixtures for the carecheck test suite."""

import os
from collections.abc import Callable, Generator
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from carecheck.candidates import InMemoryCandidateProfileStore
from carecheck.extraction.mock import MockDocumentExtractor
from carecheck.verification.events import EventRouter
from carecheck.verification.pipeline import PipelineOrchestrator
from carecheck.verification.scheduler import PhaseScheduler
from carecheck.verification.stores import InMemoryVerificationStore
from tests.factories import T0, TODAY, passport_result, wwcc_result


class FakeClock:
    """Mutable clock for time-dependent tests."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def today() -> Callable[[], date]:
    return lambda: TODAY


@pytest.fixture
def store(clock: FakeClock) -> InMemoryVerificationStore:
    return InMemoryVerificationStore(clock=clock)


@pytest.fixture
def profiles() -> InMemoryCandidateProfileStore:
    return InMemoryCandidateProfileStore()


@pytest.fixture
def router() -> EventRouter:
    return EventRouter()


@pytest.fixture
def identity_extractor() -> MockDocumentExtractor:
    return MockDocumentExtractor(default_result=passport_result())


@pytest.fixture
def wwcc_extractor() -> MockDocumentExtractor:
    """Stands in for every WWCC method's extractor."""
    return MockDocumentExtractor(default_result=wwcc_result())


@pytest.fixture
def orchestrator(
    store: InMemoryVerificationStore,
    profiles: InMemoryCandidateProfileStore,
    router: EventRouter,
    identity_extractor: MockDocumentExtractor,
    wwcc_extractor: MockDocumentExtractor,
    today: Callable[[], date],
) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        store=store,
        profiles=profiles,
        identity_extractor=identity_extractor,
        grant_email_extractor=wwcc_extractor,
        screenshot_extractor=wwcc_extractor,
        manual_extractor=wwcc_extractor,
        event_router=router,
        today=today,
    )


@pytest.fixture
def scheduler(
    orchestrator: PipelineOrchestrator,
    store: InMemoryVerificationStore,
    router: EventRouter,
) -> Generator[PhaseScheduler, None, None]:
    """Inline scheduler: requested cross-checks finish before the request returns."""
    scheduler = PhaseScheduler(orchestrator, store, inline=True)
    scheduler.attach(router)
    yield scheduler
    scheduler.detach(router)


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Callable[[dict[str, str]], EnvOverrideContext]:
    """Temporarily set environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"CARECHECK_DEBUG": "true"}):
                ...
    """
    return EnvOverrideContext


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from carecheck.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
