"""Dependency injection for API routes.

Provides FastAPI dependencies for stores and services used by API endpoints.
Instances are created once from settings and reused; every getter can be
replaced through ``app.dependency_overrides`` for testing.
"""

from typing import Annotated

from fastapi import Depends

from carecheck.candidates import CandidateProfileStore, InMemoryCandidateProfileStore
from carecheck.config import get_settings
from carecheck.config.settings import Settings
from carecheck.extraction import (
    DocumentStorage,
    GrantEmailExtractor,
    HttpDocumentStorage,
    ManualEntryExtractor,
    PassportExtractor,
    WwccScreenshotExtractor,
)
from carecheck.notifications import (
    EmailLogStore,
    FailureNotifier,
    InMemoryEmailLogStore,
    LoggingEmailSender,
)
from carecheck.observability.logging import get_logger
from carecheck.providers.llm.executor import create_executor_from_step_config
from carecheck.verification.admin import AdminOverrideHandler
from carecheck.verification.events import EventRouter
from carecheck.verification.ocg.ingest import OcgIngestionService
from carecheck.verification.pipeline import PipelineOrchestrator
from carecheck.verification.scheduler import PhaseScheduler
from carecheck.verification.staleness import StalenessMonitor
from carecheck.verification.store import VerificationStore
from carecheck.verification.stores import InMemoryVerificationStore
from carecheck.verification.submissions import SubmissionService

logger = get_logger(__name__)

# Instances - created once and reused
_verification_store: VerificationStore | None = None
_profile_store: CandidateProfileStore | None = None
_email_log_store: EmailLogStore | None = None
_event_router: EventRouter | None = None
_document_storage: DocumentStorage | None = None
_orchestrator: PipelineOrchestrator | None = None
_scheduler: PhaseScheduler | None = None


def get_verification_store() -> VerificationStore:
    global _verification_store
    if _verification_store is None:
        _verification_store = InMemoryVerificationStore()
        logger.info("verification_store_initialized", store_type="inmemory")
    return _verification_store


def get_profile_store() -> CandidateProfileStore:
    global _profile_store
    if _profile_store is None:
        _profile_store = InMemoryCandidateProfileStore()
        logger.info("profile_store_initialized", store_type="inmemory")
    return _profile_store


def get_email_log_store() -> EmailLogStore:
    global _email_log_store
    if _email_log_store is None:
        _email_log_store = InMemoryEmailLogStore()
        logger.info("email_log_store_initialized", store_type="inmemory")
    return _email_log_store


def get_event_router() -> EventRouter:
    global _event_router
    if _event_router is None:
        _event_router = EventRouter()
    return _event_router


def get_document_storage(
    settings: Annotated[Settings, Depends(get_settings)],
) -> DocumentStorage:
    """Get the DocumentStorage uploaded documents are fetched from."""
    global _document_storage
    if _document_storage is None:
        _document_storage = HttpDocumentStorage(
            base_url=settings.storage.documents_base_url,
            timeout=settings.storage.request_timeout,
        )
        logger.info(
            "document_storage_initialized",
            base_url=settings.storage.documents_base_url,
        )
    return _document_storage


def get_orchestrator(
    store: Annotated[VerificationStore, Depends(get_verification_store)],
    profiles: Annotated[CandidateProfileStore, Depends(get_profile_store)],
    router: Annotated[EventRouter, Depends(get_event_router)],
    storage: Annotated[DocumentStorage, Depends(get_document_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PipelineOrchestrator:
    """Get the PipelineOrchestrator instance.

    Builds the extractors from pipeline config and attaches a PhaseScheduler
    so requested cross-checks run in the background.
    """
    global _orchestrator, _scheduler
    if _orchestrator is None:
        pipeline = settings.pipeline
        identity_executor = create_executor_from_step_config(
            pipeline.identity_extraction, "identity_extraction"
        )
        wwcc_executor = create_executor_from_step_config(
            pipeline.wwcc_extraction, "wwcc_extraction"
        )
        screenshot_extractor = WwccScreenshotExtractor(wwcc_executor, storage)

        _orchestrator = PipelineOrchestrator(
            store=store,
            profiles=profiles,
            identity_extractor=PassportExtractor(identity_executor, storage),
            grant_email_extractor=GrantEmailExtractor(
                storage,
                fallback=screenshot_extractor,
                min_markers=pipeline.min_grant_email_markers,
                min_validity_days=pipeline.wwcc_min_validity_days,
            ),
            screenshot_extractor=screenshot_extractor,
            manual_extractor=ManualEntryExtractor(),
            event_router=router,
            config=pipeline,
        )
        _scheduler = PhaseScheduler(_orchestrator, store)
        _scheduler.attach(router)
        logger.info(
            "orchestrator_initialized",
            identity_model=pipeline.identity_extraction.model,
            wwcc_model=pipeline.wwcc_extraction.model,
        )
    return _orchestrator


def get_submission_service(
    store: Annotated[VerificationStore, Depends(get_verification_store)],
    profiles: Annotated[CandidateProfileStore, Depends(get_profile_store)],
) -> SubmissionService:
    return SubmissionService(store, profiles)


def get_staleness_monitor(
    store: Annotated[VerificationStore, Depends(get_verification_store)],
    router: Annotated[EventRouter, Depends(get_event_router)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StalenessMonitor:
    return StalenessMonitor(store, config=settings.pipeline, event_router=router)


def get_admin_handler(
    store: Annotated[VerificationStore, Depends(get_verification_store)],
    profiles: Annotated[CandidateProfileStore, Depends(get_profile_store)],
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_orchestrator)],
) -> AdminOverrideHandler:
    return AdminOverrideHandler(store, profiles, orchestrator)


def get_ocg_ingestion_service(
    store: Annotated[VerificationStore, Depends(get_verification_store)],
    profiles: Annotated[CandidateProfileStore, Depends(get_profile_store)],
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_orchestrator)],
) -> OcgIngestionService:
    return OcgIngestionService(store, profiles, orchestrator)


def get_failure_notifier(settings: Settings | None = None) -> FailureNotifier:
    """Build the FailureNotifier the scheduled sweep runs.

    Not a request dependency; used when the app starts the Hatchet worker.
    """
    settings = settings or get_settings()
    return FailureNotifier(
        store=get_verification_store(),
        profiles=get_profile_store(),
        email_logs=get_email_log_store(),
        sender=LoggingEmailSender(),
        config=settings.notifications,
    )


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
VerificationStoreDep = Annotated[VerificationStore, Depends(get_verification_store)]
OrchestratorDep = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]
SubmissionServiceDep = Annotated[SubmissionService, Depends(get_submission_service)]
StalenessMonitorDep = Annotated[StalenessMonitor, Depends(get_staleness_monitor)]
AdminHandlerDep = Annotated[AdminOverrideHandler, Depends(get_admin_handler)]
OcgIngestionServiceDep = Annotated[OcgIngestionService, Depends(get_ocg_ingestion_service)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing to ensure fresh instances. Waits for background
    follow-ups before dropping the scheduler.
    """
    global _verification_store, _profile_store, _email_log_store, _event_router
    global _document_storage, _orchestrator, _scheduler

    if _scheduler is not None:
        await _scheduler.drain()
        if _event_router is not None:
            _scheduler.detach(_event_router)

    _verification_store = None
    _profile_store = None
    _email_log_store = None
    _event_router = None
    _document_storage = None
    _orchestrator = None
    _scheduler = None
    get_settings.cache_clear()
