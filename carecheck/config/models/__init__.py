"""Configuration section models."""

from carecheck.config.models.api import APIConfig
from carecheck.config.models.jobs import HatchetConfig, JobsConfig
from carecheck.config.models.notifications import NotificationsConfig
from carecheck.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from carecheck.config.models.pipeline import (
    ExtractionStepConfig,
    OpenRouterProviderConfig,
    PipelineConfig,
)
from carecheck.config.models.storage import StorageConfig

__all__ = [
    "APIConfig",
    "ExtractionStepConfig",
    "HatchetConfig",
    "JobsConfig",
    "LoggingConfig",
    "MetricsConfig",
    "NotificationsConfig",
    "ObservabilityConfig",
    "OpenRouterProviderConfig",
    "PipelineConfig",
    "StorageConfig",
]
