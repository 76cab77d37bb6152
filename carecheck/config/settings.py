"""Root settings model.

Values resolve, highest first, from constructor arguments, CARECHECK_*
environment variables (``__`` separates nested keys), the merged TOML
layer and finally the model defaults.
"""

from typing import Any, ClassVar, Literal

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from carecheck.config.models.api import APIConfig
from carecheck.config.models.jobs import JobsConfig
from carecheck.config.models.notifications import NotificationsConfig
from carecheck.config.models.observability import ObservabilityConfig
from carecheck.config.models.pipeline import PipelineConfig
from carecheck.config.models.storage import StorageConfig

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TomlLayerSource(PydanticBaseSettingsSource):
    """Feeds the already-merged TOML tables into pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], layer: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._layer = layer

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        value = self._layer.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        fields = self.settings_cls.model_fields
        return {name: value for name, value in self._layer.items() if name in fields}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CARECHECK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    toml_layer: ClassVar[dict[str, Any]] = {}

    app_name: str = Field(default="carecheck", description="Name bound to log events")
    debug: bool = False
    log_level: LogLevel = "INFO"

    api: APIConfig = Field(default_factory=APIConfig)
    pipeline: PipelineConfig = Field(
        default_factory=PipelineConfig,
        description="Phase thresholds and extraction models",
    )
    notifications: NotificationsConfig = Field(
        default_factory=NotificationsConfig,
        description="Failure emails to candidates",
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Where uploaded documents are read from",
    )
    jobs: JobsConfig = Field(default_factory=JobsConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def load(cls, toml_layer: dict[str, Any]) -> "Settings":
        """Build settings on top of a merged TOML configuration."""
        cls.toml_layer = toml_layer
        return cls()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, TomlLayerSource(settings_cls, cls.toml_layer)
