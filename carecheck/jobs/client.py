"""Lazy access to the Hatchet SDK.

The API keeps serving when Hatchet is switched off or cannot be reached;
only the scheduled failure-notification sweep stops running.
"""

from typing import Any

from hatchet_sdk import ClientConfig, Hatchet

from carecheck.config.models.jobs import HatchetConfig
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)


class HatchetClient:
    """Builds the SDK client on first use and remembers whether that worked."""

    def __init__(self, config: HatchetConfig) -> None:
        self._config = config
        self._client: Hatchet | None = None
        self._available: bool | None = None

    @property
    def config(self) -> HatchetConfig:
        return self._config

    @property
    def is_available(self) -> bool:
        return bool(self._available)

    def _connect(self) -> Hatchet:
        secret = self._config.api_key
        return Hatchet(
            config=ClientConfig(
                token=secret.get_secret_value() if secret is not None else None,
                server_url=self._config.server_url,
            )
        )

    def get_client(self) -> Any | None:
        """The SDK instance, or None when jobs are disabled or the SDK refused the config."""
        if self._client is None and self._config.enabled:
            try:
                self._client = self._connect()
            except Exception as exc:
                logger.error(
                    "hatchet_unavailable",
                    server_url=self._config.server_url,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            else:
                logger.info("hatchet_connected", server_url=self._config.server_url)
        elif not self._config.enabled:
            logger.debug("hatchet_disabled")
        return self._client

    async def health_check(self) -> bool:
        self._available = self.get_client() is not None
        return self._available
