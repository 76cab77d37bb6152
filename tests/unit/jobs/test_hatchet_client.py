"""Tests for HatchetClient."""

from unittest.mock import patch

import pytest

from carecheck.config.models.jobs import HatchetConfig
from carecheck.jobs.client import HatchetClient


class TestHatchetClient:
    """Tests for HatchetClient."""

    def test_disabled_returns_none(self):
        client = HatchetClient(HatchetConfig(enabled=False))

        assert client.get_client() is None

    @pytest.mark.asyncio
    async def test_health_check_disabled(self):
        client = HatchetClient(HatchetConfig(enabled=False))

        assert await client.health_check() is False
        assert client.is_available is False

    def test_init_failure_returns_none(self):
        """An SDK error degrades to no client."""
        client = HatchetClient(HatchetConfig(enabled=True, api_key="token"))

        with patch("carecheck.jobs.client.Hatchet", side_effect=ValueError("bad token")):
            assert client.get_client() is None

    @pytest.mark.asyncio
    async def test_client_is_cached(self):
        client = HatchetClient(HatchetConfig(enabled=True, api_key="token"))

        with patch("carecheck.jobs.client.Hatchet") as hatchet_cls:
            first = client.get_client()
            second = client.get_client()
            available = await client.health_check()

        assert first is second
        assert available is True
        hatchet_cls.assert_called_once()
