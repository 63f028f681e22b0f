"""Tests for the background alert monitor."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cryptotrend.alerts.monitor import AlertMonitor
from cryptotrend.exceptions import ExternalServiceError


def make_service(side_effect=None) -> MagicMock:
    service = MagicMock()
    service.check_alerts = AsyncMock(side_effect=side_effect)
    return service


class TestAlertMonitor:
    @pytest.mark.asyncio
    async def test_start_runs_checks_until_stopped(self):
        service = make_service()
        monitor = AlertMonitor(lambda: service, interval_seconds=0.01)

        monitor.start()
        await asyncio.sleep(0.05)
        assert monitor.running
        await monitor.stop()

        assert not monitor.running
        assert service.check_alerts.await_count >= 2

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        service = make_service()
        monitor = AlertMonitor(lambda: service, interval_seconds=10)

        monitor.start()
        first_task = monitor._task
        monitor.start()

        assert monitor._task is first_task
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        monitor = AlertMonitor(make_service, interval_seconds=1)
        await monitor.stop()
        assert not monitor.running

    @pytest.mark.asyncio
    async def test_failed_check_does_not_kill_loop(self):
        service = make_service(
            side_effect=[ExternalServiceError("coingecko", "down"), RuntimeError("boom"), None]
        )
        monitor = AlertMonitor(lambda: service, interval_seconds=1)

        await monitor.run_once()
        await monitor.run_once()
        await monitor.run_once()

        assert service.check_alerts.await_count == 3
