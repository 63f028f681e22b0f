import asyncio
from collections.abc import Callable

import structlog

from cryptotrend.alerts.service import AlertService
from cryptotrend.exceptions import AppError

logger = structlog.get_logger()


class AlertMonitor:
    """Periodically evaluates every user's alerts until stopped."""

    def __init__(self, service_factory: Callable[[], AlertService], interval_seconds: float) -> None:
        self._service_factory = service_factory
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("alert_monitor_already_running")
            return
        self._task = asyncio.create_task(self._run(), name="alert-monitor")
        logger.info("alert_monitor_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("alert_monitor_stopped")

    async def run_once(self) -> None:
        try:
            await self._service_factory().check_alerts()
        except AppError as exc:
            logger.warning("alert_check_failed", error=exc.message, code=exc.code)
        except Exception:
            logger.exception("alert_check_error")

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval)
