import asyncio
from typing import Awaitable, Callable, Optional

from app.core.constants import OTPDefaults
from app.logging.utils import get_app_logger
from app.repository.otp import OTPRepository

logger = get_app_logger(__name__)


class OTPSweeper:
    """Periodically drops OTP records whose expiry has already passed."""

    def __init__(
        self,
        repository: OTPRepository,
        interval_seconds: int = OTPDefaults.SWEEP_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.repository = repository
        self.interval_seconds = interval_seconds
        self.sleep = sleep
        self._task: Optional[asyncio.Task] = None

    def run_once(self) -> int:
        removed = self.repository.sweep_expired()
        if removed:
            logger.info(f"otp_sweep | removed={removed}")
        return removed

    async def run_forever(self):
        while True:
            await self.sleep(self.interval_seconds)
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"otp_sweep_failed | error={e}", exc_info=True)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
