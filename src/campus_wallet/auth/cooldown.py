"""
campus_wallet.auth.cooldown

One-second-tick countdown gating the "resend code" action.

Responsibilities:
- Count down from the configured window once per second, never below zero.
- Run the ticking on the event loop and stop it cleanly on cancel/reset.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from campus_wallet.observability.logging import get_logger

log = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ResendCooldown:
    """
    `tick()` is the only thing that decrements; the background task just calls it once
    per `sleep(1)`. Tests drive `tick()` directly as a fake clock.
    """

    def __init__(self, seconds: int = 60, *, sleep: Sleep = asyncio.sleep) -> None:
        if seconds < 1:
            raise ValueError("cooldown window must be at least one second")
        self.seconds = seconds
        self._sleep = sleep
        self._remaining = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def available(self) -> bool:
        return self._remaining == 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        (Re)start the window. Schedules ticking only when an event loop is running.
        """

        self._stop_task()
        self._remaining = self.seconds
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._task = loop.create_task(self._run())

    def tick(self) -> int:
        if self._remaining > 0:
            self._remaining -= 1
        return self._remaining

    def cancel(self) -> None:
        self._stop_task()
        self._remaining = 0

    async def _run(self) -> None:
        while self._remaining > 0:
            await self._sleep(1)
            self.tick()
        log.debug("cooldown.elapsed")

    def _stop_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
