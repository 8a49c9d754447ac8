from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress

SleepFn = Callable[[float], Awaitable[None]]
TickFn = Callable[[int], None]
ExpireFn = Callable[[], None]


class CountdownTimer:
    """Cooperative once-per-interval countdown bound to the running event loop.

    Every tick runs to completion on the loop, so a handler observing
    ``remaining_seconds`` never sees a half-applied decrement. ``stop`` may be
    called from any handler, including ``on_expired`` itself; ticks are never
    delivered after it returns.
    """

    def __init__(
        self,
        total_seconds: int,
        *,
        on_tick: TickFn,
        on_expired: ExpireFn,
        interval_seconds: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if total_seconds <= 0:
            raise ValueError("total_seconds must be positive")
        self._total_seconds = total_seconds
        self._remaining_seconds = total_seconds
        self._on_tick = on_tick
        self._on_expired = on_expired
        self._interval_seconds = interval_seconds
        self._sleep = sleep
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def total_seconds(self) -> int:
        return self._total_seconds

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def elapsed_seconds(self) -> int:
        return self._total_seconds - self._remaining_seconds

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running or self._remaining_seconds <= 0:
            return
        self._running = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        self._running = False
        task = self._task
        if task is None or task.done():
            return
        if task is not asyncio.current_task():
            task.cancel()

    def tick(self) -> None:
        if not self._running or self._remaining_seconds <= 0:
            return
        self._remaining_seconds -= 1
        self._on_tick(self._remaining_seconds)
        if self._remaining_seconds == 0:
            self.stop()
            self._on_expired()

    async def join(self) -> None:
        task = self._task
        if task is None:
            return
        with suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while self._running and self._remaining_seconds > 0:
            await self._sleep(self._interval_seconds)
            self.tick()
