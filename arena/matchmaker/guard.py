# SPDX-License-Identifier: GPL-2.0-or-later
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from .monitoring import (
    matchmaker_cycles_total,
    matchmaker_cycles_skipped_total,
    matchmaker_cycle_failures_total,
    matchmaker_cycle_latency_seconds,
)


class SchedulingGuard:
    """Makes sure at most one scheduling cycle runs at a time.

    `cycle` is the coroutine function running one cycle. Triggers arriving
    while a cycle runs are dropped, not queued.
    """

    def __init__(self, cycle: Callable[[], Awaitable[None]]):
        self.cycle = cycle
        self._lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._periodic: Optional[asyncio.Task] = None
        self._triggers: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def trigger(self) -> bool:
        """Runs one cycle unless one is already running.

        Returns whether a cycle was run. Errors raised by the cycle are logged
        and never reach the caller.
        """
        if self._lock.locked():
            logging.debug('a cycle is already running, skipping trigger')
            matchmaker_cycles_skipped_total.inc()
            return False

        async with self._lock:
            self._idle.clear()
            matchmaker_cycles_total.inc()
            try:
                with matchmaker_cycle_latency_seconds.time():
                    await self.cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                matchmaker_cycle_failures_total.inc()
                logging.exception('scheduling cycle triggered an exception')
            finally:
                self._idle.set()
        return True

    def trigger_soon(self) -> asyncio.Task:
        """Triggers a cycle in the background."""
        task = asyncio.create_task(self.trigger())
        self._triggers.add(task)
        task.add_done_callback(self._triggers.discard)
        return task

    def start_periodic(self, interval: float) -> bool:
        """Triggers a cycle now, then every `interval` seconds.

        Does nothing and returns False if already started.
        """
        if self._periodic is not None:
            return False
        logging.info('triggering a cycle every %ss', interval)
        self._periodic = asyncio.create_task(self._periodic_loop(interval))
        return True

    async def _periodic_loop(self, interval: float) -> None:
        while True:
            self.trigger_soon()
            await asyncio.sleep(interval)

    async def stop(self) -> None:
        """Stops periodic triggering and waits for the current cycle."""
        if self._periodic is not None:
            self._periodic.cancel()
            try:
                await self._periodic
            except asyncio.CancelledError:
                pass
            self._periodic = None
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Waits until no cycle is running."""
        if self._triggers:
            await asyncio.wait(set(self._triggers))
        await self._idle.wait()
