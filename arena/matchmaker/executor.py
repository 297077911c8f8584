# SPDX-License-Identifier: GPL-2.0-or-later
import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from .monitoring import matchmaker_tasks_in_flight

Task = Callable[[], Awaitable[None]]


async def run_bounded(tasks: Sequence[Task], limit: int) -> int:
    """Runs `tasks` with at most `limit` of them in flight at once.

    `limit` workers pull tasks from a shared iterator, so tasks start in list
    order whenever a worker is free. A failing task is logged and does not
    stop the others. Returns the number of tasks that raised.
    """
    if limit < 1:
        raise ValueError('concurrency limit must be at least 1, got {}'
                         .format(limit))

    pending = iter(tasks)
    failures = 0

    async def worker():
        nonlocal failures
        for task in pending:
            matchmaker_tasks_in_flight.inc()
            try:
                await task()
            except asyncio.CancelledError:
                raise
            except Exception:
                failures += 1
                logging.exception('task %s failed', task)
            finally:
                matchmaker_tasks_in_flight.dec()

    workers = min(limit, len(tasks))
    if workers:
        await asyncio.gather(*(worker() for _ in range(workers)))
    return failures
