# SPDX-License-Identifier: GPL-2.0-or-later
import asyncio
import functools
import logging
import time

import aiohttp

from arena.config import MatchMakerSettings
from arena.errors import ArenaError, UnknownAgentError
from arena.game import load_game
from arena.models import GameResult, GameTask
from arena.sandbox.provisioner import Provisioner
from arena.sandbox.proxy import AgentProxy
from arena.sandbox.runtime import DockerRuntime
from arena.store import MongoStore

from .executor import run_bounded
from .expander import expand, load_pending
from .guard import SchedulingGuard
from .monitoring import (
    matchmaker_pending_events,
    matchmaker_games_played_total,
    matchmaker_game_failures_total,
    matchmaker_game_latency_seconds,
)
from .recorder import ResultRecorder


class MatchMaker:
    """The MatchMaker service."""

    def __init__(self, config, *, store=None, runtime=None, game=None,
                 sleep=asyncio.sleep):
        self.config = config
        self.settings = MatchMakerSettings.from_config(config)

        self.store = store if store is not None else MongoStore(config)
        if runtime is None:
            runtime = DockerRuntime.from_config(config)
        self.provisioner = Provisioner.from_config(
            config, self.settings, runtime, sleep=sleep
        )
        self.game = game if game is not None else load_game(self.settings.game)
        self.recorder = ResultRecorder()
        self.guard = SchedulingGuard(self.run_cycle)

    async def trigger_cycle(self) -> bool:
        """Runs one cycle now, unless one is already running."""
        return await self.guard.trigger()

    def start_periodic(self) -> bool:
        return self.guard.start_periodic(self.settings.trigger_interval)

    async def stop(self) -> None:
        await self.guard.stop()

    def http_client(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout)
        return aiohttp.ClientSession(timeout=timeout)

    async def run_cycle(self) -> None:
        """Plays every game of every pending event."""
        async with self.store.connect() as db:
            agents, events = await load_pending(db)
            matchmaker_pending_events.set(len(events))

            tasks = expand(events, agents, self.settings.pvp_games_count)
            if not tasks:
                logging.info('no game to play')
                return

            logging.info('%d game(s) to play', len(tasks))
            start = time.monotonic()
            async with self.http_client() as http_client:
                await run_bounded(
                    [
                        functools.partial(self.play_game, db, http_client, t)
                        for t in tasks
                    ],
                    self.settings.parallel_games_count,
                )
            logging.info(
                'played %d game(s) in %.1fs', len(tasks),
                time.monotonic() - start,
            )

    async def play_game(self, db, http_client, task: GameTask) -> None:
        """Plays and records one game. Errors end this game only."""
        logging.info('playing %s', task)
        start = time.monotonic()
        try:
            await self.run_game(db, http_client, task)
        except asyncio.CancelledError:
            raise
        except ArenaError as e:
            matchmaker_game_failures_total.labels(
                error=type(e).__name__
            ).inc()
            logging.warning('%s failed: %s', task, e)
        except Exception:
            matchmaker_game_failures_total.labels(error='unexpected').inc()
            logging.exception('%s failed', task)
        else:
            matchmaker_games_played_total.inc()
        finally:
            elapsed = time.monotonic() - start
            matchmaker_game_latency_seconds.observe(elapsed)
            logging.info('%s took %.1fs', task, elapsed)

    async def run_game(self, db, http_client, task: GameTask) -> GameResult:
        for name, agent in ((task.event.player1, task.player1),
                            (task.event.player2, task.player2)):
            if agent is None:
                raise UnknownAgentError("unknown agent '{}'".format(name))

        async with self.provisioner.sandboxes(
            task.player1, task.player2, http_client=http_client
        ) as (sandbox1, sandbox2):
            game = self.game(
                AgentProxy.for_sandbox(sandbox1, http_client),
                AgentProxy.for_sandbox(sandbox2, http_client),
            )
            payload = await game.play()
            result = GameResult(
                payload=dict(payload or {}),
                index=task.index,
                player1=task.player1.name,
                player2=task.player2.name,
                event_id=task.event.id,
            )
            await self.recorder.record(db, result)
        return result
