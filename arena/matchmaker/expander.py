# SPDX-License-Identifier: GPL-2.0-or-later
import logging
from typing import Dict, Iterable, List, Mapping, Tuple

from arena.models import Agent, GameTask, MatchEvent


async def load_pending(db) -> Tuple[Dict[str, Agent], List[MatchEvent]]:
    """Loads the agent registry and the events not played yet.

    Raises DataSourceError when the store cannot be read. Malformed documents
    are logged and skipped: an event naming a skipped agent then fails on its
    own as an unknown agent.
    """
    agents = {}
    for document in await db.find_agents():
        try:
            agent = Agent.from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logging.warning('skipping malformed agent %r: %r', document, e)
            continue
        agents[agent.name] = agent

    events = []
    for document in await db.find_pending_events():
        try:
            events.append(MatchEvent.from_document(document))
        except (KeyError, TypeError, ValueError) as e:
            logging.warning('skipping malformed event %r: %r', document, e)
    logging.info(
        'loaded %d agent(s) and %d pending event(s)', len(agents), len(events)
    )
    return agents, events


def expand(
    events: Iterable[MatchEvent],
    agents: Mapping[str, Agent],
    repeats: int,
) -> List[GameTask]:
    """Returns `repeats` games for each event, in event order."""
    tasks = []
    for event in events:
        player1 = agents.get(event.player1)
        player2 = agents.get(event.player2)
        for index in range(repeats):
            tasks.append(GameTask(event, index, player1, player2))
    return tasks
