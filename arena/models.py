# SPDX-License-Identifier: GPL-2.0-or-later
import dataclasses
from typing import Any, Dict, Mapping, Optional


@dataclasses.dataclass(frozen=True)
class Agent:
    """A competing entity, as found in the agent registry."""

    name: str
    image: Optional[str] = None
    port: Optional[int] = None
    document: Mapping[str, Any] = dataclasses.field(
        default_factory=dict, compare=False, repr=False
    )

    @classmethod
    def from_document(kls, document: Mapping[str, Any]) -> 'Agent':
        """Returns an Agent from an ``agents`` collection document."""
        port = document.get('port')
        return kls(
            name=document['name'],
            image=document.get('image'),
            port=int(port) if port is not None else None,
            document=document,
        )


@dataclasses.dataclass(frozen=True)
class MatchEvent:
    """A pending request for games between two agents."""

    id: Any
    player1: str
    player2: str
    played: bool = False

    @classmethod
    def from_document(kls, document: Mapping[str, Any]) -> 'MatchEvent':
        return kls(
            id=document['_id'],
            player1=document['player1'],
            player2=document['player2'],
            played=bool(document.get('played', False)),
        )


@dataclasses.dataclass(frozen=True)
class GameTask:
    """One game to play for an event.

    Players are None when the event names an agent the registry does not
    know; the game then fails on its own without affecting the others.
    """

    event: MatchEvent
    index: int
    player1: Optional[Agent]
    player2: Optional[Agent]

    def __str__(self):
        return 'game {} between {} and {}'.format(
            self.index, self.event.player1, self.event.player2
        )


@dataclasses.dataclass
class Sandbox:
    """A started container running one agent."""

    container_id: str
    host: str
    port: int
    agent: Agent

    @property
    def url(self) -> str:
        return 'http://{}:{}/'.format(self.host, self.port)

    def __str__(self):
        return '{} ({})'.format(self.container_id[:12], self.agent.name)


@dataclasses.dataclass(frozen=True)
class GameResult:
    """Outcome of one completed game."""

    payload: Mapping[str, Any]
    index: int
    player1: str
    player2: str
    event_id: Any

    def to_document(self) -> Dict[str, Any]:
        return {
            **self.payload,
            'index': self.index,
            'player1': self.player1,
            'player2': self.player2,
            'event': self.event_id,
        }
