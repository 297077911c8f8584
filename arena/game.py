# SPDX-License-Identifier: GPL-2.0-or-later
"""Game sessions drive one match between two sandboxed agents.

The rules live outside the matchmaker: a game is any class taking the two
agent proxies and exposing a ``play()`` coroutine that returns a mapping
describing the outcome. The class used is named in the configuration as
``package.module:ClassName``.
"""

import importlib
from typing import Any, Mapping


class GameSession:
    def __init__(self, player1, player2):
        self.player1 = player1
        self.player2 = player2

    async def play(self) -> Mapping[str, Any]:
        raise NotImplementedError


def load_game(path: str):
    """Imports and returns the game class named by `path`."""
    module_name, sep, class_name = path.partition(':')
    if not sep or not module_name or not class_name:
        raise ValueError(
            "game must be given as 'package.module:ClassName', got {!r}"
            .format(path)
        )
    module = importlib.import_module(module_name)
    try:
        return getattr(module, class_name)
    except AttributeError:
        raise ValueError(
            '{} has no game class {}'.format(module_name, class_name)
        ) from None
