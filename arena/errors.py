# SPDX-License-Identifier: GPL-2.0-or-later
"""Errors raised by the matchmaker.

Task-level errors (everything but :class:`DataSourceError`) end the game they
happen in and nothing else. :class:`DataSourceError` aborts the whole cycle.
"""


class ArenaError(Exception):
    """Base class for all exceptions here."""

    pass


class DataSourceError(ArenaError):
    """Raised when agents or events cannot be read from the store."""

    pass


class PersistenceError(ArenaError):
    """Raised when a result or an event update cannot be written."""

    pass


class TransportError(ArenaError):
    """Raised when a request to a sandboxed agent fails."""

    def __init__(self, url, message):
        self.url = url
        self.message = message
        super().__init__(url, message)

    def __str__(self):
        return '{}: {}'.format(self.url, self.message)


class UnknownAgentError(ArenaError):
    """Raised when an event references an agent missing from the registry."""

    pass


class SandboxError(ArenaError):
    """Raised when the container runtime fails to handle a sandbox."""

    pass


class SandboxUnreadyError(SandboxError):
    """Raised when a sandbox did not answer within its readiness budget."""

    def __init__(self, agent_name, attempts):
        self.agent_name = agent_name
        self.attempts = attempts
        super().__init__(agent_name, attempts)

    def __str__(self):
        return "agent '{}' did not answer after {} attempt(s)".format(
            self.agent_name, self.attempts
        )
