# SPDX-License-Identifier: GPL-2.0-or-later
import asyncio
from urllib.parse import urljoin

import aiohttp

from arena.errors import TransportError


class AgentProxy:
    """Talks to the agent running in a sandbox over its JSON HTTP API.

    The agent answers two calls: ``reset`` prepares it for a new game (and
    doubles as the readiness probe), ``fire`` plays one action. Requests are
    never retried here.
    """

    def __init__(self, base_url, http_client):
        self._base_url = base_url
        self._http_client = http_client

    @classmethod
    def for_sandbox(kls, sandbox, http_client) -> 'AgentProxy':
        return kls(sandbox.url, http_client)

    async def _request(self, method, endpoint, payload=None, decode=True):
        url = urljoin(self._base_url, endpoint)
        kwargs = {} if payload is None else {'json': payload}
        try:
            async with self._http_client.request(method, url, **kwargs) as resp:
                resp.raise_for_status()
                if not decode:
                    await resp.read()
                    return None
                return await resp.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            raise TransportError(url, 'HTTP {} {}'.format(e.status, e.message))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(url, str(e) or type(e).__name__)
        except ValueError as e:
            raise TransportError(url, 'invalid JSON response: {}'.format(e))

    async def probe(self):
        """Checks the agent answers; raises TransportError otherwise."""
        await self._request('GET', 'reset', decode=False)

    async def reset(self, payload=None):
        await self._request(
            'POST', 'reset', {} if payload is None else payload, decode=False
        )

    async def fire(self, payload):
        return await self._request('POST', 'fire', payload)
