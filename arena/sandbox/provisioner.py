# SPDX-License-Identifier: GPL-2.0-or-later
"""Sandbox lifecycle: create, start, wait for readiness, stop and remove.

Every agent of a game gets a fresh container. A container is considered ready
once its agent answers the ``reset`` probe; the probe is retried
``wakeup_retry_count`` times, ``wakeup_wait_time`` apart.
"""

import asyncio
import contextlib
import logging
from typing import List

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from arena.errors import SandboxError, SandboxUnreadyError, TransportError
from arena.models import Agent, Sandbox
from arena.sandbox.proxy import AgentProxy

from .monitoring import (
    sandbox_live,
    sandbox_provisioned_total,
    sandbox_unready_total,
    sandbox_release_failures_total,
    sandbox_provision_latency_seconds,
)


class Provisioner:
    def __init__(
        self,
        runtime,
        *,
        retry_count: int,
        wait_time: float,
        bind_address: str = '127.0.0.1',
        image_template: str = '{name}',
        agent_port: int = 8080,
        sleep=asyncio.sleep,
    ):
        self.runtime = runtime
        self.retry_count = retry_count
        self.wait_time = wait_time
        self.bind_address = bind_address
        self.image_template = image_template
        self.agent_port = agent_port
        self.sleep = sleep

    @classmethod
    def from_config(kls, config, settings, runtime, **kwargs) -> 'Provisioner':
        docker = config.get('docker') or {}
        return kls(
            runtime,
            retry_count=settings.wakeup_retry_count,
            wait_time=settings.wakeup_wait_time,
            bind_address=docker.get('bind_address', '127.0.0.1'),
            image_template=docker.get('image_template', '{name}'),
            agent_port=int(docker.get('agent_port', 8080)),
            **kwargs,
        )

    def image_for(self, agent: Agent) -> str:
        if agent.image:
            return agent.image
        return self.image_template.format(name=agent.name)

    async def port_for(self, agent: Agent, image: str) -> int:
        if agent.port is not None:
            return agent.port
        try:
            port = await self.runtime.exposed_port(image)
        except SandboxError as e:
            # Images only present in a registry are pulled by create.
            logging.info('cannot inspect image %s, using port %d: %s',
                         image, self.agent_port, e)
            return self.agent_port
        return port if port is not None else self.agent_port

    async def provision(self, agent: Agent, http_client) -> Sandbox:
        """Starts a sandbox for `agent` and returns it once it is ready.

        The container is removed again if anything fails before it answers.
        """
        image = self.image_for(agent)
        with sandbox_provision_latency_seconds.time():
            port = await self.port_for(agent, image)
            async with contextlib.AsyncExitStack() as cleanup:
                container_id = await self.runtime.create(
                    image, port, self.bind_address
                )
                sandbox_live.inc()
                sandbox = Sandbox(container_id, self.bind_address, port, agent)
                cleanup.push_async_callback(self.release, sandbox)

                await self.runtime.start(container_id)
                sandbox.host, sandbox.port = await self.runtime.inspect(
                    container_id
                )
                logging.debug('sandbox %s listening on %s', sandbox, sandbox.url)
                await self.wait_ready(sandbox, http_client)

                cleanup.pop_all()

        sandbox_provisioned_total.inc()
        logging.info('sandbox %s is ready', sandbox)
        return sandbox

    async def wait_ready(self, sandbox: Sandbox, http_client) -> None:
        """Probes the sandbox until it answers or the retries run out."""
        if self.retry_count < 1:
            sandbox_unready_total.inc()
            raise SandboxUnreadyError(sandbox.agent.name, 0)

        proxy = AgentProxy.for_sandbox(sandbox, http_client)
        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.retry_count),
            wait=wait_fixed(self.wait_time),
            retry=retry_if_exception_type(TransportError),
            sleep=self.sleep,
        )
        try:
            await retrying(proxy.probe)
        except TransportError as e:
            sandbox_unready_total.inc()
            raise SandboxUnreadyError(
                sandbox.agent.name, self.retry_count
            ) from e

    async def release(self, sandbox: Sandbox) -> None:
        """Stops and removes a sandbox. Failures are logged, never raised."""
        stopped = False
        try:
            try:
                await self.runtime.stop(sandbox.container_id)
                stopped = True
            except asyncio.CancelledError:
                raise
            except Exception:
                logging.exception('could not stop sandbox %s', sandbox)
            # A container that did not stop is removed by force.
            await self.runtime.remove(sandbox.container_id, force=not stopped)
        except asyncio.CancelledError:
            raise
        except Exception:
            sandbox_release_failures_total.inc()
            logging.exception('could not release sandbox %s', sandbox)
        else:
            if not stopped:
                sandbox_release_failures_total.inc()
            logging.debug('sandbox %s released', sandbox)
        finally:
            sandbox_live.dec()

    @contextlib.asynccontextmanager
    async def sandboxes(self, *agents: Agent, http_client):
        """Provisions a sandbox per agent and releases all of them on exit.

        If provisioning one of the agents fails, the sandboxes already
        provisioned are released before the error propagates.
        """
        async with contextlib.AsyncExitStack() as stack:
            provisioned: List[Sandbox] = []
            for agent in agents:
                sandbox = await self.provision(agent, http_client)
                stack.push_async_callback(self.release, sandbox)
                provisioned.append(sandbox)
            yield provisioned
