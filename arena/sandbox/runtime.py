# SPDX-License-Identifier: GPL-2.0-or-later
"""Docker container runtime, driven through the ``docker`` command line."""

import asyncio
import json
import logging
from typing import List, Optional, Tuple

from arena.errors import SandboxError


class DockerRuntime:
    def __init__(self, host: Optional[str] = None, binary: str = 'docker'):
        self.host = host
        self.binary = binary

    @classmethod
    def from_config(kls, config) -> 'DockerRuntime':
        docker = config.get('docker') or {}
        return kls(host=docker.get('host'), binary=docker.get('binary', 'docker'))

    def command(self, *args) -> List[str]:
        cmd = [self.binary]
        if self.host:
            cmd += ['-H', self.host]
        cmd += [str(a) for a in args]
        return cmd

    async def run(self, *args) -> str:
        """Runs a docker subcommand and returns its standard output."""
        cmd = self.command(*args)
        logging.debug('running %s', ' '.join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            raise SandboxError('cannot run {}: {}'.format(self.binary, e)) from e
        if proc.returncode != 0:
            raise SandboxError('{} failed ({}): {}'.format(
                ' '.join(cmd[:3]),
                proc.returncode,
                stderr.decode(errors='replace').strip(),
            ))
        return stdout.decode(errors='replace').strip()

    async def create(self, image: str, port: int, bind_address: str) -> str:
        """Creates a container publishing `port` on a random host port."""
        container_id = await self.run(
            'create',
            '--publish', '{}::{}/tcp'.format(bind_address, port),
            image,
        )
        if not container_id:
            raise SandboxError('no container id returned for ' + image)
        return container_id.splitlines()[-1]

    async def start(self, container_id: str) -> None:
        await self.run('start', container_id)

    async def inspect(self, container_id: str) -> Tuple[str, int]:
        """Returns the first published (host, port) of a container."""
        out = await self.run(
            'inspect', '--format', '{{json .NetworkSettings.Ports}}',
            container_id,
        )
        try:
            ports = json.loads(out) or {}
        except ValueError as e:
            raise SandboxError(
                'cannot parse ports of {}: {}'.format(container_id, e)
            ) from e
        for bindings in ports.values():
            if bindings:
                binding = bindings[0]
                host = binding.get('HostIp') or '127.0.0.1'
                if host == '0.0.0.0':
                    host = '127.0.0.1'
                return host, int(binding['HostPort'])
        raise SandboxError('container {} publishes no port'.format(container_id))

    async def exposed_port(self, image: str) -> Optional[int]:
        """Returns the first TCP port exposed by an image, if any."""
        out = await self.run(
            'image', 'inspect', '--format', '{{json .Config.ExposedPorts}}',
            image,
        )
        try:
            exposed = json.loads(out) or {}
        except ValueError:
            return None
        for spec in sorted(exposed):
            port, _, proto = spec.partition('/')
            if proto in ('', 'tcp'):
                return int(port)
        return None

    async def stop(self, container_id: str) -> None:
        await self.run('stop', container_id)

    async def remove(self, container_id: str, force: bool = False) -> None:
        if force:
            await self.run('rm', '-f', container_id)
        else:
            await self.run('rm', container_id)
