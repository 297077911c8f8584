#! /usr/bin/env python
# SPDX-License-Identifier: GPL-2.0-or-later

from setuptools import setup, find_packages

setup(
    name='ArenaMatchmaker',
    version='1.0',
    description='Schedules sandboxed agent-versus-agent matches',
    packages=find_packages(include=['arena', 'arena.*']),
    install_requires=[
        'aiohttp',
        'prometheus_client',
        'pymongo>=4.9',
        'PyYAML',
        'tenacity',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-aiohttp',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
    zip_safe=False,
)
