# SPDX-License-Identifier: GPL-2.0-or-later
"""Common configuration loading logic for the arena services."""

import dataclasses
import os
import os.path

import yaml

DEFAULT_CFG_DIR = '/etc/arena'
LOADED_CONFIGS = {}


class ConfigReadError(Exception):
    pass


def load(profile):
    """Load (if needed) and return the configuration file for `profile`.

    Profile configurations are cached. Look for configuration profiles in the
    "CFG_DIR" environment variable if it is set, or in the DEFAULT_CFG_DIR
    otherwise. Raise a ConfigReadError if no such file exist.
    """

    try:
        return LOADED_CONFIGS[profile]
    except KeyError:
        pass

    cfg_filename = '{}.yml'.format(profile)
    cfg_directory = os.environ.get('CFG_DIR', DEFAULT_CFG_DIR)
    cfg_path = os.path.join(cfg_directory, cfg_filename)

    try:
        with open(cfg_path, 'r') as cfg_fp:
            cfg = yaml.safe_load(cfg_fp)
    except IOError:
        raise ConfigReadError("%s does not exist (specify CFG_DIR?)"
                              % cfg_path)

    LOADED_CONFIGS[profile] = cfg

    return cfg


@dataclasses.dataclass(frozen=True)
class MatchMakerSettings:
    """Typed view of the ``matchmaker`` section of the configuration.

    Durations are stored in seconds; the configuration file gives the wakeup
    wait time and the trigger interval in milliseconds.
    """

    parallel_games_count: int
    pvp_games_count: int
    wakeup_retry_count: int
    wakeup_wait_time: float
    trigger_interval: float
    game: str = ''
    http_timeout: float = 30.0
    monitoring_port: int = 9050

    @classmethod
    def from_config(cls, config) -> 'MatchMakerSettings':
        try:
            section = config['matchmaker']
            settings = cls(
                parallel_games_count=int(section['parallel_games_count']),
                pvp_games_count=int(section['pvp_games_count']),
                wakeup_retry_count=int(section['wakeup_retry_count']),
                wakeup_wait_time=section['wakeup_wait_time'] / 1000,
                trigger_interval=section['trigger_interval'] / 1000,
                game=section.get('game', ''),
                http_timeout=float(section.get('http_timeout', 30)),
                monitoring_port=int(section.get('monitoring_port', 9050)),
            )
        except KeyError as e:
            raise ConfigReadError(
                "missing matchmaker configuration key: {}".format(e.args[0])
            ) from None
        except (TypeError, ValueError) as e:
            raise ConfigReadError(
                "invalid matchmaker configuration: {}".format(e)
            ) from None

        if settings.parallel_games_count < 1:
            raise ConfigReadError("parallel_games_count must be at least 1")
        if settings.pvp_games_count < 0:
            raise ConfigReadError("pvp_games_count must not be negative")
        if settings.trigger_interval <= 0:
            raise ConfigReadError("trigger_interval must be positive")
        return settings
