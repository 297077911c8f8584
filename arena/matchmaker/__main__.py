# SPDX-License-Identifier: GPL-2.0-or-later
import asyncio
import logging
import optparse

import arena.config
import arena.log

from .matchmaker import MatchMaker
from .monitoring import monitoring_start


async def serve(matchmaker, once=False):
    if once:
        await matchmaker.trigger_cycle()
        return

    matchmaker.start_periodic()
    try:
        await asyncio.Event().wait()
    finally:
        await matchmaker.stop()


if __name__ == '__main__':
    # Argument parsing
    parser = optparse.OptionParser()
    parser.add_option(
        '-l',
        '--local-logging',
        action='store_true',
        dest='local_logging',
        default=False,
        help='Activate logging to stdout.',
    )
    parser.add_option(
        '-v',
        '--verbose',
        action='store_true',
        dest='verbose',
        default=False,
        help='Verbose mode.',
    )
    parser.add_option(
        '-o',
        '--once',
        action='store_true',
        dest='once',
        default=False,
        help='Run a single cycle and exit.',
    )
    options, args = parser.parse_args()

    # Config
    config = arena.config.load('matchmaker')

    # Logging
    arena.log.setup_logging(
        'matchmaker', verbose=options.verbose, local=options.local_logging
    )

    # Service
    s = MatchMaker(config)
    logging.info(
        'matchmaker playing %d game(s) per event, %d at once',
        s.settings.pvp_games_count,
        s.settings.parallel_games_count,
    )

    # Monitoring
    if not options.once:
        monitoring_start(s.settings.monitoring_port)

    try:
        asyncio.run(serve(s, once=options.once))
    except KeyboardInterrupt:
        pass
