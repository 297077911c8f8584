# SPDX-License-Identifier: GPL-2.0-or-later
"""MatchMaker is a service that plays the pending matches between agents.

Every agent runs in its own Docker sandbox, created for one game and removed
right after it. MatchMaker periodically looks for events that were not played
yet, plays ``pvp_games_count`` games for each of them and stores the results.

MatchMaker configuration elements are, in the ``matchmaker`` section:

* **parallel_games_count** the maximum number of games played at once
* **pvp_games_count** the number of games played for each event
* **wakeup_retry_count** how many times a new sandbox is probed before it is
  given up on
* **wakeup_wait_time** the delay between two probes, in milliseconds
* **trigger_interval** the delay between two scheduling cycles, in
  milliseconds
* **game** the game session class, as ``package.module:ClassName``

The ``mongo`` section gives the store ``connection_string`` and ``database``,
the ``docker`` section the runtime ``host``, the ``bind_address`` sandbox ports
are published on, the ``image_template`` used to name agent images and the
default ``agent_port``.

Only one cycle runs at a time: a trigger arriving while a cycle runs is
ignored. An event is marked as played as soon as one of its games is recorded.
"""
