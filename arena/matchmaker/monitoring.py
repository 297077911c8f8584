# SPDX-License-Identifier: GPL-2.0-or-later
from prometheus_client import start_http_server, Counter, Gauge, Summary

matchmaker_cycles_total = Counter(
    'matchmaker_cycles_total',
    'Number of scheduling cycles run',
)

matchmaker_cycles_skipped_total = Counter(
    'matchmaker_cycles_skipped_total',
    'Number of triggers ignored because a cycle was already running',
)

matchmaker_cycle_failures_total = Counter(
    'matchmaker_cycle_failures_total',
    'Number of scheduling cycles aborted by an error',
)

matchmaker_cycle_latency_seconds = Summary(
    'matchmaker_cycle_latency_seconds',
    'Latency of a full scheduling cycle',
)

matchmaker_pending_events = Gauge(
    'matchmaker_pending_events',
    'Number of unplayed events found by the last cycle',
)

matchmaker_tasks_in_flight = Gauge(
    'matchmaker_tasks_in_flight',
    'Number of games currently running',
)

matchmaker_games_played_total = Counter(
    'matchmaker_games_played_total',
    'Number of games played to completion',
)

matchmaker_game_failures_total = Counter(
    'matchmaker_game_failures_total',
    'Number of games that ended in error',
    ['error'],
)

matchmaker_game_latency_seconds = Summary(
    'matchmaker_game_latency_seconds',
    'Latency of a game, from provisioning to release',
)

matchmaker_results_recorded_total = Counter(
    'matchmaker_results_recorded_total',
    'Number of game results written to the store',
)


def monitoring_start(port=9050):
    start_http_server(port)
