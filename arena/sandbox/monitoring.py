# SPDX-License-Identifier: GPL-2.0-or-later
from prometheus_client import Counter, Gauge, Summary

sandbox_live = Gauge(
    'sandbox_live',
    'Number of sandboxes currently provisioned',
)

sandbox_provisioned_total = Counter(
    'sandbox_provisioned_total',
    'Number of sandboxes that became ready',
)

sandbox_unready_total = Counter(
    'sandbox_unready_total',
    'Number of sandboxes that did not answer in a timely fashion',
)

sandbox_release_failures_total = Counter(
    'sandbox_release_failures_total',
    'Number of sandboxes that could not be stopped or removed',
)

sandbox_provision_latency_seconds = Summary(
    'sandbox_provision_latency_seconds',
    'Latency of sandbox creation up to readiness',
)
