#
# This file is licensed under the Affero General Public License (AGPL) version 3.
#
# Copyright (C) 2026 New Vector, Ltd
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# See the GNU Affero General Public License for more details:
# <https://www.gnu.org/licenses/agpl-3.0.html>.
#
#

"""Prometheus metrics exported by the sync client."""

import logging

from prometheus_client import Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)

http_requests_counter = Counter(
    "synclient_http_requests",
    "Number of outbound HTTP requests, by method and response code",
    labelnames=["method", "code"],
)

http_ratelimited_counter = Counter(
    "synclient_http_ratelimited",
    "Number of times the server rate-limited one of our requests",
)

sync_requests_counter = Counter(
    "synclient_sync_requests",
    "Number of /sync long-polls which completed successfully",
)

sync_failures_counter = Counter(
    "synclient_sync_failures",
    "Number of /sync long-polls which failed",
)

sync_generation_gauge = Gauge(
    "synclient_sync_generation",
    "The generation of the currently authorised sync loop",
)

dispatched_events_counter = Counter(
    "synclient_dispatched_events",
    "Number of events dispatched to listeners, by section of the sync response",
    labelnames=["section"],
)

listener_errors_counter = Counter(
    "synclient_listener_errors",
    "Number of exceptions raised by event listeners",
)


def start_metrics_listener(bind_address: str, port: int) -> None:
    """Serve the default prometheus registry over HTTP."""
    logger.info("Starting metrics listener on %s:%d", bind_address, port)
    start_http_server(port, addr=bind_address)
