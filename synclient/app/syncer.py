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

"""Run the sync loop from the command line, logging every event received.

Usage:

    python -m synclient.app.syncer -c config.yaml
"""

import logging
import sys

from twisted.internet import defer
from twisted.internet.interfaces import IReactorCore
from twisted.python.failure import Failure

from synclient.client import MatrixClient
from synclient.config import ClientConfig, ConfigError, format_config_error
from synclient.config.logger import setup_logging
from synclient.events import Event
from synclient.metrics import start_metrics_listener
from synclient.notifier import ANY_EVENT
from synclient.util import SYNCLIENT_VERSION, log_failure

logger = logging.getLogger("synclient.app.syncer")


def load_config(argv_options: list[str]) -> ClientConfig:
    """
    Parse the commandline and config files, exiting on error.

    Args:
        argv_options: The options passed to the syncer. Usually `sys.argv[1:]`.
    """
    try:
        return ClientConfig.load_config("Matrix sync client", argv_options)
    except ConfigError as e:
        sys.stderr.write("\n")
        for f in format_config_error(e):
            sys.stderr.write(f)
        sys.stderr.write("\n")
        sys.exit(1)


def log_event(room_id: str | None, event: Event) -> None:
    logger.info(
        "Received %s from %s in %s: %s",
        event.type,
        event.get("sender"),
        room_id or "<global>",
        event.get_dict().get("content"),
    )


def setup(config: ClientConfig, reactor: IReactorCore) -> MatrixClient:
    """Build a client for `config` which logs every event it receives, and
    arrange for it to start syncing once the reactor is running."""
    setup_logging(config)

    logger.info("synclient version %s", SYNCLIENT_VERSION)

    if config.metrics.enable_metrics:
        start_metrics_listener(config.metrics.bind_address, config.metrics.port)

    client = MatrixClient(config, reactor=reactor)
    client.add_listener(ANY_EVENT, log_event)

    def on_done(result: object) -> None:
        if isinstance(result, Failure):
            log_failure(result, "Sync loop terminated with an error")
        else:
            logger.info("Sync loop finished")
        if reactor.running:
            reactor.stop()

    def start() -> None:
        d = defer.ensureDeferred(client.sync())
        d.addBoth(on_done)

    def shutdown() -> None:
        client.stop_sync()
        client.get_clock().shutdown()

    reactor.callWhenRunning(start)
    reactor.addSystemEventTrigger("before", "shutdown", shutdown)
    return client


def main() -> None:
    from twisted.internet import reactor

    config = load_config(sys.argv[1:])
    setup(config, reactor)  # type: ignore[arg-type]
    reactor.run()  # type: ignore[attr-defined]


if __name__ == "__main__":
    main()
