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
import logging
import logging.config
import os
import sys
from typing import TYPE_CHECKING, Any

import yaml

from twisted.logger import (
    LogBeginner,
    STDLibLogObserver,
    eventAsText,
    globalLogBeginner,
)

from synclient.logging import UserIdFilter
from synclient.logging.formatter import LogFormatter
from synclient.types import JsonDict

from ._base import Config, ConfigError
from ._util import validate_config

if TYPE_CHECKING:
    from synclient.config.client import ClientConfig

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "log_config": {"type": ["string", "null"]},
        "level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
}

DEFAULT_LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(lineno)d - %(levelname)s - %(user_id)s - %(message)s"
)


class LoggingConfig(Config):
    section = "logging"

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        validate_config(LOGGING_SCHEMA, config, (self.section,))

        self.log_config: str | None = config.get("log_config")
        if self.log_config is not None and not os.path.exists(self.log_config):
            raise ConfigError(
                "File %s does not exist" % (self.log_config,),
                (self.section, "log_config"),
            )

        self.level: str = config.get("level", "INFO")


def _load_logging_config(log_config_path: str) -> None:
    """
    Configure logging from a log config path.
    """
    with open(log_config_path, "rb") as f:
        log_config = yaml.safe_load(f.read())

    if not log_config:
        logging.warning("Loaded a blank logging config?")

    if not isinstance(log_config, dict):
        raise ConfigError(
            "Log config %s is not a logging dictConfig mapping" % (log_config_path,)
        )

    logging.config.dictConfig(log_config)


def setup_logging(
    config: "ClientConfig",
    logBeginner: LogBeginner = globalLogBeginner,
) -> None:
    """
    Set up the logging subsystem.

    If `logging.log_config` is set, the python logging system is configured from
    that file with `dictConfig`. Otherwise a handler writing to stderr is
    installed on the root logger. Either way, records have the syncing user's ID
    available as `%(user_id)s`, and Twisted's own log events are redirected into
    python logging.

    Args:
        config: configuration data
        logBeginner: The Twisted logBeginner to use.
    """
    log_config_path = config.logging.log_config
    user_filter = UserIdFilter(config.account.user_id)

    if log_config_path:
        _load_logging_config(log_config_path)
        for handler in logging.getLogger().handlers:
            handler.addFilter(user_filter)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(LogFormatter(DEFAULT_LOG_FORMAT))
        handler.addFilter(user_filter)

        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        root_logger.setLevel(config.logging.level)

    # Route Twisted's native logging through to the standard library logging
    # system.
    observer = STDLibLogObserver()

    def _log(event: dict) -> None:
        if "log_text" in event:
            if event["log_text"].startswith("DNSDatagramProtocol starting on "):
                return

            if event["log_text"].startswith("(UDP Port "):
                return

            if event["log_text"].startswith("Timing out client"):
                return

        # this is a workaround to make sure we don't get stack overflows when the
        # logging system raises an error which is written to stderr which is
        # redirected to the logging system, etc.
        try:
            observer(event)
        except Exception as e:
            # we can't use logging.warning since that goes back into logging
            print("Exception in logging observer: %s\n%s" % (e, eventAsText(event)))

    logBeginner.beginLoggingTo([_log], redirectStandardIO=False)
    logging.getLogger(__name__).info("Logging configured")

