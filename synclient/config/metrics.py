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

from typing import Any

from synclient.types import JsonDict

from ._base import Config
from ._util import validate_config

METRICS_SCHEMA = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "port": {"type": "integer", "minimum": 1, "maximum": 65535},
        "bind_address": {"type": "string"},
    },
}


class MetricsConfig(Config):
    section = "metrics"

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        validate_config(METRICS_SCHEMA, config, (self.section,))

        self.enable_metrics: bool = config.get("enabled", False)
        self.port: int = config.get("port", 9101)
        self.bind_address: str = config.get("bind_address", "127.0.0.1")
