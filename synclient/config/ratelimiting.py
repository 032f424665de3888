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

RATELIMITING_SCHEMA = {
    "type": "object",
    "properties": {
        "default_retry_after": {"type": ["number", "string"]},
        "max_retries": {"type": "integer", "minimum": 0},
    },
}


class RatelimitConfig(Config):
    """How we react to being rate-limited (HTTP 429) by the server."""

    section = "ratelimiting"

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        validate_config(RATELIMITING_SCHEMA, config, (self.section,))

        # How long to wait if the server doesn't send a Retry-After header.
        self.default_retry_after = self.parse_duration(
            config.get("default_retry_after", 5)
        )

        # How many times to retry a single request which keeps getting rate-limited
        # before giving up with a LimitExceededError.
        self.max_retries: int = config.get("max_retries", 5)
