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
from synclient.util import SYNCLIENT_VERSION

from ._base import Config, ConfigError
from ._util import validate_config

HTTP_SCHEMA = {
    "type": "object",
    "properties": {
        "request_timeout": {"type": ["number", "string"]},
        "user_agent": {"type": "string"},
    },
}


class HttpConfig(Config):
    section = "http"

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        validate_config(HTTP_SCHEMA, config, (self.section,))

        # How long to wait for any one request before giving up. Long-polls get
        # their server-side timeout added to this.
        self.request_timeout = self.parse_duration(config.get("request_timeout", 60))
        if self.request_timeout <= 0:
            raise ConfigError(
                "request_timeout must be positive", (self.section, "request_timeout")
            )

        self.user_agent: str = config.get(
            "user_agent", "synclient/%s" % (SYNCLIENT_VERSION,)
        )
