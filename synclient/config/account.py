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
from typing import Any
from urllib.parse import urlparse

from synclient.api.constants import CLIENT_API_PREFIX
from synclient.types import JsonDict

from ._base import Config, ConfigError
from ._util import validate_config

logger = logging.getLogger(__name__)

ACCOUNT_SCHEMA = {
    "type": "object",
    "required": ["homeserver_url", "user_id"],
    "properties": {
        "homeserver_url": {"type": "string", "minLength": 1},
        "user_id": {"type": "string", "pattern": "^@[^:]+:.+$"},
        "access_token": {"type": ["string", "null"]},
        "api_prefix": {"type": "string"},
        "app_service_user_id": {"type": ["string", "null"]},
    },
}


class AccountConfig(Config):
    """Which homeserver to talk to, and as whom."""

    section = "account"

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        validate_config(ACCOUNT_SCHEMA, config, (self.section,))

        self.homeserver_url: str = config["homeserver_url"].rstrip("/")
        parsed = urlparse(self.homeserver_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(
                "homeserver_url must be an absolute http(s) URL",
                (self.section, "homeserver_url"),
            )

        self.user_id: str = config["user_id"]
        self.access_token: str | None = config.get("access_token")
        self.api_prefix: str = config.get("api_prefix", CLIENT_API_PREFIX)

        # When set, every request asserts this identity on behalf of an
        # application service.
        self.app_service_user_id: str | None = config.get("app_service_user_id")
