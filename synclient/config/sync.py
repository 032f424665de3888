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

from synclient.api.constants import PresenceState
from synclient.types import JsonDict

from ._base import Config
from ._util import validate_config

DEFAULT_FILTER: JsonDict = {"room": {"timeline": {"limit": 50}}}

SYNC_SCHEMA = {
    "type": "object",
    "properties": {
        "timeout_ms": {"type": "integer", "minimum": 0},
        "full_state": {"type": "boolean"},
        "set_presence": {
            "oneOf": [
                {"type": "null"},
                {"type": "string", "enum": sorted(PresenceState.LIST)},
            ]
        },
        "failed_sync_backoff": {"type": ["number", "string"]},
        "filter": {"type": ["object", "null"]},
    },
}


class SyncConfig(Config):
    section = "sync"

    def read_config(self, config: JsonDict, **kwargs: Any) -> None:
        validate_config(SYNC_SCHEMA, config, (self.section,))

        # How long the server may hold each long-poll open.
        self.timeout_ms: int = config.get("timeout_ms", 30000)
        self.full_state: bool = config.get("full_state", False)
        self.set_presence: str | None = config.get("set_presence")

        # How long the default syncer waits before retrying a failed sync.
        self.failed_sync_backoff = self.parse_duration(
            config.get("failed_sync_backoff", 10)
        )

        # The filter uploaded before the first sync.
        self.filter: JsonDict = config.get("filter") or DEFAULT_FILTER
