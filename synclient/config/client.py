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

from ._base import RootConfig
from .account import AccountConfig
from .http import HttpConfig
from .logger import LoggingConfig
from .metrics import MetricsConfig
from .ratelimiting import RatelimitConfig
from .sync import SyncConfig


class ClientConfig(RootConfig):
    """The complete configuration of a sync client."""

    config_classes = [
        AccountConfig,
        HttpConfig,
        RatelimitConfig,
        SyncConfig,
        LoggingConfig,
        MetricsConfig,
    ]

    # Populated by RootConfig.__init__; declared here for type checkers.
    account: AccountConfig
    http: HttpConfig
    ratelimiting: RatelimitConfig
    sync: SyncConfig
    logging: LoggingConfig
    metrics: MetricsConfig
