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

"""Helpers for building the objects under test."""

import copy
from typing import Any

from synclient.client import MatrixClient
from synclient.config import ClientConfig
from synclient.types import JsonDict

from tests.server import get_clock

TEST_USER = "@alice:test"
TEST_HOMESERVER = "https://matrix.test"


def default_config(**sections: JsonDict) -> JsonDict:
    """Return a config dict suitable for tests.

    Any keyword arguments are merged into the section of the same name.
    """
    config: JsonDict = {
        "account": {
            "homeserver_url": TEST_HOMESERVER,
            "user_id": TEST_USER,
            "access_token": "syt_secret",
        },
        "http": {"user_agent": "synclient-tests/1.0"},
    }
    for name, values in sections.items():
        config.setdefault(name, {}).update(copy.deepcopy(values))
    return config


def setup_test_client(
    config: JsonDict | None = None, **kwargs: Any
) -> MatrixClient:
    """Build a MatrixClient running on a `MemoryReactorClock`.

    Args:
        config: the config dict. Defaults to `default_config()`.
        **kwargs: passed on to `MatrixClient`.
    """
    if config is None:
        config = default_config()

    if "reactor" not in kwargs:
        kwargs["reactor"], _ = get_clock()

    return MatrixClient(ClientConfig.from_dict(config), **kwargs)
