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

from synclient.storage.sync import SyncStore

logger = logging.getLogger(__name__)


class InMemorySyncStore(SyncStore):
    """A SyncStore which keeps everything in dicts.

    Nothing is remembered across restarts: the first sync after a restart will be
    an initial sync, and a new filter will be uploaded.
    """

    def __init__(self) -> None:
        self._next_batches: dict[str, str] = {}
        self._filter_ids: dict[str, str] = {}

    async def get_next_batch(self, user_id: str) -> str | None:
        return self._next_batches.get(user_id)

    async def save_next_batch(self, user_id: str, next_batch: str) -> None:
        logger.debug("Saving next_batch %s for %s", next_batch, user_id)
        self._next_batches[user_id] = next_batch

    async def get_filter_id(self, user_id: str) -> str | None:
        return self._filter_ids.get(user_id)

    async def save_filter_id(self, user_id: str, filter_id: str) -> None:
        self._filter_ids[user_id] = filter_id
