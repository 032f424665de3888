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

"""The /sync loop."""

import logging
import threading
from typing import TYPE_CHECKING

from synclient.api.errors import FilterCreationError
from synclient.metrics import (
    sync_failures_counter,
    sync_generation_gauge,
    sync_requests_counter,
)

if TYPE_CHECKING:
    from synclient.client import MatrixClient

logger = logging.getLogger(__name__)


class SyncHandler:
    """Runs the sync loop for a client.

    Only one loop is authorised at a time. Each call to `sync()` starts a new
    "generation", and any loop from an older generation stops as soon as it
    notices, without persisting or dispatching anything further. `stop_sync()`
    works the same way: it simply starts a generation that has no loop.
    """

    def __init__(self, client: "MatrixClient"):
        self._client = client
        self.clock = client.get_clock()
        self.store = client.get_store()
        self.syncer = client.get_syncer()
        self.rest = client.get_rest_client()

        sync_config = client.config.sync
        self._timeout_ms = sync_config.timeout_ms
        self._full_state = sync_config.full_state
        self._set_presence = sync_config.set_presence

        self._generation = 0
        self._generation_lock = threading.Lock()

    def _new_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            sync_generation_gauge.set(self._generation)
            return self._generation

    def _current_generation(self) -> int:
        with self._generation_lock:
            return self._generation

    def stop_sync(self) -> None:
        """Ask the running sync loop, if any, to stop.

        Does not wait: the loop stops the next time it checks, which is at the
        latest when its current request completes.
        """
        generation = self._new_generation()
        logger.info("Stopping sync (generation now %d)", generation)

    async def sync(self) -> None:
        """Run the sync loop until it is stopped or fails.

        Resumes from the batch token in the store, if there is one. Every
        response's `next_batch` is persisted before the response is processed.

        Returns:
            when the loop is stopped by `stop_sync()` or superseded by another
            call to `sync()`.

        Raises:
            FilterCreationError: if we could not get a filter ID. No sync request
                is made in this case.
            Anything raised by `Syncer.on_failed_sync` or
                `Syncer.process_response`.
        """
        generation = self._new_generation()
        user_id = self._client.user_id

        logger.info("Starting sync for %s (generation %d)", user_id, generation)

        since = await self.store.get_next_batch(user_id)
        filter_id = await self._get_or_create_filter(user_id)

        if self._is_superseded(generation):
            return

        while True:
            try:
                response = await self.rest.sync(
                    since=since,
                    filter_id=filter_id,
                    timeout_ms=self._timeout_ms,
                    full_state=self._full_state,
                    set_presence=self._set_presence,
                )
            except Exception as e:
                sync_failures_counter.inc()
                try:
                    delay = await self.syncer.on_failed_sync(None, e)
                except Exception:
                    logger.error("Sync for %s failed fatally", user_id, exc_info=True)
                    raise

                logger.warning(
                    "Sync for %s failed (%s: %s); retrying in %gs",
                    user_id,
                    type(e).__name__,
                    e,
                    delay,
                )
                await self.clock.sleep(delay)

                if self._is_superseded(generation):
                    return
                continue

            if self._is_superseded(generation):
                return

            sync_requests_counter.inc()

            await self.store.save_next_batch(user_id, response.next_batch)

            try:
                await self.syncer.process_response(response, since)
            except Exception:
                logger.error(
                    "Error processing sync response for %s", user_id, exc_info=True
                )
                raise

            since = response.next_batch

    def _is_superseded(self, generation: int) -> bool:
        current = self._current_generation()
        if current == generation:
            return False

        logger.info(
            "Sync loop generation %d superseded by %d; stopping",
            generation,
            current,
        )
        return True

    async def _get_or_create_filter(self, user_id: str) -> str:
        filter_id = await self.store.get_filter_id(user_id)
        if filter_id is not None:
            return filter_id

        try:
            filter_json = self.syncer.get_filter_json(user_id)
            filter_id = await self.rest.create_filter(user_id, filter_json)
            await self.store.save_filter_id(user_id, filter_id)
        except Exception as e:
            logger.error("Failed to create filter for %s: %s", user_id, e)
            raise FilterCreationError(
                "Failed to create filter for %s: %s" % (user_id, e)
            ) from e

        logger.info("Created filter %s for %s", filter_id, user_id)
        return filter_id
