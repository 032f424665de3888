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

import abc


class SyncStore(metaclass=abc.ABCMeta):
    """Persists the progress of a sync loop, keyed by user ID.

    The sync loop reads the `next_batch` token and filter ID once when it starts
    and writes them as it goes; it never caches them itself. Implementations need
    not be transactional, but must tolerate an old sync loop writing a token
    shortly after a new loop has started: the last write wins.

    Missing values are returned as None rather than raising.
    """

    @abc.abstractmethod
    async def get_next_batch(self, user_id: str) -> str | None:
        """Get the `next_batch` token stored for this user, if any."""

    @abc.abstractmethod
    async def save_next_batch(self, user_id: str, next_batch: str) -> None:
        """Store the `next_batch` token for this user."""

    @abc.abstractmethod
    async def get_filter_id(self, user_id: str) -> str | None:
        """Get the ID of the filter uploaded for this user, if any."""

    @abc.abstractmethod
    async def save_filter_id(self, user_id: str, filter_id: str) -> None:
        """Store the ID of the filter uploaded for this user."""
