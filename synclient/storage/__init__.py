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

"""
The storage layer is split up into the abstract `SyncStore`, which is all the
sync loop relies on, and implementations of it. Only a volatile in-memory
implementation is shipped; anything which survives restarts is expected to be
provided by the application embedding the client.
"""

from synclient.storage.memory import InMemorySyncStore
from synclient.storage.sync import SyncStore

__all__ = ["InMemorySyncStore", "SyncStore"]
