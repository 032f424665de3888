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
from typing import Literal

from synclient.logging.formatter import LogFormatter


class UserIdFilter(logging.Filter):
    """Makes the syncing user's ID available to formats as `%(user_id)s`.

    Records which already carry a `user_id` (passed via `extra=`) keep it.
    """

    def __init__(self, user_id: str | None):
        super().__init__()
        self.user_id = user_id or "-"

    def filter(self, record: logging.LogRecord) -> Literal[True]:
        if not hasattr(record, "user_id"):
            record.user_id = self.user_id
        return True


__all__ = ["LogFormatter", "UserIdFilter"]
