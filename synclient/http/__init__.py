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
import re

from twisted.internet import task
from twisted.web.client import FileBodyProducer

from synclient.api.errors import RequestTimedOutError

ACCESS_TOKEN_RE = re.compile(r"(\?.*access(_|%5[Ff])token=)[^&]*(.*)$")
BEARER_TOKEN_RE = re.compile(r"(Bearer )[^\s'\",]+")


def redact_uri(uri: str) -> str:
    """Strips sensitive information from the uri replaces with <redacted>"""
    return ACCESS_TOKEN_RE.sub(r"\1<redacted>\3", uri)


def redact_secrets(text: str) -> str:
    """Strips access tokens from arbitrary text, such as a formatted log line."""
    text = BEARER_TOKEN_RE.sub(r"\1<redacted>", text)
    return "\n".join(redact_uri(line) for line in text.split("\n"))


class QuieterFileBodyProducer(FileBodyProducer):
    """Wrapper for FileBodyProducer that avoids CRITICAL errors when the connection drops.

    Workaround for https://github.com/matrix-org/synapse/issues/4003 /
    https://twistedmatrix.com/trac/ticket/6528
    """

    def stopProducing(self) -> None:
        try:
            FileBodyProducer.stopProducing(self)
        except task.TaskStopped:
            pass


__all__ = [
    "QuieterFileBodyProducer",
    "RequestTimedOutError",
    "redact_secrets",
    "redact_uri",
]
