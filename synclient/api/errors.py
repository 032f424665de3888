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

"""Contains exceptions and error codes."""

import logging
import typing
from enum import Enum
from http import HTTPStatus

if typing.TYPE_CHECKING:
    from synclient.types import JsonDict

logger = logging.getLogger(__name__)


class Codes(str, Enum):
    """
    All known error codes, as an enum of strings.
    """

    UNRECOGNIZED = "M_UNRECOGNIZED"
    UNAUTHORIZED = "M_UNAUTHORIZED"
    FORBIDDEN = "M_FORBIDDEN"
    BAD_JSON = "M_BAD_JSON"
    NOT_JSON = "M_NOT_JSON"
    NOT_FOUND = "M_NOT_FOUND"
    MISSING_TOKEN = "M_MISSING_TOKEN"
    UNKNOWN_TOKEN = "M_UNKNOWN_TOKEN"
    LIMIT_EXCEEDED = "M_LIMIT_EXCEEDED"
    UNKNOWN = "M_UNKNOWN"
    INVALID_PARAM = "M_INVALID_PARAM"
    MISSING_PARAM = "M_MISSING_PARAM"
    USER_DEACTIVATED = "M_USER_DEACTIVATED"


class CodeMessageException(RuntimeError):
    """An exception with integer code, a message string attributes and optional headers.

    Attributes:
        code: HTTP error code
        msg: string describing the error
    """

    def __init__(self, code: int | HTTPStatus, msg: str):
        super().__init__("%d: %s" % (code, msg))

        # Some calls to this method pass instances of http.HTTPStatus for `code`.
        # While HTTPStatus is a subclass of int, it has magic __str__ methods
        # which emit `HTTPStatus.FORBIDDEN` when converted to a str, instead of `403`.
        # This causes inconsistency in our log lines.
        #
        # To eliminate this behaviour, we convert them to their integer equivalents here.
        self.code = int(code)
        self.msg = msg


class MatrixApiError(Exception):
    """The standard JSON error body returned by a homeserver.

    Attributes:
        errcode: The Matrix error code, e.g. `M_FORBIDDEN`.
        error: The human readable error message.
    """

    def __init__(self, errcode: str, error: str):
        super().__init__("%s: %s" % (errcode, error))
        self.errcode = errcode
        self.error = error

    @classmethod
    def from_json(cls, body: object) -> "MatrixApiError | None":
        """Build an error from a decoded response body, if it is one.

        Returns None unless `body` is an object with a non-empty string
        `errcode`.
        """
        if not isinstance(body, dict):
            return None
        errcode = body.get("errcode")
        if not isinstance(errcode, str) or not errcode:
            return None
        error = body.get("error", "")
        return cls(errcode, error if isinstance(error, str) else str(error))

    def error_dict(self) -> "JsonDict":
        return {"errcode": self.errcode, "error": self.error}


class HttpResponseException(CodeMessageException):
    """
    Represents an HTTP-level failure of an outbound request

    Attributes:
        response: body of response
        errcode: the parsed Matrix error code, if the body was a Matrix error
        error: the parsed Matrix error message, if the body was a Matrix error
    """

    def __init__(
        self,
        code: int,
        msg: str,
        response: bytes,
        api_error: MatrixApiError | None = None,
    ):
        """

        Args:
            code: HTTP status code
            msg: reason phrase from HTTP response status line
            response: body of response
            api_error: the structured error parsed from `response`, if any
        """
        super().__init__(code, msg)
        self.response = response
        self._api_error = api_error

    @property
    def errcode(self) -> str | None:
        return self._api_error.errcode if self._api_error else None

    @property
    def error(self) -> str | None:
        return self._api_error.error if self._api_error else None

    def to_api_error(self) -> MatrixApiError | None:
        """Return the structured Matrix error wrapped by this exception, if any."""
        return self._api_error

    def __str__(self) -> str:
        if self._api_error is not None:
            return "%d: %s (%s)" % (self.code, self.msg, self._api_error)
        return "%d: %s" % (self.code, self.msg)

    @classmethod
    def from_response(
        cls, code: int, method: str, path: str, body: bytes, decoded_body: typing.Any
    ) -> "HttpResponseException":
        """Build the exception for a non-2xx response.

        If the body is not a Matrix error, the raw body text is folded into the
        message so that (for example) HTML error pages from proxies are not lost.

        Args:
            decoded_body: `body` parsed as JSON, or None if it was not JSON.
        """
        api_error = MatrixApiError.from_json(decoded_body)

        msg = "Failed to %s JSON to %s" % (method, path)
        if api_error is None:
            msg = "%s: %s" % (msg, body.decode("utf-8", "replace"))

        return cls(code, msg, body, api_error)


class LimitExceededError(HttpResponseException):
    """We kept being rate limited by the server and gave up retrying.

    Attributes:
        retry_after_ms: how long the server last asked us to wait, if known.
    """

    def __init__(
        self,
        msg: str,
        response: bytes = b"",
        api_error: MatrixApiError | None = None,
        retry_after_ms: int | None = None,
    ):
        super().__init__(HTTPStatus.TOO_MANY_REQUESTS, msg, response, api_error)
        self.retry_after_ms = retry_after_ms


class RequestTimedOutError(CodeMessageException):
    """Exception representing timeout of an outbound request"""

    def __init__(self, msg: str):
        super().__init__(HTTPStatus.GATEWAY_TIMEOUT, msg)


class InvalidResponseError(RuntimeError):
    """The server returned something we could not make sense of: a 2xx body
    which was not the expected JSON, or an unparseable `Retry-After` header."""


class SyncError(Exception):
    """An error which terminates the sync loop.

    The caller must call `sync()` again to resume; syncing will continue from the
    last persisted `next_batch` token.
    """


class FilterCreationError(SyncError):
    """We could not upload a filter for the user before starting to sync."""


class InvalidSyncResponseError(SyncError):
    """A sync response did not have the shape we need in order to dispatch it."""
