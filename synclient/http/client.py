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

import json
import logging
from http import HTTPStatus
from io import BytesIO
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from immutabledict import immutabledict

from twisted.internet import defer
from twisted.web.client import readBody
from twisted.web.http import stringToDatetime
from twisted.web.http_headers import Headers
from twisted.web.iweb import IAgent, IResponse

from synclient.api.errors import (
    HttpResponseException,
    InvalidResponseError,
    LimitExceededError,
    MatrixApiError,
    RequestTimedOutError,
)
from synclient.http import QuieterFileBodyProducer, redact_uri
from synclient.metrics import http_ratelimited_counter, http_requests_counter
from synclient.types import JsonSerializable
from synclient.util.async_helpers import timeout_deferred

if TYPE_CHECKING:
    from synclient.client import MatrixClient

logger = logging.getLogger(__name__)


def _encode_frozen(obj: Any) -> Any:
    # Bodies built from cached (frozen) event content contain immutabledicts.
    if isinstance(obj, immutabledict):
        return dict(obj)
    raise TypeError("%s is not JSON serializable" % (type(obj).__name__,))


def _reject_json_constant(name: str) -> None:
    raise ValueError("Non-standard JSON constant %s" % (name,))


# Compact request bodies, without NaN or Infinity.
_json_encoder = json.JSONEncoder(
    allow_nan=False, separators=(",", ":"), default=_encode_frozen
)
_json_decoder = json.JSONDecoder(parse_constant=_reject_json_constant)


def encode_json_body(body: JsonSerializable) -> bytes:
    """Serialize a request body as compact UTF-8 JSON."""
    return _json_encoder.encode(body).encode("utf-8")


def decode_json_body(body: bytes) -> Any:
    """Parse a response body as strict JSON.

    Raises:
        ValueError: if the body is not UTF-8 JSON.
    """
    return _json_decoder.decode(body.decode("utf-8"))


class MatrixHttpClient:
    """Executes JSON requests against the homeserver on behalf of a MatrixClient.

    This is the one place where requests are actually made: it adds
    authentication, transparently waits out rate limiting, and turns error
    responses into exceptions.

    Args:
        client: the client whose configuration and credentials to use.
        agent: the agent to make requests with. Defaults to the client's agent.
    """

    def __init__(self, client: "MatrixClient", agent: IAgent | None = None):
        self._client = client
        self.clock = client.get_clock()
        self.agent = agent if agent is not None else client.get_http_agent()

        self.user_agent = client.config.http.user_agent.encode("ascii")
        self._request_timeout = client.config.http.request_timeout
        self._default_retry_after = client.config.ratelimiting.default_retry_after
        self._max_retries = client.config.ratelimiting.max_retries

    async def request(
        self,
        method: str,
        uri: str,
        json_body: JsonSerializable | None = None,
        expect_body: bool = True,
        timeout: float | None = None,
    ) -> Any:
        """Make a request and decode the JSON response.

        If the server responds with 429 Too Many Requests, we wait for as long as
        it asks us to (or `ratelimiting.default_retry_after`) and try again, up to
        `ratelimiting.max_retries` times.

        Args:
            method: HTTP method to use.
            uri: the full URI to request.
            json_body: if not None, the body to send, encoded as JSON.
            expect_body: if False, the body of a successful response is ignored
                and None is returned.
            timeout: how long to wait for the response, in seconds. Defaults to
                `http.request_timeout`.

        Returns:
            The decoded JSON body. An empty 2xx body decodes to an empty dict.

        Raises:
            LimitExceededError: if we were still being rate-limited after the
                maximum number of retries.
            HttpResponseException: on any other non-2xx response.
            InvalidResponseError: if the response body was not valid JSON, or the
                server sent a Retry-After header we did not understand.
            RequestTimedOutError: if the request took longer than `timeout`.
            Anything else raised by the agent: on network errors.
        """
        path = urlparse(uri).path
        retries = 0

        while True:
            response, body = await self._send_request(method, uri, json_body, timeout)

            if response.code != HTTPStatus.TOO_MANY_REQUESTS:
                break

            http_ratelimited_counter.inc()

            if retries >= self._max_retries:
                try:
                    retry_after_ms: int | None = int(
                        self._get_retry_after(response.headers) * 1000
                    )
                except InvalidResponseError:
                    retry_after_ms = None
                raise LimitExceededError(
                    "Still rate-limited after %d retries of %s %s"
                    % (retries, method, path),
                    body,
                    MatrixApiError.from_json(_try_decode(body)),
                    retry_after_ms=retry_after_ms,
                )

            delay = self._get_retry_after(response.headers)
            retries += 1
            logger.info(
                "Rate-limited on %s %s; retrying in %.3fs (attempt %d/%d)",
                method,
                redact_uri(uri),
                delay,
                retries,
                self._max_retries,
            )
            await self.clock.sleep(delay)

        if not 200 <= response.code < 300:
            raise HttpResponseException.from_response(
                response.code, method, path, body, _try_decode(body)
            )

        if not expect_body:
            return None

        if not body.strip():
            return {}

        try:
            return decode_json_body(body)
        except ValueError as e:
            raise InvalidResponseError(
                "Response to %s %s was not JSON: %s" % (method, path, e)
            ) from e

    async def _send_request(
        self,
        method: str,
        uri: str,
        json_body: JsonSerializable | None,
        timeout: float | None,
    ) -> tuple[IResponse, bytes]:
        """Make a single request and read the whole response body."""
        headers = Headers(
            {
                b"User-Agent": [self.user_agent],
                b"Accept": [b"application/json"],
            }
        )

        body_producer = None
        if json_body is not None:
            headers.addRawHeader(b"Content-Type", b"application/json")
            body_producer = QuieterFileBodyProducer(
                BytesIO(encode_json_body(json_body))
            )

        access_token = self._client.access_token
        if access_token:
            headers.addRawHeader(
                b"Authorization", b"Bearer " + access_token.encode("ascii")
            )

        if timeout is None:
            timeout = self._request_timeout

        logger.debug("Sending request %s %s", method, redact_uri(uri))

        async def _do_request() -> tuple[IResponse, bytes]:
            response = await self.agent.request(
                method.encode("ascii"),
                uri.encode("ascii"),
                headers=headers,
                bodyProducer=body_producer,
            )
            body = await readBody(response)
            return response, body

        try:
            response, body = await timeout_deferred(
                deferred=defer.ensureDeferred(_do_request()),
                timeout=timeout,
                clock=self.clock,
            )
        except defer.TimeoutError as e:
            http_requests_counter.labels(method, "ERR").inc()
            raise RequestTimedOutError(
                "Timed out %s %s after %gs" % (method, redact_uri(uri), timeout)
            ) from e
        except Exception as e:
            http_requests_counter.labels(method, "ERR").inc()
            logger.info(
                "Error sending request to %s %s: %s %s",
                method,
                redact_uri(uri),
                type(e).__name__,
                e,
            )
            raise

        http_requests_counter.labels(method, response.code).inc()
        logger.debug(
            "Received response to %s %s: %d", method, redact_uri(uri), response.code
        )
        return response, body

    def _get_retry_after(self, headers: Headers) -> float:
        """Work out how long the server wants us to wait before retrying.

        `Retry-After` may be either an HTTP-date or a number of seconds. If it is
        absent we fall back to the configured default.

        Raises:
            InvalidResponseError if the header is present but unparseable.
        """
        values = headers.getRawHeaders(b"Retry-After")
        if not values:
            return self._default_retry_after

        value = values[0].strip()

        try:
            retry_at = stringToDatetime(value)
        except (ValueError, IndexError, KeyError):
            pass
        else:
            return max(0.0, retry_at - self.clock.time())

        try:
            return float(max(0, int(value)))
        except ValueError:
            pass

        raise InvalidResponseError(
            "Invalid Retry-After header: %r" % (value.decode("ascii", "replace"),)
        )


def _try_decode(body: bytes) -> Any:
    try:
        return decode_json_body(body)
    except ValueError:
        return None
