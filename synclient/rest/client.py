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

"""Thin wrappers around individual client-server API endpoints."""

import itertools
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlencode

from synclient.api.constants import EventTypes, LoginType, MessageTypes
from synclient.api.errors import InvalidResponseError
from synclient.types import JsonDict
from synclient.types.sync import SyncResponse

if TYPE_CHECKING:
    from synclient.client import MatrixClient

logger = logging.getLogger(__name__)


class RestClient:
    """Builds client-server API URLs and issues requests through the client's
    `MatrixHttpClient`.

    Each method corresponds to one endpoint and returns its decoded response.
    Errors from the transport are propagated unchanged.
    """

    def __init__(self, client: "MatrixClient"):
        self._client = client
        self.clock = client.get_clock()
        self.http_client = client.get_http_client()

        self._homeserver_url = client.config.account.homeserver_url
        self._api_prefix = client.config.account.api_prefix
        self._app_service_user_id = client.config.account.app_service_user_id
        self._request_timeout = client.config.http.request_timeout

        self._txn_counter = itertools.count()

    def build_base_url(self, *path: str) -> str:
        """Build a URL relative to the homeserver root.

        Each element of `path` is percent-encoded as a single path segment, so
        IDs containing `/`, `#` or `?` are safe to pass.
        """
        segments = "/".join(quote(segment, safe="") for segment in path)
        url = "%s/%s" % (self._homeserver_url, segments)
        if self._app_service_user_id is not None:
            url += "?" + urlencode({"user_id": self._app_service_user_id})
        return url

    def build_url(self, *path: str) -> str:
        """Build a URL under the configured client-server API prefix."""
        return self.build_url_with_query(path, {})

    def build_url_with_query(
        self, path: tuple[str, ...] | list[str], query: dict[str, str]
    ) -> str:
        """Build a URL under the API prefix with the given query parameters.

        If the client is acting for an application service user, `user_id` is
        added to the query.
        """
        prefix = self._api_prefix.strip("/")
        segments = "/".join(quote(segment, safe="") for segment in path)
        url = "%s/%s/%s" % (self._homeserver_url, prefix, segments)

        query = dict(query)
        if self._app_service_user_id is not None:
            query["user_id"] = self._app_service_user_id
        if query:
            url += "?" + urlencode(query)
        return url

    def make_txn_id(self) -> str:
        """Return a transaction ID which is unique for the life of this client."""
        return "m%d.%d" % (self.clock.time_msec(), next(self._txn_counter))

    async def create_filter(self, user_id: str, filter_json: JsonDict) -> str:
        """Upload a filter definition.

        Returns:
            the ID the server assigned to the filter.

        Raises:
            InvalidResponseError if the server did not return a filter ID.
        """
        url = self.build_url("user", user_id, "filter")
        response = await self.http_client.request("POST", url, json_body=filter_json)

        filter_id = response.get("filter_id") if isinstance(response, dict) else None
        if not isinstance(filter_id, str):
            raise InvalidResponseError(
                "Filter upload returned no filter_id: %r" % (response,)
            )
        return filter_id

    async def get_filter(self, user_id: str, filter_id: str) -> JsonDict:
        url = self.build_url("user", user_id, "filter", filter_id)
        return await self.http_client.request("GET", url)

    async def sync(
        self,
        since: str | None = None,
        filter_id: str | None = None,
        timeout_ms: int = 30000,
        full_state: bool = False,
        set_presence: str | None = None,
    ) -> SyncResponse:
        """Make a single /sync request.

        Args:
            since: the batch token to sync from; None for an initial sync.
            filter_id: the filter to apply, if any.
            timeout_ms: how long the server may hold the request open waiting
                for new events.
            full_state: whether to return the full state of every room even
                when syncing incrementally.
            set_presence: the presence state to set while syncing, if any.

        Returns:
            the decoded sync response.

        Raises:
            InvalidResponseError if the response could not be decoded.
        """
        query = {"timeout": str(timeout_ms)}
        if since:
            query["since"] = since
        if filter_id:
            query["filter"] = filter_id
        if full_state:
            query["full_state"] = "true"
        if set_presence:
            query["set_presence"] = set_presence

        url = self.build_url_with_query(("sync",), query)

        # the server holds the request open for up to timeout_ms before it
        # starts to respond
        timeout = self._request_timeout + timeout_ms / 1000
        body = await self.http_client.request("GET", url, timeout=timeout)
        return SyncResponse.from_json(body)

    async def login(
        self,
        user: str,
        password: str,
        device_id: str | None = None,
        initial_device_display_name: str | None = None,
    ) -> JsonDict:
        """Log in with a password. Does not change the client's credentials;
        see `MatrixClient.set_credentials`."""
        body: JsonDict = {
            "type": LoginType.PASSWORD,
            "identifier": {"type": "m.id.user", "user": user},
            "password": password,
        }
        if device_id is not None:
            body["device_id"] = device_id
        if initial_device_display_name is not None:
            body["initial_device_display_name"] = initial_device_display_name

        return await self.http_client.request(
            "POST", self.build_url("login"), json_body=body
        )

    async def logout(self) -> None:
        await self.http_client.request(
            "POST", self.build_url("logout"), json_body={}, expect_body=False
        )

    async def whoami(self) -> JsonDict:
        return await self.http_client.request(
            "GET", self.build_url("account", "whoami")
        )

    async def joined_rooms(self) -> list[str]:
        response = await self.http_client.request(
            "GET", self.build_url("joined_rooms")
        )
        rooms = response.get("joined_rooms") if isinstance(response, dict) else None
        if not isinstance(rooms, list):
            raise InvalidResponseError("joined_rooms response had no room list")
        return rooms

    async def join_room(
        self, room_id_or_alias: str, server_name: str | None = None
    ) -> str:
        """Join a room by ID or alias.

        Args:
            room_id_or_alias: the room to join.
            server_name: a server to attempt the join through, if the room is
                not known to our homeserver.

        Returns:
            the ID of the joined room.
        """
        query = {}
        if server_name is not None:
            query["server_name"] = server_name
        url = self.build_url_with_query(("join", room_id_or_alias), query)

        response = await self.http_client.request("POST", url, json_body={})
        room_id = response.get("room_id") if isinstance(response, dict) else None
        if not isinstance(room_id, str):
            raise InvalidResponseError("join response had no room_id")
        return room_id

    async def leave_room(self, room_id: str) -> None:
        url = self.build_url("rooms", room_id, "leave")
        await self.http_client.request("POST", url, json_body={}, expect_body=False)

    async def send_message_event(
        self,
        room_id: str,
        event_type: str,
        content: JsonDict,
        txn_id: str | None = None,
    ) -> str:
        """Send a message event to a room.

        Returns:
            the ID of the new event.
        """
        if txn_id is None:
            txn_id = self.make_txn_id()
        url = self.build_url("rooms", room_id, "send", event_type, txn_id)
        response = await self.http_client.request("PUT", url, json_body=content)
        return _get_event_id(response)

    async def send_state_event(
        self, room_id: str, event_type: str, state_key: str, content: JsonDict
    ) -> str:
        url = self.build_url("rooms", room_id, "state", event_type, state_key)
        response = await self.http_client.request("PUT", url, json_body=content)
        return _get_event_id(response)

    async def send_text(self, room_id: str, text: str) -> str:
        return await self.send_message_event(
            room_id, EventTypes.Message, {"msgtype": MessageTypes.TEXT, "body": text}
        )

    async def send_notice(self, room_id: str, text: str) -> str:
        return await self.send_message_event(
            room_id,
            EventTypes.Message,
            {"msgtype": MessageTypes.NOTICE, "body": text},
        )

    async def get_state_event(
        self, room_id: str, event_type: str, state_key: str = ""
    ) -> JsonDict:
        """Fetch the content of a single state event."""
        url = self.build_url("rooms", room_id, "state", event_type, state_key)
        return await self.http_client.request("GET", url)


def _get_event_id(response: Any) -> str:
    event_id = response.get("event_id") if isinstance(response, dict) else None
    if not isinstance(event_id, str):
        raise InvalidResponseError("Response had no event_id: %r" % (response,))
    return event_id
