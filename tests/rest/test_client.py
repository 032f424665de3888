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

from typing import Any
from unittest.mock import AsyncMock, Mock, patch

from synclient.api.errors import InvalidResponseError
from synclient.http.client import MatrixHttpClient
from synclient.rest.client import RestClient

from tests.unittest import TestCase
from tests.utils import TEST_HOMESERVER, TEST_USER, default_config, setup_test_client

PREFIX = TEST_HOMESERVER + "/_matrix/client/v3"


class RestClientTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.rest = self._make_rest_client(default_config())

    def _make_rest_client(self, config: dict[str, Any]) -> RestClient:
        client = setup_test_client(config)
        self.http_client = Mock(spec=MatrixHttpClient)
        self.http_client.request = AsyncMock(return_value={})
        with patch.object(client, "get_http_client", return_value=self.http_client):
            return client.get_rest_client()

    def _last_request(self) -> tuple[tuple, dict]:
        call = self.http_client.request.call_args
        return call.args, call.kwargs

    def test_build_url_encodes_segments(self) -> None:
        self.assertEqual(
            self.rest.build_url("rooms", "!abc:test", "state", "m.room.name", ""),
            PREFIX + "/rooms/%21abc%3Atest/state/m.room.name/",
        )
        self.assertEqual(
            self.rest.build_url("directory", "room", "#a/b?c:test"),
            PREFIX + "/directory/room/%23a%2Fb%3Fc%3Atest",
        )

    def test_build_url_with_query(self) -> None:
        self.assertEqual(
            self.rest.build_url_with_query(["sync"], {"since": "s 1"}),
            PREFIX + "/sync?since=s+1",
        )

    def test_build_base_url(self) -> None:
        self.assertEqual(
            self.rest.build_base_url("_matrix", "client", "versions"),
            TEST_HOMESERVER + "/_matrix/client/versions",
        )

    def test_app_service_user(self) -> None:
        """An application service user is asserted on every URL."""
        config = default_config(account={"app_service_user_id": "@bridge_bob:test"})
        rest = self._make_rest_client(config)

        self.assertEqual(
            rest.build_url("account", "whoami"),
            PREFIX + "/account/whoami?user_id=%40bridge_bob%3Atest",
        )
        self.assertEqual(
            rest.build_url_with_query(["sync"], {"timeout": "0"}),
            PREFIX + "/sync?timeout=0&user_id=%40bridge_bob%3Atest",
        )

    def test_custom_prefix(self) -> None:
        rest = self._make_rest_client(
            default_config(account={"api_prefix": "/_matrix/client/r0/"})
        )
        self.assertEqual(
            rest.build_url("sync"), TEST_HOMESERVER + "/_matrix/client/r0/sync"
        )

    def test_sync(self) -> None:
        self.http_client.request.return_value = {"next_batch": "s2"}

        response = self.get_success(
            self.rest.sync(
                since="s1",
                filter_id="f1",
                timeout_ms=30000,
                full_state=True,
                set_presence="offline",
            )
        )

        self.assertEqual(response.next_batch, "s2")
        args, kwargs = self._last_request()
        self.assertEqual(
            args,
            (
                "GET",
                PREFIX
                + "/sync?timeout=30000&since=s1&filter=f1&full_state=true"
                "&set_presence=offline",
            ),
        )
        # the long-poll time is added to the request timeout
        self.assertEqual(kwargs["timeout"], 90)

    def test_initial_sync_omits_empty_params(self) -> None:
        self.http_client.request.return_value = {"next_batch": "s1"}

        self.get_success(self.rest.sync(timeout_ms=0))

        args, _ = self._last_request()
        self.assertEqual(args, ("GET", PREFIX + "/sync?timeout=0"))

    def test_sync_invalid_response(self) -> None:
        self.http_client.request.return_value = {"rooms": {}}

        self.get_failure(self.rest.sync(), InvalidResponseError)

    def test_create_filter(self) -> None:
        self.http_client.request.return_value = {"filter_id": "f1"}

        filter_id = self.get_success(
            self.rest.create_filter(TEST_USER, {"room": {"timeline": {"limit": 1}}})
        )

        self.assertEqual(filter_id, "f1")
        args, kwargs = self._last_request()
        self.assertEqual(args, ("POST", PREFIX + "/user/%40alice%3Atest/filter"))
        self.assertEqual(kwargs["json_body"], {"room": {"timeline": {"limit": 1}}})

    def test_create_filter_without_id(self) -> None:
        self.http_client.request.return_value = {"filter_id": 3}

        self.get_failure(self.rest.create_filter(TEST_USER, {}), InvalidResponseError)

    def test_get_filter(self) -> None:
        self.http_client.request.return_value = {"room": {}}

        self.assertEqual(
            self.get_success(self.rest.get_filter(TEST_USER, "f1")), {"room": {}}
        )
        args, _ = self._last_request()
        self.assertEqual(args, ("GET", PREFIX + "/user/%40alice%3Atest/filter/f1"))

    def test_send_text(self) -> None:
        self.http_client.request.return_value = {"event_id": "$ev"}

        event_id = self.get_success(self.rest.send_text("!r:test", "hello"))

        self.assertEqual(event_id, "$ev")
        args, kwargs = self._last_request()
        self.assertEqual(args[0], "PUT")
        self.assertTrue(
            args[1].startswith(PREFIX + "/rooms/%21r%3Atest/send/m.room.message/m")
        )
        self.assertEqual(kwargs["json_body"], {"msgtype": "m.text", "body": "hello"})

    def test_txn_ids_are_unique(self) -> None:
        self.assertNotEqual(self.rest.make_txn_id(), self.rest.make_txn_id())

    def test_send_state_event(self) -> None:
        self.http_client.request.return_value = {"event_id": "$ev"}

        self.get_success(
            self.rest.send_state_event("!r:test", "m.room.topic", "", {"topic": "t"})
        )

        args, _ = self._last_request()
        self.assertEqual(
            args, ("PUT", PREFIX + "/rooms/%21r%3Atest/state/m.room.topic/")
        )

    def test_join_room(self) -> None:
        self.http_client.request.return_value = {"room_id": "!r:test"}

        room_id = self.get_success(
            self.rest.join_room("#room:test", server_name="test")
        )

        self.assertEqual(room_id, "!r:test")
        args, _ = self._last_request()
        self.assertEqual(
            args, ("POST", PREFIX + "/join/%23room%3Atest?server_name=test")
        )

    def test_leave_room(self) -> None:
        self.get_success(self.rest.leave_room("!r:test"))

        args, kwargs = self._last_request()
        self.assertEqual(args, ("POST", PREFIX + "/rooms/%21r%3Atest/leave"))
        self.assertFalse(kwargs["expect_body"])

    def test_joined_rooms(self) -> None:
        self.http_client.request.return_value = {"joined_rooms": ["!a:test"]}

        self.assertEqual(self.get_success(self.rest.joined_rooms()), ["!a:test"])

    def test_login(self) -> None:
        self.http_client.request.return_value = {
            "user_id": TEST_USER,
            "access_token": "syt_new",
        }

        result = self.get_success(self.rest.login("alice", "hunter2", device_id="D1"))

        self.assertEqual(result["access_token"], "syt_new")
        args, kwargs = self._last_request()
        self.assertEqual(args, ("POST", PREFIX + "/login"))
        self.assertEqual(
            kwargs["json_body"],
            {
                "type": "m.login.password",
                "identifier": {"type": "m.id.user", "user": "alice"},
                "password": "hunter2",
                "device_id": "D1",
            },
        )
