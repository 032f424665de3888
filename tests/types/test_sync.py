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

from parameterized import parameterized

from synclient.api.errors import InvalidResponseError
from synclient.types import JsonDict
from synclient.types.sync import SyncResponse

from tests.unittest import TestCase


class SyncResponseTestCase(TestCase):
    def test_minimal(self) -> None:
        """Everything but next_batch may be omitted."""
        response = SyncResponse.from_json({"next_batch": "s1"})

        self.assertEqual(response.next_batch, "s1")
        self.assertEqual(response.joined, {})
        self.assertEqual(response.invited, {})
        self.assertEqual(response.knocked, {})
        self.assertEqual(response.left, {})
        self.assertEqual(list(response.presence), [])
        self.assertEqual(list(response.to_device), [])

    def test_joined_room(self) -> None:
        response = SyncResponse.from_json(
            {
                "next_batch": "s2",
                "rooms": {
                    "join": {
                        "!r:test": {
                            "timeline": {
                                "events": [{"type": "m.room.message", "content": {}}],
                                "limited": True,
                                "prev_batch": "p1",
                            },
                            "state": {"events": []},
                            "unread_notifications": {
                                "highlight_count": 1,
                                "notification_count": 3,
                            },
                            "summary": {
                                "m.heroes": ["@bob:test"],
                                "m.joined_member_count": 2,
                            },
                        }
                    }
                },
            }
        )

        room = response.joined["!r:test"]
        self.assertEqual(room.room_id, "!r:test")
        self.assertTrue(room.timeline.limited)
        self.assertEqual(room.timeline.prev_batch, "p1")
        self.assertEqual([e.type for e in room.timeline.events], ["m.room.message"])
        self.assertEqual(room.unread_notifications.highlight_count, 1)
        self.assertEqual(room.unread_notifications.notification_count, 3)
        self.assertEqual(list(room.summary.heroes), ["@bob:test"])
        self.assertEqual(room.summary.joined_member_count, 2)
        self.assertIsNone(room.summary.invited_member_count)

    def test_room_order_is_preserved(self) -> None:
        rooms = {"!c:test": {}, "!a:test": {}, "!b:test": {}}
        response = SyncResponse.from_json(
            {"next_batch": "s1", "rooms": {"join": rooms, "leave": rooms}}
        )

        self.assertEqual(list(response.joined), ["!c:test", "!a:test", "!b:test"])
        self.assertEqual(list(response.left), ["!c:test", "!a:test", "!b:test"])

    def test_invite_and_knock(self) -> None:
        response = SyncResponse.from_json(
            {
                "next_batch": "s1",
                "rooms": {
                    "invite": {
                        "!i:test": {
                            "invite_state": {
                                "events": [{"type": "m.room.name", "state_key": ""}]
                            }
                        }
                    },
                    "knock": {"!k:test": {}},
                },
            }
        )

        self.assertEqual(len(response.invited["!i:test"].invite_state), 1)
        self.assertEqual(list(response.knocked["!k:test"].knock_state), [])

    @parameterized.expand(
        [
            ("not an object", ["next_batch"]),
            ("no next_batch", {"rooms": {}}),
            ("non-string next_batch", {"next_batch": 5}),
            ("rooms is a list", {"next_batch": "s1", "rooms": []}),
            ("room is a string", {"next_batch": "s1", "rooms": {"join": {"!r": "x"}}}),
            (
                "events is an object",
                {"next_batch": "s1", "presence": {"events": {}}},
            ),
            (
                "event is a string",
                {"next_batch": "s1", "to_device": {"events": ["m.room_key"]}},
            ),
        ]
    )
    def test_invalid(self, _name: str, body: JsonDict) -> None:
        with self.assertRaises(InvalidResponseError):
            SyncResponse.from_json(body)
