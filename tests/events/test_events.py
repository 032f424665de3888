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

from synclient.events import Event, is_membership_event, make_event_from_dict

from tests.unittest import TestCase


class EventTestCase(TestCase):
    def test_properties(self) -> None:
        event = make_event_from_dict(
            {
                "type": "m.room.message",
                "sender": "@alice:test",
                "event_id": "$ev1",
                "origin_server_ts": 1234,
                "content": {"body": "hi"},
            },
            room_id="!r:test",
        )

        self.assertObjectHasAttributes(
            {
                "type": "m.room.message",
                "sender": "@alice:test",
                "event_id": "$ev1",
                "origin_server_ts": 1234,
                "room_id": "!r:test",
                "unsigned": {},
                "redacts": None,
            },
            event,
        )
        self.assertEqual(event.content["body"], "hi")

    def test_missing_content_is_empty(self) -> None:
        event = Event({"type": "m.typing"})
        self.assertEqual(event.content, {})

    def test_missing_required_field(self) -> None:
        event = Event({"type": "m.typing"})
        with self.assertRaises(AttributeError):
            event.sender

    def test_state_key(self) -> None:
        """An empty state key makes a state event; a missing one does not."""
        state = Event({"type": "m.room.name", "state_key": ""})
        message = Event({"type": "m.room.message"})

        self.assertTrue(state.is_state())
        self.assertEqual(state.get_state_key(), "")
        self.assertEqual(state.get_state_map_key(), ("m.room.name", ""))

        self.assertFalse(message.is_state())
        self.assertIsNone(message.get_state_key())
        with self.assertRaises(ValueError):
            message.get_state_map_key()

    def test_input_dict_is_copied(self) -> None:
        event_dict = {"type": "m.room.message"}
        make_event_from_dict(event_dict, room_id="!r:test")
        self.assertNotIn("room_id", event_dict)

    def test_freeze(self) -> None:
        event = make_event_from_dict(
            {
                "type": "m.room.topic",
                "state_key": "",
                "content": {"topic": "x", "via": ["a.test"]},
            }
        )
        event.freeze()

        self.assertTrue(event.is_frozen())
        with self.assertRaises(TypeError):
            event.content["topic"] = "y"  # type: ignore[index]
        with self.assertRaises(AttributeError):
            event.room_id = "!r:test"

        # get_dict hands out a mutable copy
        d = event.get_dict()
        d["content"]["topic"] = "y"
        self.assertEqual(event.content["topic"], "x")
        self.assertEqual(event.content["via"], ("a.test",))
        self.assertEqual(d["content"]["via"], ["a.test"])

    def test_membership(self) -> None:
        member = Event(
            {
                "type": "m.room.member",
                "state_key": "@alice:test",
                "content": {"membership": "join"},
            }
        )
        self.assertTrue(is_membership_event(member))
        self.assertEqual(member.membership, "join")

        self.assertFalse(
            is_membership_event(
                Event({"type": "m.room.member", "content": {"membership": "join"}})
            )
        )
