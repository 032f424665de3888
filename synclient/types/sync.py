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

"""The decoded form of a `/sync` response.

The shapes here follow the wire format: each room partition maps room IDs to the
room's sections, and every section is a list of raw events. Events are kept as
`Event` objects without a `room_id`; the syncer attaches it when dispatching.
"""

from typing import Any, Mapping, Sequence

import attr

from synclient.api.errors import InvalidResponseError
from synclient.events import Event, make_event_from_dict


def _get_object(parent: Mapping[str, Any], key: str, where: str) -> Mapping[str, Any]:
    """Fetch a JSON object field, treating absence (or null) as empty."""
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidResponseError(
            "Expected an object for '%s' in %s, got %s"
            % (key, where, type(value).__name__)
        )
    return value


def _parse_events(
    parent: Mapping[str, Any], key: str, where: str
) -> Sequence[Event]:
    """Parse a `{"events": [...]}` section into a list of Events."""
    section = _get_object(parent, key, where)
    events = section.get("events")
    if events is None:
        return []
    if not isinstance(events, list):
        raise InvalidResponseError(
            "Expected a list for '%s.events' in %s, got %s"
            % (key, where, type(events).__name__)
        )
    return [_parse_event(e, "%s.%s" % (where, key)) for e in events]


def _parse_event(event_dict: Any, where: str) -> Event:
    if not isinstance(event_dict, dict):
        raise InvalidResponseError(
            "Expected an event object in %s, got %s"
            % (where, type(event_dict).__name__)
        )
    return make_event_from_dict(event_dict)


def _get_int(parent: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = parent.get(key, default)
    # bools are ints too, but never a sensible count
    if not isinstance(value, int) or isinstance(value, bool):
        return default
    return value


@attr.s(slots=True, frozen=True, auto_attribs=True)
class Timeline:
    events: Sequence[Event] = attr.Factory(list)
    # True if the server dropped events between the previous sync and the ones
    # given here; `prev_batch` can be used to paginate back over the gap.
    limited: bool = False
    prev_batch: str | None = None

    @classmethod
    def from_json(cls, room: Mapping[str, Any], where: str) -> "Timeline":
        timeline = _get_object(room, "timeline", where)
        prev_batch = timeline.get("prev_batch")
        return cls(
            events=_parse_events(room, "timeline", where),
            limited=bool(timeline.get("limited", False)),
            prev_batch=prev_batch if isinstance(prev_batch, str) else None,
        )


@attr.s(slots=True, frozen=True, auto_attribs=True)
class UnreadNotificationCounts:
    highlight_count: int = 0
    notification_count: int = 0


@attr.s(slots=True, frozen=True, auto_attribs=True)
class RoomSummary:
    heroes: Sequence[str] = attr.Factory(list)
    joined_member_count: int | None = None
    invited_member_count: int | None = None


@attr.s(slots=True, frozen=True, auto_attribs=True)
class JoinedRoom:
    room_id: str
    timeline: Timeline
    state: Sequence[Event]
    ephemeral: Sequence[Event]
    account_data: Sequence[Event]
    unread_notifications: UnreadNotificationCounts
    summary: RoomSummary

    @classmethod
    def from_json(cls, room_id: str, room: Mapping[str, Any]) -> "JoinedRoom":
        where = "rooms.join[%s]" % (room_id,)
        unread = _get_object(room, "unread_notifications", where)
        summary = _get_object(room, "summary", where)
        heroes = summary.get("m.heroes")

        return cls(
            room_id=room_id,
            timeline=Timeline.from_json(room, where),
            state=_parse_events(room, "state", where),
            ephemeral=_parse_events(room, "ephemeral", where),
            account_data=_parse_events(room, "account_data", where),
            unread_notifications=UnreadNotificationCounts(
                highlight_count=_get_int(unread, "highlight_count"),
                notification_count=_get_int(unread, "notification_count"),
            ),
            summary=RoomSummary(
                heroes=[h for h in heroes if isinstance(h, str)]
                if isinstance(heroes, list)
                else [],
                joined_member_count=summary.get("m.joined_member_count"),
                invited_member_count=summary.get("m.invited_member_count"),
            ),
        )


@attr.s(slots=True, frozen=True, auto_attribs=True)
class InvitedRoom:
    room_id: str
    # Stripped state events describing the room we were invited to.
    invite_state: Sequence[Event]

    @classmethod
    def from_json(cls, room_id: str, room: Mapping[str, Any]) -> "InvitedRoom":
        where = "rooms.invite[%s]" % (room_id,)
        return cls(
            room_id=room_id,
            invite_state=_parse_events(room, "invite_state", where),
        )


@attr.s(slots=True, frozen=True, auto_attribs=True)
class KnockedRoom:
    room_id: str
    knock_state: Sequence[Event]

    @classmethod
    def from_json(cls, room_id: str, room: Mapping[str, Any]) -> "KnockedRoom":
        where = "rooms.knock[%s]" % (room_id,)
        return cls(
            room_id=room_id,
            knock_state=_parse_events(room, "knock_state", where),
        )


@attr.s(slots=True, frozen=True, auto_attribs=True)
class LeftRoom:
    room_id: str
    timeline: Timeline
    state: Sequence[Event]
    account_data: Sequence[Event]

    @classmethod
    def from_json(cls, room_id: str, room: Mapping[str, Any]) -> "LeftRoom":
        where = "rooms.leave[%s]" % (room_id,)
        return cls(
            room_id=room_id,
            timeline=Timeline.from_json(room, where),
            state=_parse_events(room, "state", where),
            account_data=_parse_events(room, "account_data", where),
        )


@attr.s(slots=True, frozen=True, auto_attribs=True)
class SyncResponse:
    """One decoded `/sync` response.

    Attributes:
        next_batch: the token to pass as `since` to the next sync.
        joined/invited/knocked/left: room ID -> room data, in the order the
            server listed the rooms.
        presence/account_data/to_device: events which are not scoped to a room.
    """

    next_batch: str
    joined: Mapping[str, JoinedRoom] = attr.Factory(dict)
    invited: Mapping[str, InvitedRoom] = attr.Factory(dict)
    knocked: Mapping[str, KnockedRoom] = attr.Factory(dict)
    left: Mapping[str, LeftRoom] = attr.Factory(dict)
    presence: Sequence[Event] = attr.Factory(list)
    account_data: Sequence[Event] = attr.Factory(list)
    to_device: Sequence[Event] = attr.Factory(list)

    @classmethod
    def from_json(cls, body: Any) -> "SyncResponse":
        """Decode a `/sync` response body.

        Absent sections are treated as empty; sections of the wrong JSON type
        cause an `InvalidResponseError`.
        """
        if not isinstance(body, Mapping):
            raise InvalidResponseError(
                "Expected an object as sync response, got %s" % (type(body).__name__,)
            )

        next_batch = body.get("next_batch")
        if not isinstance(next_batch, str):
            raise InvalidResponseError("Sync response has no valid 'next_batch'")

        rooms = _get_object(body, "rooms", "sync response")

        return cls(
            next_batch=next_batch,
            joined={
                room_id: JoinedRoom.from_json(room_id, room)
                for room_id, room in _iter_rooms(rooms, "join")
            },
            invited={
                room_id: InvitedRoom.from_json(room_id, room)
                for room_id, room in _iter_rooms(rooms, "invite")
            },
            knocked={
                room_id: KnockedRoom.from_json(room_id, room)
                for room_id, room in _iter_rooms(rooms, "knock")
            },
            left={
                room_id: LeftRoom.from_json(room_id, room)
                for room_id, room in _iter_rooms(rooms, "leave")
            },
            presence=_parse_events(body, "presence", "sync response"),
            account_data=_parse_events(body, "account_data", "sync response"),
            to_device=_parse_events(body, "to_device", "sync response"),
        )


def _iter_rooms(
    rooms: Mapping[str, Any], membership: str
) -> list[tuple[str, Mapping[str, Any]]]:
    partition = _get_object(rooms, membership, "rooms")
    result = []
    for room_id, room in partition.items():
        if not isinstance(room, Mapping):
            raise InvalidResponseError(
                "Expected an object for rooms.%s[%s], got %s"
                % (membership, room_id, type(room).__name__)
            )
        result.append((room_id, room))
    return result
