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

from typing import Any, Generic, Iterable, Literal, Mapping, TypeVar, overload

from immutabledict import immutabledict

from synclient.api.constants import EventTypes
from synclient.types import JsonDict, JsonMapping, StateKey

T = TypeVar("T")


def _freeze_json(value: Any) -> Any:
    """Recursively convert decoded event JSON into immutable containers.

    Objects become `immutabledict`s and arrays become tuples. Scalars are
    returned unchanged.
    """
    if isinstance(value, immutabledict):
        return value
    if isinstance(value, Mapping):
        return immutabledict({k: _freeze_json(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze_json(v) for v in value)
    return value


def _thaw_json(value: Any) -> Any:
    """The inverse of `_freeze_json`: returns plain dicts and lists."""
    if isinstance(value, Mapping):
        return {k: _thaw_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw_json(v) for v in value]
    return value


class DictProperty(Generic[T]):
    """An object property which delegates to the `_dict` within its parent object."""

    __slots__ = ["key"]

    def __init__(self, key: str):
        self.key = key

    @overload
    def __get__(
        self,
        instance: Literal[None],
        owner: type["Event"] | None = None,
    ) -> "DictProperty": ...

    @overload
    def __get__(
        self,
        instance: "Event",
        owner: type["Event"] | None = None,
    ) -> T: ...

    def __get__(
        self,
        instance: "Event | None",
        owner: type["Event"] | None = None,
    ) -> "T | DictProperty":
        # if the property is accessed as a class property rather than an instance
        # property, return the property itself rather than the value
        if instance is None:
            return self
        try:
            return instance._dict[self.key]
        except KeyError as e1:
            # We want this to look like a regular attribute error (mostly so that
            # hasattr() works correctly), so we convert the KeyError into an
            # AttributeError.
            raise AttributeError(
                "'%s' has no '%s' property" % (type(instance), self.key)
            ) from e1.__context__

    def __set__(self, instance: "Event", v: T) -> None:
        if instance.is_frozen():
            raise AttributeError("Cannot set '%s' on a frozen event" % (self.key,))
        instance._dict[self.key] = v

    def __delete__(self, instance: "Event") -> None:
        try:
            del instance._dict[self.key]
        except KeyError as e1:
            raise AttributeError(
                "'%s' has no '%s' property" % (type(instance), self.key)
            ) from e1.__context__


class DefaultDictProperty(DictProperty, Generic[T]):
    """An extension of DictProperty which provides a default if the property is
    not present in the parent's _dict.

    Note that this means that hasattr() on the property always returns True.
    """

    __slots__ = ["default"]

    def __init__(self, key: str, default: T):
        super().__init__(key)
        self.default = default

    @overload
    def __get__(
        self,
        instance: Literal[None],
        owner: type["Event"] | None = None,
    ) -> "DefaultDictProperty": ...

    @overload
    def __get__(
        self,
        instance: "Event",
        owner: type["Event"] | None = None,
    ) -> T: ...

    def __get__(
        self,
        instance: "Event | None",
        owner: type["Event"] | None = None,
    ) -> "T | DefaultDictProperty":
        if instance is None:
            return self
        return instance._dict.get(self.key, self.default)


class Event:
    """An event as received from the client-server API.

    Events are homogeneous records: whatever the event type, the wire JSON is
    kept as-is and exposed through properties. The `room_id` is filled in by the
    syncer for events which arrive inside a room section of a sync response, as
    the server omits it there.
    """

    def __init__(self, event_dict: JsonDict):
        self._dict = event_dict

    type: DictProperty[str] = DictProperty("type")
    sender: DictProperty[str] = DictProperty("sender")
    room_id: DictProperty[str] = DictProperty("room_id")
    event_id: DictProperty[str] = DictProperty("event_id")
    origin_server_ts: DictProperty[int] = DictProperty("origin_server_ts")
    content: DefaultDictProperty[JsonMapping] = DefaultDictProperty("content", {})
    unsigned: DefaultDictProperty[JsonMapping] = DefaultDictProperty("unsigned", {})
    redacts: DefaultDictProperty[str | None] = DefaultDictProperty("redacts", None)

    @property
    def membership(self) -> str:
        return self.content["membership"]

    def is_state(self) -> bool:
        return self.get_state_key() is not None

    def get_state_key(self) -> str | None:
        """Get the state key of this event, or None if it's not a state event

        Note that the empty string is a perfectly good state key: most room state
        (name, topic, power levels, ...) uses it.
        """
        return self._dict.get("state_key")

    def get_state_map_key(self) -> StateKey:
        """Get the key under which this event is stored in a room's state map."""
        state_key = self.get_state_key()
        if state_key is None:
            raise ValueError("%r is not a state event" % (self,))
        return (self.type, state_key)

    def get_dict(self) -> JsonDict:
        """Return a (mutable) copy of the underlying event JSON."""
        return _thaw_json(self._dict)

    def get(self, key: str, default: Any | None = None) -> Any:
        return self._dict.get(key, default)

    def __getitem__(self, field: str) -> Any | None:
        return self._dict[field]

    def __contains__(self, field: str) -> bool:
        return field in self._dict

    def keys(self) -> Iterable[str]:
        return self._dict.keys()

    def freeze(self) -> None:
        """'Freeze' the event dict, so it cannot be modified by accident"""

        # this will be a no-op if the event dict is already frozen.
        self._dict = _freeze_json(self._dict)

    def is_frozen(self) -> bool:
        return not isinstance(self._dict, dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return _thaw_json(self._dict) == _thaw_json(other._dict)

    def __str__(self) -> str:
        return self.__repr__()

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} "
            f"event_id={self.get('event_id')}, "
            f"type={self.get('type')}, "
            f"state_key={self.get('state_key')}, "
            f"room_id={self.get('room_id')}"
            ">"
        )


def make_event_from_dict(event_dict: JsonDict, room_id: str | None = None) -> Event:
    """Construct an Event from a wire dict.

    Args:
        event_dict: the event JSON. It is copied, so the caller's dict is never
            mutated.
        room_id: the room the event was received in, if any. Overrides whatever
            the JSON says.
    """
    event = Event(dict(event_dict))
    if room_id is not None:
        event.room_id = room_id
    return event


def is_membership_event(event: Event) -> bool:
    return event.type == EventTypes.Member and event.is_state()
