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

import inspect
import logging
from typing import Awaitable, Callable, Final

from synclient.events import Event
from synclient.metrics import listener_errors_counter

logger = logging.getLogger(__name__)

# Register a listener for this event type to be told about every event.
ANY_EVENT: Final = "*"

# A listener is called with the room the event was received in (or None for
# events outside of rooms, like presence) and the event itself.
EventListener = Callable[[str | None, Event], None | Awaitable[None]]

# (event type or ANY_EVENT, room ID or None for all rooms)
_ListenerKey = tuple[str, str | None]


class ListenerRegistry:
    """Keeps track of which callbacks want to hear about which events.

    Listeners are keyed on an event type (or `ANY_EVENT`) and an optional room ID.
    For any one event, listeners are called in this order:

    1. listeners for the event's type in the event's room;
    2. listeners for the event's type in any room;
    3. `ANY_EVENT` listeners in the event's room;
    4. `ANY_EVENT` listeners in any room.

    Within each group, listeners are called in the order they were added.
    """

    def __init__(self) -> None:
        self._listeners: dict[_ListenerKey, list[EventListener]] = {}

    def add_listener(
        self, event_type: str, callback: EventListener, room_id: str | None = None
    ) -> None:
        """Register a callback.

        Args:
            event_type: the event type to listen for, or `ANY_EVENT`.
            callback: the function to call. May return an awaitable, in which case
                it is awaited before the next listener is called.
            room_id: only call the listener for events in this room. If None, the
                listener is called for matching events wherever they came from.
        """
        self._listeners.setdefault((event_type, room_id), []).append(callback)

    def remove_listener(
        self, event_type: str, callback: EventListener, room_id: str | None = None
    ) -> None:
        """Remove one registration of `callback`.

        Raises:
            KeyError if the callback is not registered with this type and room.
        """
        key = (event_type, room_id)
        callbacks = self._listeners.get(key, [])
        try:
            callbacks.remove(callback)
        except ValueError:
            raise KeyError(key)
        if not callbacks:
            del self._listeners[key]

    def get_listeners(
        self, event_type: str, room_id: str | None
    ) -> list[EventListener]:
        """Return the listeners to call for an event, in the order to call them."""
        keys: list[_ListenerKey] = []
        if room_id is not None:
            keys.append((event_type, room_id))
        keys.append((event_type, None))
        if event_type != ANY_EVENT:
            if room_id is not None:
                keys.append((ANY_EVENT, room_id))
            keys.append((ANY_EVENT, None))

        result: list[EventListener] = []
        for key in keys:
            result.extend(self._listeners.get(key, ()))
        return result

    async def notify(self, room_id: str | None, event: Event) -> None:
        """Call every listener interested in `event`.

        An exception from one listener is logged and does not stop the other
        listeners from being called.
        """
        for callback in self.get_listeners(event.type, room_id):
            try:
                result = callback(room_id, event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                listener_errors_counter.inc()
                logger.exception(
                    "Listener %r failed to handle %r in room %s",
                    callback,
                    event,
                    room_id,
                )
