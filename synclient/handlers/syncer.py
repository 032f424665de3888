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

import abc
import logging
from typing import TYPE_CHECKING, Callable, Iterable

from synclient.api.constants import EventTypes
from synclient.api.errors import Codes, HttpResponseException, InvalidSyncResponseError
from synclient.config.sync import DEFAULT_FILTER
from synclient.events import Event, is_membership_event
from synclient.metrics import dispatched_events_counter
from synclient.notifier import EventListener, ListenerRegistry
from synclient.types import JsonDict, MutableStateMap
from synclient.types.sync import SyncResponse

if TYPE_CHECKING:
    from synclient.config.sync import SyncConfig

logger = logging.getLogger(__name__)


class Syncer(metaclass=abc.ABCMeta):
    """Decides what to do with the results of the sync loop.

    The sync loop calls `process_response` for every successful /sync,
    `on_failed_sync` whenever a /sync fails, and `get_filter_json` once, the
    first time it needs a filter for a user.
    """

    @abc.abstractmethod
    async def process_response(self, response: SyncResponse, since: str | None) -> None:
        """Handle one sync response. Raising terminates the sync loop.

        Args:
            response: the decoded response.
            since: the batch token the response was requested from; None for an
                initial sync.
        """

    @abc.abstractmethod
    async def on_failed_sync(
        self, response: SyncResponse | None, error: Exception
    ) -> float:
        """Decide whether and when to retry a failed sync.

        Args:
            response: always None; failed syncs never expose a partial response.
            error: what went wrong.

        Returns:
            how long to wait, in seconds, before retrying.

        Raises:
            Anything: the sync loop stops and the exception is propagated to
                the caller of `sync()`.
        """

    @abc.abstractmethod
    def get_filter_json(self, user_id: str) -> JsonDict:
        """Return the filter to upload for `user_id` before the first sync."""


class Room:
    """What the syncer remembers about a room between syncs.

    Attributes:
        room_id: the room's ID.
        state: the latest state event seen for each (type, state_key).
    """

    def __init__(self, room_id: str):
        self.room_id = room_id
        self.state: MutableStateMap[Event] = {}

    def update_state(self, event: Event) -> None:
        """Record a state event, replacing any earlier one with the same key.

        The event is frozen, since it is now shared with everybody who looks at
        the room.
        """
        event.freeze()
        self.state[event.get_state_map_key()] = event

    def get_state_event(self, event_type: str, state_key: str = "") -> Event | None:
        return self.state.get((event_type, state_key))

    def get_membership_state(self, user_id: str) -> str | None:
        """Return the membership of `user_id` in this room, if we know it."""
        event = self.get_state_event(EventTypes.Member, user_id)
        if event is None or not is_membership_event(event):
            return None
        return event.content.get("membership")

    def __repr__(self) -> str:
        return "<Room %s (%d state events)>" % (self.room_id, len(self.state))


class DefaultSyncer(Syncer):
    """A `Syncer` which calls listeners from a `ListenerRegistry` for every event
    it receives, and tracks the current state of each room.

    Within a sync response, events are dispatched in this order:

    * rooms we have left: state and account data, then the timeline; after
      which we forget the room's state;
    * rooms we have been invited to;
    * rooms we have knocked on;
    * rooms we are in: state, account data, ephemeral events, then the timeline;
    * presence, then global account data, then to-device messages.

    A state event is only added to the room's state once its listeners have
    returned, so listeners can compare it against `get_room(room_id).state`.

    Args:
        user_id: the user we are syncing for.
        registry: where to find listeners.
        config: the client's sync configuration, for the filter and the retry
            interval. If None, the defaults are used.
    """

    def __init__(
        self,
        user_id: str,
        registry: ListenerRegistry,
        config: "SyncConfig | None" = None,
    ):
        self.user_id = user_id
        self.registry = registry

        if config is not None:
            self._filter = config.filter
            self._failed_sync_backoff = config.failed_sync_backoff
        else:
            self._filter = DEFAULT_FILTER
            self._failed_sync_backoff = 10.0

        self.rooms: dict[str, Room] = {}

    def get_room(self, room_id: str) -> Room:
        """Return the state we have for `room_id`, creating an empty entry if
        we have never seen the room."""
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self.rooms[room_id] = room
        return room

    def on_event_type(
        self, event_type: str, room_id: str | None = None
    ) -> Callable[[EventListener], EventListener]:
        """Decorator which registers the decorated function as a listener.

        Example:

            @syncer.on_event_type(EventTypes.Message)
            async def on_message(room_id, event):
                ...
        """

        def decorator(callback: EventListener) -> EventListener:
            self.registry.add_listener(event_type, callback, room_id)
            return callback

        return decorator

    async def process_response(self, response: SyncResponse, since: str | None) -> None:
        logger.debug(
            "Processing sync from %s: %d joined, %d invited, %d knocked, %d left",
            since,
            len(response.joined),
            len(response.invited),
            len(response.knocked),
            len(response.left),
        )

        for room_id, left in response.left.items():
            await self._dispatch(
                "leave", room_id, left.account_data, update_state=False
            )
            await self._dispatch("leave", room_id, left.state, update_state=False)
            await self._dispatch(
                "leave", room_id, left.timeline.events, update_state=False
            )
            self.rooms.pop(room_id, None)

        for room_id, invited in response.invited.items():
            await self._dispatch("invite", room_id, invited.invite_state)

        for room_id, knocked in response.knocked.items():
            await self._dispatch("knock", room_id, knocked.knock_state)

        for room_id, joined in response.joined.items():
            await self._dispatch("join", room_id, joined.state, update_state=True)
            await self._dispatch("join", room_id, joined.account_data)
            await self._dispatch("join", room_id, joined.ephemeral)
            await self._dispatch(
                "join", room_id, joined.timeline.events, update_state=True
            )

        await self._dispatch("presence", None, response.presence)
        await self._dispatch("account_data", None, response.account_data)
        await self._dispatch("to_device", None, response.to_device)

    async def on_failed_sync(
        self, response: SyncResponse | None, error: Exception
    ) -> float:
        if (
            isinstance(error, HttpResponseException)
            and error.errcode == Codes.UNKNOWN_TOKEN
        ):
            # Retrying with a revoked token will never succeed.
            logger.error("Access token rejected by the server; giving up: %s", error)
            raise error

        return self._failed_sync_backoff

    def get_filter_json(self, user_id: str) -> JsonDict:
        return self._filter

    async def _dispatch(
        self,
        section: str,
        room_id: str | None,
        events: Iterable[Event],
        update_state: bool = False,
    ) -> None:
        """Pass each event to its listeners in turn.

        Args:
            section: which part of the response the events came from, for metrics.
            room_id: the room the events came from, or None if they are not room
                events. Attached to each event.
            events: the events, in the order the server sent them.
            update_state: whether to record state events in the room's state
                after dispatching them.

        Raises:
            InvalidSyncResponseError if an event has no type.
        """
        for event in events:
            event_type = event.get("type")
            if not isinstance(event_type, str):
                raise InvalidSyncResponseError(
                    "Event in %s section of room %s has no valid type: %r"
                    % (section, room_id, event)
                )

            if room_id is not None:
                event.room_id = room_id

            dispatched_events_counter.labels(section).inc()
            await self.registry.notify(room_id, event)

            if update_state and room_id is not None and event.is_state():
                self.get_room(room_id).update_state(event)
