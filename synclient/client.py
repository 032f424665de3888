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

"""The object which ties together all the parts of a sync client."""

import functools
import logging
from typing import Any, Callable, TypeVar, cast

from twisted.internet.interfaces import IReactorCore, IReactorTime
from twisted.web.client import Agent, HTTPConnectionPool
from twisted.web.iweb import IAgent

from synclient.config import ClientConfig
from synclient.handlers.sync import SyncHandler
from synclient.handlers.syncer import DefaultSyncer, Syncer
from synclient.http.client import MatrixHttpClient
from synclient.notifier import EventListener, ListenerRegistry
from synclient.rest.client import RestClient
from synclient.storage import InMemorySyncStore, SyncStore
from synclient.types import JsonSerializable
from synclient.util.clock import Clock

logger = logging.getLogger(__name__)


T = TypeVar("T")
F = TypeVar("F", bound=Callable[["MatrixClient"], Any])


def cache_in_self(builder: F) -> F:
    """Wraps a function called e.g. `get_foo`, checking if `self._foo` exists and
    returning if so. If not, calls the given function and sets `self._foo` to it.

    Also ensures that dependency cycles throw an exception correctly, rather
    than overflowing the stack.
    """

    if not builder.__name__.startswith("get_"):
        raise Exception(
            "@cache_in_self can only be used on functions starting with `get_`"
        )

    # get_attr -> _attr
    depname = builder.__name__[len("get") :]

    building = [False]

    @functools.wraps(builder)
    def _get(self: "MatrixClient") -> T:
        try:
            dep = getattr(self, depname)
            return dep
        except AttributeError:
            pass

        # Prevent cyclic dependencies from deadlocking
        if building[0]:
            raise ValueError("Cyclic dependency while building %s" % (depname,))

        building[0] = True
        try:
            dep = builder(self)
            setattr(self, depname, dep)
        finally:
            building[0] = False

        return dep

    return cast(F, _get)


class MatrixClient:
    """A client for one Matrix user on one homeserver.

    Components are built lazily the first time they are asked for, and each is
    handed this object so it can fetch whatever else it needs.

    Args:
        config: the client's configuration.
        reactor: the Twisted reactor to use. Defaults to the global reactor.
        store: where to persist sync tokens and filter IDs. Defaults to an
            in-memory store.
        syncer: what to do with sync responses. Defaults to a `DefaultSyncer`
            dispatching to `get_listener_registry()`.
        agent: the HTTP agent to make requests with. Defaults to an `Agent` with
            a persistent connection pool.
    """

    def __init__(
        self,
        config: ClientConfig,
        reactor: IReactorTime | None = None,
        store: SyncStore | None = None,
        syncer: Syncer | None = None,
        agent: IAgent | None = None,
    ):
        if not reactor:
            from twisted.internet import reactor as _reactor

            reactor = cast(IReactorTime, _reactor)

        self._reactor = reactor
        self.config = config

        self._user_id = config.account.user_id
        self._access_token = config.account.access_token

        if store is not None:
            self._store = store
        if syncer is not None:
            self._syncer = syncer
        if agent is not None:
            self._http_agent = agent

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def access_token(self) -> str | None:
        """The token sent with every request, if any. Read afresh for each
        request, so changes take effect immediately."""
        return self._access_token

    def set_credentials(self, user_id: str, access_token: str) -> None:
        """Use a different identity for subsequent requests, e.g. after logging
        in with `get_rest_client().login(...)`."""
        self._user_id = user_id
        self._access_token = access_token

    def clear_credentials(self) -> None:
        self._access_token = None

    @cache_in_self
    def get_clock(self) -> Clock:
        return Clock(self._reactor)

    @cache_in_self
    def get_http_agent(self) -> IAgent:
        pool = HTTPConnectionPool(self._reactor)
        # keep the connection used for long-polling open between syncs
        pool.maxPersistentPerHost = 5
        pool.cachedConnectionTimeout = 2 * 60
        return Agent(cast(IReactorCore, self._reactor), pool=pool)

    @cache_in_self
    def get_http_client(self) -> MatrixHttpClient:
        return MatrixHttpClient(self)

    @cache_in_self
    def get_rest_client(self) -> RestClient:
        return RestClient(self)

    @cache_in_self
    def get_store(self) -> SyncStore:
        return InMemorySyncStore()

    @cache_in_self
    def get_listener_registry(self) -> ListenerRegistry:
        return ListenerRegistry()

    @cache_in_self
    def get_syncer(self) -> Syncer:
        return DefaultSyncer(
            self._user_id, self.get_listener_registry(), self.config.sync
        )

    @cache_in_self
    def get_sync_handler(self) -> SyncHandler:
        return SyncHandler(self)

    async def sync(self) -> None:
        """Run the sync loop. See `SyncHandler.sync`."""
        await self.get_sync_handler().sync()

    def stop_sync(self) -> None:
        self.get_sync_handler().stop_sync()

    async def make_request(
        self,
        method: str,
        path: list[str] | tuple[str, ...],
        json_body: JsonSerializable | None = None,
        query: dict[str, str] | None = None,
    ) -> Any:
        """Make an arbitrary request under the client-server API prefix.

        Args:
            method: HTTP method.
            path: the path segments after the prefix, unencoded.
            json_body: the body to send, if any.
            query: query parameters, if any.
        """
        url = self.get_rest_client().build_url_with_query(path, query or {})
        return await self.get_http_client().request(method, url, json_body=json_body)

    def add_listener(
        self, event_type: str, callback: EventListener, room_id: str | None = None
    ) -> None:
        """Shortcut for `get_listener_registry().add_listener`."""
        self.get_listener_registry().add_listener(event_type, callback, room_id)
