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


import logging
from typing import Any, Callable

from twisted.internet import defer
from twisted.internet.interfaces import IDelayedCall, IReactorTime

logger = logging.getLogger(__name__)


class Clock:
    """
    A Clock wraps a Twisted reactor and provides utilities on top of it.

    All timers created by a client (rate-limit waits, sync backoff, request
    timeouts) go through this class so that they can be driven by a fake reactor
    in tests and cancelled together by `shutdown`.

    Args:
        reactor: The Twisted reactor to use.
    """

    def __init__(self, reactor: IReactorTime) -> None:
        self._reactor = reactor

        self._delayed_call_id: int = 0
        """Unique ID used to track delayed calls"""

        self._call_id_to_delayed_call: dict[int, IDelayedCall] = {}
        """Mapping from unique call ID to pending delayed call."""

        self._is_shutdown = False

    def shutdown(self) -> None:
        self._is_shutdown = True
        self.cancel_all_delayed_calls()

    async def sleep(self, seconds: float) -> None:
        """Wait for `seconds`.

        The wait is tracked like any other `call_later`, so a sleep that is
        pending when the clock shuts down never resumes. Cancelling the awaiting
        Deferred cancels the underlying call.
        """
        call: IDelayedCall | None = None

        def cancel(_: "defer.Deferred[float]") -> None:
            if call is not None:
                self.cancel_call_later(call, ignore_errs=True)

        d: defer.Deferred[float] = defer.Deferred(cancel)
        call = self.call_later(seconds, d.callback, seconds)
        await d

    def time(self) -> float:
        """Returns the current system time in seconds since epoch."""
        return self._reactor.seconds()

    def time_msec(self) -> int:
        """Returns the current system time in milliseconds since epoch."""
        return int(self.time() * 1000)

    def call_later(
        self, delay: float, callback: Callable, *args: Any, **kwargs: Any
    ) -> IDelayedCall:
        """Call something later

        Args:
            delay: How long to wait in seconds.
            callback: Function to call
            *args: Postional arguments to pass to function.
            **kwargs: Key arguments to pass to function.
        """
        if self._is_shutdown:
            raise Exception("Cannot start delayed call. Clock has been shutdown")

        call_id = self._delayed_call_id
        self._delayed_call_id += 1

        def wrapped_callback(*args: Any, **kwargs: Any) -> None:
            logger.debug("call_later(%s): Executing callback", call_id)
            try:
                callback(*args, **kwargs)
            finally:
                self._call_id_to_delayed_call.pop(call_id, None)

        call = self._reactor.callLater(delay, wrapped_callback, *args, **kwargs)
        self._call_id_to_delayed_call[call_id] = call

        logger.debug("call_later(%s): Scheduled call for %ss later", call_id, delay)
        return call

    def cancel_call_later(self, call: IDelayedCall, ignore_errs: bool = False) -> None:
        try:
            call.cancel()
        except Exception:
            if not ignore_errs:
                raise
        for call_id, tracked in list(self._call_id_to_delayed_call.items()):
            if tracked is call:
                del self._call_id_to_delayed_call[call_id]

    def cancel_all_delayed_calls(self, ignore_errs: bool = True) -> None:
        """
        Stop all scheduled calls created with `call_later`.

        Args:
            ignore_errs: Whether to re-raise errors encountered when cancelling the
            scheduled call.
        """
        # We make a copy here since cancelling may mutate the map mid-iteration.
        for call_id, call in list(self._call_id_to_delayed_call.items()):
            try:
                logger.debug(
                    "cancel_all_delayed_calls: cancelling scheduled call %s", call_id
                )
                call.cancel()
            except Exception:
                if not ignore_errs:
                    raise
        self._call_id_to_delayed_call.clear()
