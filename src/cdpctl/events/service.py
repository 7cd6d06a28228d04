"""Fan-out event bus for control-channel notifications.

The receive loop publishes every unsolicited frame here. Publishing never
awaits and never runs subscriber code: each waiter and each subscription owns
a private queue, and predicates and handlers run in a task owned by that registration.
A slow consumer therefore cannot stall the receive loop or other consumers.

Every event is delivered to the snapshot of registrations that exist at
publish time, in the order the events were received.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from cdpctl.events.views import Event, EventFilter, as_filter
from cdpctl.exceptions import EventFilterError
from cdpctl.scope import Scope

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], Any]


class EventWaiter:
    """A pending wait for the first event matching a predicate.

    Registration happens on construction, so events published between
    creating the waiter and awaiting it are not missed. A registered waiter
    matches in its own task: it is released on the first match even if
    nobody ever awaits it. Must be created from a running event loop.

    Example:
        >>> waiter = bus.wait('Page.loadEventFired', scope)
        >>> await page.navigate(url)
        >>> event = await waiter
    """

    def __init__(self, bus: 'EventBus', predicate: EventFilter, scope: Scope, label: str | None = None):
        self._bus = bus
        self._predicate = predicate
        self._scope = scope
        self._label = label
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._result: asyncio.Future[Event] = asyncio.get_running_loop().create_future()
        self._task: asyncio.Task | None = None
        scope.add_done_callback(self._release)

    @property
    def done(self) -> bool:
        return self._result.done() or self._scope.cancelled

    @property
    def scope(self) -> Scope:
        return self._scope

    def cancel(self) -> None:
        """Abandon the wait and free the registration immediately."""
        self._scope.cancel('event wait cancelled')

    async def wait(self) -> Event:
        """Return the matching event.

        Raises:
            CancellationError: If the wait was cancelled, its scope was
                cancelled or its deadline passed first.
            EventFilterError: If the predicate raised on an event.
        """
        if self._result.done() and not self._result.cancelled():
            return self._result.result()
        try:
            return await self._scope.run(self._result, method=self._label)
        finally:
            self._bus._discard_waiter(self)

    def __await__(self):
        return self.wait().__await__()

    def _start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._match())

    def _deliver(self, event: Event) -> None:
        self._queue.put_nowait(event)

    def _release(self, scope: Scope) -> None:
        self._bus._discard_waiter(self)
        if self._task is not None:
            self._task.cancel()

    async def _match(self) -> None:
        try:
            while True:
                event = await self._queue.get()
                try:
                    matched = self._predicate(event)
                except Exception as e:
                    logger.debug(f'Event filter {self._label!r} failed on {event.method}: {type(e).__name__}: {e}')
                    self._settle(exception=EventFilterError(f'filter failed on {event.method}: {type(e).__name__}: {e}', self._label))
                    return
                if matched:
                    self._settle(event=event)
                    return
        finally:
            self._bus._discard_waiter(self)

    def _settle(self, event: Event | None = None, exception: BaseException | None = None) -> None:
        if self._result.done():
            return
        if exception is not None:
            self._result.set_exception(exception)
        else:
            self._result.set_result(event)


class Subscription:
    """Fire-and-forget handler invoked for every matching event."""

    def __init__(self, bus: 'EventBus', handler: EventHandler, predicate: EventFilter):
        self._bus = bus
        self._handler = handler
        self._predicate = predicate
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._task = asyncio.get_running_loop().create_task(self._drain())

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        """Stop delivering events to the handler."""
        self._bus._discard_subscription(self)
        self._task.cancel()

    def _deliver(self, event: Event) -> None:
        self._queue.put_nowait(event)

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if not self._predicate(event):
                    continue
                result = self._handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f'Event handler {self._handler!r} failed on {event.method}: {type(e).__name__}: {e}')


class EventBus:
    """Publish/subscribe hub owned by one browser session."""

    def __init__(self):
        self._waiters: set[EventWaiter] = set()
        self._subscriptions: set[Subscription] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event: Event) -> None:
        """Hand ``event`` to every waiter and subscription registered right now."""
        if self._closed:
            logger.debug(f'Dropping {event.method}: event bus closed')
            return
        for waiter in list(self._waiters):
            waiter._deliver(event)
        for subscription in list(self._subscriptions):
            subscription._deliver(event)

    def wait(self, match: 'str | EventFilter | None', scope: Scope | None = None) -> EventWaiter:
        """Register a wait for the first event matching ``match``.

        Must be called from a running event loop.

        Args:
            match: Method name, predicate, or None for any event.
            scope: Scope bounding the wait. The waiter gets its own child scope,
                so cancelling the waiter never affects ``scope``.

        Returns:
            The registered EventWaiter.
        """
        label = match if isinstance(match, str) else getattr(match, '__name__', None)
        waiter_scope = (scope or Scope()).child()
        waiter = EventWaiter(self, as_filter(match), waiter_scope, label=label)
        if self._closed:
            waiter_scope.cancel('event bus closed')
        elif not waiter_scope.cancelled:
            self._waiters.add(waiter)
            waiter._start()
        return waiter

    def subscribe(self, handler: EventHandler, match: 'str | EventFilter | None' = None) -> Subscription:
        """Invoke ``handler`` for every future event matching ``match``.

        Must be called from a running event loop.
        """
        subscription = Subscription(self, handler, as_filter(match))
        if self._closed:
            subscription.cancel()
        else:
            self._subscriptions.add(subscription)
        return subscription

    def close(self) -> None:
        """Cancel every waiter and subscription and refuse new ones."""
        if self._closed:
            return
        self._closed = True
        self.cancel_waiters('event bus closed')
        for subscription in list(self._subscriptions):
            subscription.cancel()
        self._subscriptions.clear()

    def cancel_waiters(self, reason: str) -> None:
        """Cancel every registered waiter. Subscriptions and later waits are unaffected."""
        for waiter in list(self._waiters):
            waiter.scope.cancel(reason)
        self._waiters.clear()

    def _discard_waiter(self, waiter: EventWaiter) -> None:
        self._waiters.discard(waiter)

    def _discard_subscription(self, subscription: Subscription) -> None:
        self._subscriptions.discard(subscription)
