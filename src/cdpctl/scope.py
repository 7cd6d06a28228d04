"""Hierarchical cancellation scopes.

A Scope is the cancellation/timeout context threaded through every control
call. Scopes form a tree: cancelling a scope cancels every scope derived from
it, never its parent. A timeout is a cancellation that fires at a deadline, and
a child's deadline is never later than its parent's.

Example:
    >>> root = Scope()
    >>> call_scope = root.child(timeout=5.0)
    >>> result = await call_scope.run(connection.send('Target.getTargets'))
    >>> root.cancel('shutting down')  # also cancels call_scope
"""

import asyncio
import inspect
import logging
import time
import weakref
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from cdpctl.exceptions import CancellationError, DeadlineExceededError

logger = logging.getLogger(__name__)

T = TypeVar('T')

ScopeCallback = Callable[['Scope'], Any]


def _discard(awaitable: Awaitable[Any]) -> None:
    """Close an awaitable that will never be awaited."""
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    elif isinstance(awaitable, asyncio.Future):
        awaitable.cancel()


def _consume(task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f'Abandoned operation finished with {type(task.exception()).__name__}')


class Scope:
    """Cancellation/timeout context with downward-only propagation."""

    def __init__(self, parent: 'Scope | None' = None, timeout: float | None = None):
        self._parent = parent
        self._children: weakref.WeakSet[Scope] = weakref.WeakSet()
        self._callbacks: list[ScopeCallback] = []
        self._reason: str | None = None
        self._expired = False
        self._event: asyncio.Event | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._timeout = timeout

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent._deadline is not None:
            if deadline is None or parent._deadline < deadline:
                deadline = parent._deadline
                self._timeout = parent._timeout
        self._deadline = deadline

        if parent is not None:
            if parent.cancelled:
                self._reason = parent._reason
                self._expired = parent._expired
            else:
                parent._children.add(self)

    def __repr__(self) -> str:
        state = 'cancelled' if self._reason is not None else 'active'
        return f'<Scope {state} deadline={self._deadline}>'

    def child(self, timeout: float | None = None) -> 'Scope':
        """Derive a scope that is cancelled whenever this one is."""
        return Scope(self, timeout=timeout)

    @property
    def parent(self) -> 'Scope | None':
        return self._parent

    @property
    def deadline(self) -> float | None:
        """Deadline on the time.monotonic() clock, or None."""
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        if self._reason is None and self._deadline is not None and time.monotonic() >= self._deadline:
            self._propagate('deadline exceeded', expired=True)
        return self._reason is not None

    @property
    def error(self) -> CancellationError | None:
        """The error operations on this scope fail with, or None while active."""
        if not self.cancelled:
            return None
        return self._error()

    def cancel(self, reason: str = 'scope cancelled') -> None:
        """Cancel this scope and every scope derived from it."""
        self._propagate(reason, expired=False)

    def add_done_callback(self, callback: ScopeCallback) -> None:
        """Run ``callback(scope)`` once this scope is cancelled or expires."""
        if self.cancelled:
            callback(self)
            return
        self._callbacks.append(callback)
        self._arm_timer()

    def remove_done_callback(self, callback: ScopeCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    async def run(self, awaitable: Awaitable[T], method: str | None = None) -> T:
        """Await ``awaitable`` unless this scope is cancelled or expires first.

        Args:
            awaitable: Coroutine or future to run.
            method: Control method name attached to the raised error.

        Returns:
            The awaitable's result.

        Raises:
            CancellationError: If the scope was cancelled first.
            DeadlineExceededError: If the scope's deadline passed first.
        """
        if self.cancelled:
            _discard(awaitable)
            raise self._error(method)

        task = asyncio.ensure_future(awaitable)
        signal = asyncio.ensure_future(self._signal().wait())
        try:
            done, _ = await asyncio.wait(
                {task, signal},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            signal.cancel()

        if task in done:
            return task.result()

        task.cancel()
        task.add_done_callback(_consume)
        if not self.cancelled:
            self._propagate('deadline exceeded', expired=True)
        raise self._error(method)

    async def sleep(self, seconds: float, method: str | None = None) -> None:
        """Sleep for ``seconds`` unless the scope is cancelled first."""
        if seconds <= 0:
            if self.cancelled:
                raise self._error(method)
            return
        await self.run(asyncio.sleep(seconds), method)

    def _signal(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._reason is not None:
                self._event.set()
        return self._event

    def _error(self, method: str | None = None) -> CancellationError:
        if self._expired:
            return DeadlineExceededError(self._reason or 'deadline exceeded', method, timeout=self._timeout)
        return CancellationError(self._reason or 'scope cancelled', method)

    def _arm_timer(self) -> None:
        if self._timer is not None or self._deadline is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        delay = max(0.0, self._deadline - time.monotonic())
        self._timer = loop.call_later(delay, self._propagate, 'deadline exceeded', True)

    def _propagate(self, reason: str, expired: bool) -> None:
        if self._reason is not None:
            return
        self._reason = reason
        self._expired = expired

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._event is not None:
            self._event.set()

        for child in list(self._children):
            child._propagate(reason, expired)
        self._children.clear()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logger.error(f'Scope callback {callback!r} failed: {type(e).__name__}: {e}')
