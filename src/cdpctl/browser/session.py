"""Browser session: the control-plane handle.

BrowserSession threads a cancellation Scope and a call policy (slow motion
delay, trace) through every control call. It is the entry point of the
package: it connects to the endpoint, creates and lists pages, and exposes
event waits.

Two kinds of methods change a session, and they must not be confused:

- Fluent setters (``set_slowmotion``, ``set_trace``, ...) mutate this handle
  and return it.
- Derivations (``context``, ``timeout``) return an independent copy that
  shares only the connection and event bus, with its own child Scope.
  Cancelling a derived session never affects its parent; cancelling or
  closing the parent cancels every derived session.

Example:
    >>> async with BrowserSession(control_url='http://localhost:9222') as browser:
    ...     page = await browser.timeout(10).create_page('https://example.com')
    ...     await page.mouse.click(100, 200)
"""

import copy
import logging
from typing import Any

import httpx

from cdpctl.actor.page import Page
from cdpctl.browser.endpoint import Launcher, resolve_control_url
from cdpctl.browser.profile import SessionProfile, ViewportSize
from cdpctl.browser.views import TargetInfo
from cdpctl.connection.service import ControlConnection
from cdpctl.connection.transport import Transport, WebSocketTransport
from cdpctl.events.service import EventBus, EventHandler, EventWaiter, Subscription
from cdpctl.events.views import Event, EventFilter
from cdpctl.exceptions import CDPCtlError, ConnectError, ControlConnectionError
from cdpctl.scope import Scope
from cdpctl.utils import must

logger = logging.getLogger(__name__)

_ENDPOINT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, KeyError, ValueError)


class BrowserSession:
    """Control-plane handle for one remote browser.

    Attributes:
        profile: Connection settings and call policy of this handle.
    """

    def __init__(
        self,
        profile: SessionProfile | None = None,
        launcher: Launcher | None = None,
        transport_factory: Any = None,
        **kwargs: Any,
    ):
        """Create an unconnected session.

        Args:
            profile: Settings; defaults to SessionProfile.from_env().
            launcher: Async callable returning a control URL, used when the
                configured endpoint is absent or unreachable.
            transport_factory: Async callable opening a Transport for a
                WebSocket URL. Defaults to WebSocketTransport.connect.
            **kwargs: SessionProfile fields overriding ``profile``.

        Example:
            >>> browser = BrowserSession(control_url='ws://127.0.0.1:9222/devtools/browser/abc')
            >>> browser = BrowserSession(SessionProfile(slowmotion=0.5), launcher=my_launcher)
        """
        profile = profile or SessionProfile.from_env()
        if kwargs:
            profile = SessionProfile.model_validate({**profile.model_dump(), **kwargs})
        self.profile = profile
        self._launcher = launcher
        self._transport_factory = transport_factory or WebSocketTransport.connect
        self._root_scope = Scope()
        self._scope = self._root_scope
        self._event_bus = EventBus()
        self._connection: ControlConnection | None = None

    def __repr__(self) -> str:
        state = 'connected' if self.connected else 'disconnected'
        return f'<BrowserSession {state} control_url={self.profile.control_url!r}>'

    # ------------------------------------------------------------------
    # Fluent setters (mutate this handle)
    # ------------------------------------------------------------------

    def set_control_url(self, url: str | None) -> 'BrowserSession':
        """Set the endpoint to connect to."""
        return self._update_profile(control_url=url)

    def set_viewport(self, viewport: ViewportSize | dict | None) -> 'BrowserSession':
        """Set the default viewport applied to newly attached pages."""
        return self._update_profile(viewport=viewport)

    def set_slowmotion(self, delay: float) -> 'BrowserSession':
        """Set the delay in seconds applied before each control call."""
        return self._update_profile(slowmotion=delay)

    def set_trace(self, enable: bool = True) -> 'BrowserSession':
        """Enable or disable logging of every control call."""
        return self._update_profile(trace=enable)

    def set_launcher(self, launcher: Launcher | None) -> 'BrowserSession':
        self._launcher = launcher
        return self

    def set_transport_factory(self, transport_factory: Any) -> 'BrowserSession':
        self._transport_factory = transport_factory
        return self

    def _update_profile(self, **changes: Any) -> 'BrowserSession':
        self.profile = SessionProfile.model_validate({**self.profile.model_dump(), **changes})
        return self

    # ------------------------------------------------------------------
    # Derivations (return an independent copy)
    # ------------------------------------------------------------------

    def context(self, scope: Scope) -> 'BrowserSession':
        """Derive a session whose calls are bounded by a child of ``scope``."""
        derived = copy.copy(self)
        derived._scope = scope.child()
        return derived

    def timeout(self, seconds: float) -> 'BrowserSession':
        """Derive a session whose calls fail with DeadlineExceededError after ``seconds``."""
        derived = copy.copy(self)
        derived._scope = self._scope.child(timeout=seconds)
        return derived

    def cancel(self, reason: str = 'session scope cancelled') -> None:
        """Cancel this handle's scope and every session derived from it."""
        self._scope.cancel(reason)

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def connected(self) -> bool:
        return self._connection is not None and not self._connection.closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> 'BrowserSession':
        """Connect to the endpoint and enable target discovery.

        Uses the configured control URL, falling back to the launcher when the
        URL is absent or cannot be resolved.

        Returns:
            This session, for chaining.

        Raises:
            ConnectError: If resolving, launching, opening the channel or
                enabling discovery fails.
        """
        if self.connected:
            return self
        if self._root_scope.cancelled:
            raise ConnectError('browser session is closed', 'connect')

        connection: ControlConnection | None = None
        try:
            control_url = await self._resolve_endpoint()
            logger.debug(f'Connecting to control endpoint: {control_url}')
            transport = await self._open_transport(control_url)
            connection = ControlConnection(transport, self._event_bus)
            connection.start()
            self._connection = connection

            await self.call('Target.setDiscoverTargets', {'discover': True})
        except CDPCtlError as e:
            await self._abandon(connection)
            if isinstance(e, ConnectError):
                raise
            raise ConnectError(f'failed to connect: {type(e).__name__}: {e.message}', e.method) from e

        logger.info(f'Connected to browser at {self.profile.control_url}')
        return self

    async def _resolve_endpoint(self) -> str:
        url = self.profile.control_url
        if url:
            try:
                return await self._scope.run(
                    resolve_control_url(url, timeout=self.profile.connect_timeout), method='connect'
                )
            except _ENDPOINT_ERRORS as e:
                if self._launcher is None:
                    raise ConnectError(f'cannot resolve control endpoint {url}: {type(e).__name__}: {e}', 'connect') from e
                logger.info(f'Control endpoint {url} unavailable ({type(e).__name__}), launching a browser')
        elif self._launcher is None:
            raise ConnectError('no control URL configured and no launcher available', 'connect')

        try:
            launched_url = await self._scope.run(self._launcher(), method='launch')
        except CDPCtlError:
            raise
        except Exception as e:
            raise ConnectError(f'launcher failed: {type(e).__name__}: {e}', 'launch') from e
        self._update_profile(control_url=launched_url)

        try:
            return await self._scope.run(
                resolve_control_url(launched_url, timeout=self.profile.connect_timeout), method='connect'
            )
        except _ENDPOINT_ERRORS as e:
            raise ConnectError(f'cannot resolve launched endpoint {launched_url}: {type(e).__name__}: {e}', 'launch') from e

    async def _open_transport(self, control_url: str) -> Transport:
        try:
            return await self._scope.run(self._transport_factory(control_url), method='connect')
        except CDPCtlError:
            raise
        except Exception as e:
            raise ConnectError(f'failed to open {control_url}: {type(e).__name__}: {e}', 'connect') from e

    async def _abandon(self, connection: ControlConnection | None) -> None:
        if connection is None:
            return
        self._connection = None
        await connection.close()

    async def close(self) -> None:
        """Close the browser and release the session.

        Issues Browser.close, then cancels the root scope (unblocking every
        operation of this session and all derived sessions) and tears down the
        event bus and connection.

        Raises:
            ControlConnectionError: If the session is not connected, including
                when it was already closed.
        """
        await self.call('Browser.close')
        await self.disconnect('browser session closed')
        logger.info('Browser session closed')

    async def disconnect(self, reason: str = 'browser session disconnected') -> None:
        """Release the session without closing the browser.

        Cancels the root scope, closes the event bus and the connection. The
        browser keeps running and can be reconnected to by a new session.
        """
        self._root_scope.cancel(reason)
        self._event_bus.close()
        if self._connection is not None:
            await self._connection.close()

    async def __aenter__(self) -> 'BrowserSession':
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.connected:
            await self.close()

    # ------------------------------------------------------------------
    # Control calls
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Send a control call through this session's scope and policy.

        Args:
            method: Control method name.
            params: Method parameters.
            session_id: Per-target session to address, if any.

        Returns:
            The result object.

        Raises:
            ControlConnectionError: If not connected or the channel fails.
            RemoteError: If the endpoint answered with an error.
            CancellationError: If this session's scope is cancelled or expires first.
        """
        connection = self._connection
        if connection is None:
            raise ControlConnectionError('not connected', method)
        if connection.closed:
            raise ControlConnectionError('connection closed', method)

        await self._scope.sleep(self.profile.slowmotion, method)
        if self.profile.trace:
            logger.info(f'[trace] {method} {params or {}}' + (f' session={session_id}' if session_id else ''))

        return await self._scope.run(connection.send(method, params, session_id), method)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def create_page(self, url: str) -> Page:
        """Create a new tab and navigate it to ``url``.

        The target is created on about:blank, attached, then navigated. These
        steps are not atomic: when navigation fails the error propagates and
        the target stays open. Close it explicitly if it is not wanted.
        """
        result = await self.call('Target.createTarget', {'url': 'about:blank'})
        page = await self._page(result['targetId'])
        await page.navigate(url)
        return page

    async def pages(self) -> list[Page]:
        """Return an attached Page for every page target of the browser."""
        result = await self.call('Target.getTargets')
        page_list = []
        for target_info in result.get('targetInfos', []):
            info = TargetInfo.model_validate(target_info)
            if info.type != 'page':
                continue
            page_list.append(await self._page(info.target_id))
        return page_list

    async def _page(self, target_id: str) -> Page:
        return await Page.for_target(self, target_id)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def wait_event(self, match: str | EventFilter) -> EventWaiter:
        """Register a wait for the first event matching ``match``.

        The wait is bounded by this session's scope. Await the returned waiter
        for the event, or call ``cancel()`` on it to release it immediately.

        Example:
            >>> waiter = browser.wait_event('Target.targetCreated')
            >>> await browser.call('Target.createTarget', {'url': 'about:blank'})
            >>> event = await waiter
        """
        return self._event_bus.wait(match, self._scope)

    def subscribe(self, handler: EventHandler, match: str | EventFilter | None = None) -> Subscription:
        """Invoke ``handler`` for every matching event until the subscription is cancelled."""
        return self._event_bus.subscribe(handler, match)

    # ------------------------------------------------------------------
    # Convenience forms (abort the process on failure)
    # ------------------------------------------------------------------

    async def must_connect(self) -> 'BrowserSession':
        return await must(self.connect())

    async def must_close(self) -> None:
        await must(self.close())

    async def must_call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        return await must(self.call(method, params, session_id))

    async def must_create_page(self, url: str) -> Page:
        return await must(self.create_page(url))

    async def must_pages(self) -> list[Page]:
        return await must(self.pages())

    async def must_wait_event(self, match: str | EventFilter) -> Event:
        """Wait for the first event matching ``match``, aborting on cancellation."""
        return await must(self.wait_event(match).wait())


# Browser alias for cleaner API
Browser = BrowserSession
