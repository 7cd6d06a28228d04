"""Page class for target-level operations."""

import copy
import logging
from typing import TYPE_CHECKING, Any

from cdpctl.actor.keyboard import Keyboard
from cdpctl.actor.mouse import Mouse
from cdpctl.browser.profile import ViewportSize
from cdpctl.browser.views import Target, TargetInfo, TargetState
from cdpctl.events.service import EventWaiter, Subscription
from cdpctl.events.views import Event, EventFilter, as_filter, for_session
from cdpctl.exceptions import ClosedTargetError, NavigationError, RemoteError
from cdpctl.utils import must

if TYPE_CHECKING:
    from cdpctl.browser.session import BrowserSession
    from cdpctl.scope import Scope

logger = logging.getLogger(__name__)


class Page:
    """Handle of one browser tab.

    A Page goes through CREATED -> ATTACHED -> ACTIVE -> CLOSED. Attachment
    to a flattened per-target session happens once, in ``for_target``. Once
    closed, every call fails with ClosedTargetError.

    The page never owns the BrowserSession it calls through: closing the page
    closes the tab, not the session. ``mouse`` and ``keyboard`` look up
    ``page.session`` on every action, so ``set_session`` re-targets them.

    Example:
        >>> page = await browser.create_page('https://example.com')
        >>> load = page.wait_load()
        >>> await page.reload()
        >>> await load
        >>> await page.keyboard.type('hello')
        >>> await page.close()
    """

    def __init__(self, browser_session: 'BrowserSession', target: Target):
        self._browser_session = browser_session
        self._target = target
        self.mouse = Mouse(self)
        self.keyboard = Keyboard(self)

    def __repr__(self) -> str:
        return f'<Page target_id={self.target_id!r} state={self.state.value}>'

    @classmethod
    async def for_target(cls, browser_session: 'BrowserSession', target_id: str) -> 'Page':
        """Create a Page for an existing target and attach to it."""
        page = cls(browser_session, Target(target_id=target_id))
        return await page._attach()

    async def _attach(self) -> 'Page':
        result = await self._browser_session.call(
            'Target.attachToTarget',
            {'targetId': self.target_id, 'flatten': True},
        )
        self._target.session_id = result['sessionId']
        self._target.state = TargetState.ATTACHED
        logger.debug(f'Attached to target {self.target_id} (session={self._target.session_id})')

        await self.call('Page.enable')
        viewport = self._browser_session.profile.viewport
        if viewport is not None:
            await self.set_viewport(viewport)

        self._target.state = TargetState.ACTIVE
        return self

    @property
    def target_id(self) -> str:
        return self._target.target_id

    @property
    def session_id(self) -> str | None:
        """The flattened per-target session id."""
        return self._target.session_id

    @property
    def state(self) -> TargetState:
        return self._target.state

    @property
    def target(self) -> Target:
        return self._target

    @property
    def session(self) -> 'BrowserSession':
        """The browser session this page currently calls through."""
        return self._browser_session

    def set_session(self, browser_session: 'BrowserSession') -> 'Page':
        """Make this page (and its input devices) call through ``browser_session``."""
        self._browser_session = browser_session
        return self

    def context(self, scope: 'Scope') -> 'Page':
        """Derive a copy of this page bound to ``session.context(scope)``."""
        return self._derive(self._browser_session.context(scope))

    def timeout(self, seconds: float) -> 'Page':
        """Derive a copy of this page whose calls time out after ``seconds``."""
        return self._derive(self._browser_session.timeout(seconds))

    def _derive(self, browser_session: 'BrowserSession') -> 'Page':
        derived = copy.copy(self)
        derived._browser_session = browser_session
        derived.mouse = Mouse(derived)
        derived.keyboard = Keyboard(derived)
        return derived

    async def call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a control call to this target's session.

        Raises:
            ClosedTargetError: If the target is closed.
        """
        if self._target.closed:
            raise ClosedTargetError(self.target_id, method)
        return await self._browser_session.call(method, params, session_id=self._target.session_id)

    async def navigate(self, url: str) -> dict[str, Any]:
        """Navigate to a URL.

        Args:
            url: Target URL

        Returns:
            The Page.navigate result (frameId, loaderId).

        Raises:
            NavigationError: If the browser reports the navigation failed.
        """
        result = await self.call('Page.navigate', {'url': url})
        if result.get('errorText'):
            raise NavigationError(f'navigation to {url} failed: {result["errorText"]}', url)
        return result

    async def reload(self) -> None:
        """Reload the page."""
        await self.call('Page.reload')

    async def evaluate(self, expression: str, await_promise: bool = True) -> Any:
        """Evaluate a JavaScript expression and return its value.

        Raises:
            RemoteError: If the expression throws.
        """
        result = await self.call(
            'Runtime.evaluate',
            {
                'expression': expression,
                'returnByValue': True,
                'awaitPromise': await_promise,
            },
        )
        if 'exceptionDetails' in result:
            details = result['exceptionDetails']
            raise RemoteError(
                f'evaluation failed: {details.get("text", "exception")}',
                'Runtime.evaluate',
                data=details,
            )
        return result.get('result', {}).get('value')

    async def screenshot(self, format: str = 'png', quality: int | None = None) -> str:
        """Take a screenshot of the page.

        Args:
            format: Image format ('jpeg', 'png', 'webp')
            quality: Quality 0-100 for JPEG format

        Returns:
            Base64-encoded image data
        """
        params: dict[str, Any] = {'format': format}
        if quality is not None and format.lower() == 'jpeg':
            params['quality'] = quality
        result = await self.call('Page.captureScreenshot', params)
        return result['data']

    async def set_viewport(self, viewport: ViewportSize) -> None:
        """Override the page's device metrics."""
        await self.call('Emulation.setDeviceMetricsOverride', viewport.to_params())

    async def get_info(self) -> TargetInfo:
        """Get target information (url, title, type)."""
        if self._target.closed:
            raise ClosedTargetError(self.target_id, 'Target.getTargetInfo')
        result = await self._browser_session.call('Target.getTargetInfo', {'targetId': self.target_id})
        return TargetInfo.model_validate(result['targetInfo'])

    def wait_event(self, match: str | EventFilter) -> EventWaiter:
        """Wait for the first event of this target matching ``match``."""
        return self._browser_session.wait_event(for_session(self.session_id, as_filter(match)))

    def wait_load(self) -> EventWaiter:
        """Wait for this page's next load event. Register before triggering the load."""
        return self.wait_event('Page.loadEventFired')

    def watch_destroyed(self) -> Subscription:
        """Mark this page closed when the browser reports its target destroyed.

        Must be called from a running event loop. Cancel the returned
        subscription to stop watching.
        """

        def _on_destroyed(event: Event) -> None:
            if event.params.get('targetId') == self.target_id and not self._target.closed:
                logger.debug(f'Target {self.target_id} destroyed')
                self._target.state = TargetState.CLOSED

        return self._browser_session.subscribe(_on_destroyed, 'Target.targetDestroyed')

    async def close(self) -> None:
        """Close the tab.

        Raises:
            ClosedTargetError: If the page is already closed.
        """
        if self._target.closed:
            raise ClosedTargetError(self.target_id, 'Target.closeTarget')
        await self._browser_session.call('Target.closeTarget', {'targetId': self.target_id})
        self._target.state = TargetState.CLOSED
        logger.debug(f'Closed target {self.target_id}')

    async def must_call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await must(self.call(method, params))

    async def must_navigate(self, url: str) -> dict[str, Any]:
        return await must(self.navigate(url))

    async def must_close(self) -> None:
        await must(self.close())
