"""cdpctl - control-plane client for driving a remote browser over CDP."""

__version__ = "0.1.0"

from cdpctl.actor import Keyboard, Mouse, Page
from cdpctl.browser.profile import SessionProfile, ViewportSize
from cdpctl.browser.session import Browser, BrowserSession
from cdpctl.browser.views import TargetState
from cdpctl.connection import ControlConnection, Transport, WebSocketTransport
from cdpctl.events import Event, EventBus, EventWaiter, Subscription, method_is
from cdpctl.exceptions import (
    AbortError,
    CancellationError,
    CDPCtlError,
    ClosedTargetError,
    ConnectError,
    ControlConnectionError,
    DeadlineExceededError,
    EventFilterError,
    NavigationError,
    RemoteError,
)
from cdpctl.scope import Scope
from cdpctl.utils import must

__all__ = [
    # Version
    "__version__",
    # Session
    "Browser",  # Alias for BrowserSession
    "BrowserSession",
    "SessionProfile",
    "ViewportSize",
    "Scope",
    # Targets and input
    "Page",
    "Mouse",
    "Keyboard",
    "TargetState",
    # Connection and events
    "ControlConnection",
    "Transport",
    "WebSocketTransport",
    "Event",
    "EventBus",
    "EventWaiter",
    "Subscription",
    "method_is",
    # Errors
    "CDPCtlError",
    "ControlConnectionError",
    "RemoteError",
    "NavigationError",
    "CancellationError",
    "DeadlineExceededError",
    "EventFilterError",
    "ClosedTargetError",
    "ConnectError",
    "AbortError",
    "must",
]
