"""Browser module: session profile, endpoint resolution and target views.

BrowserSession lives in ``cdpctl.browser.session``; it is not imported here
because it depends on ``cdpctl.actor``, which depends on this package.
"""

from cdpctl.browser.endpoint import Launcher, resolve_control_url
from cdpctl.browser.profile import SessionProfile, ViewportSize
from cdpctl.browser.views import Target, TargetInfo, TargetState

__all__ = [
    "Launcher",
    "SessionProfile",
    "Target",
    "TargetInfo",
    "TargetState",
    "ViewportSize",
    "resolve_control_url",
]
