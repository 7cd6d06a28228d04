"""Actor module for target-level interactions."""

from cdpctl.actor.keyboard import Keyboard
from cdpctl.actor.mouse import Mouse
from cdpctl.actor.page import Page

__all__ = [
    "Keyboard",
    "Mouse",
    "Page",
]
