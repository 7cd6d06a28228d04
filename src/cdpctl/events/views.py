"""Event model and event filters."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """An unsolicited notification received from the control channel.

    Events carry no identity beyond their content. ``session_id`` is set when
    the notification belongs to a flattened per-target session.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    method: str
    params: dict[str, Any] = Field(default_factory=dict)
    session_id: str | None = Field(default=None, alias='sessionId')


EventFilter = Callable[[Event], bool]


def method_is(name: str) -> EventFilter:
    """Filter matching events whose method equals ``name``."""

    def _filter(event: Event) -> bool:
        return event.method == name

    _filter.__name__ = f'method_is({name!r})'
    return _filter


def for_session(session_id: str | None, inner: EventFilter | None = None) -> EventFilter:
    """Filter matching events of one per-target session, optionally narrowed by ``inner``."""

    def _filter(event: Event) -> bool:
        if event.session_id != session_id:
            return False
        return inner(event) if inner is not None else True

    _filter.__name__ = getattr(inner, '__name__', 'for_session')
    return _filter


def as_filter(match: 'str | EventFilter | None') -> EventFilter:
    """Normalize a method name, a predicate or None (match everything) into a predicate."""
    if match is None:
        return lambda event: True
    if isinstance(match, str):
        return method_is(match)
    return match
