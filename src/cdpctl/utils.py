"""Convenience layer turning control-plane failures into a process abort."""

import logging
from collections.abc import Awaitable
from typing import TypeVar

from cdpctl.exceptions import AbortError, CDPCtlError

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def must(awaitable: Awaitable[T]) -> T:
    """Await ``awaitable`` and abort the process if it fails with a CDPCtlError.

    The raised AbortError is a SystemExit carrying the original error, its
    kind and the failing method name. Other exceptions propagate unchanged.
    """
    try:
        return await awaitable
    except CDPCtlError as e:
        logger.error(f'Aborting on {type(e).__name__} in {e.method or "unknown method"}: {e}')
        raise AbortError(e) from e
