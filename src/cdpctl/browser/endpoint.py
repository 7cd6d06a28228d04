"""Control endpoint resolution."""

import logging
from collections.abc import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

# External collaborator that starts a browser and returns its control URL.
Launcher = Callable[[], Awaitable[str]]


async def resolve_control_url(url: str, timeout: float = 30.0) -> str:
    """Return the WebSocket debugger URL for ``url``.

    A ``ws://`` or ``wss://`` URL is returned unchanged. Any other address
    (``http://host:port`` or bare ``host:port``) is resolved through the
    endpoint's ``/json/version`` document.

    Raises:
        httpx.HTTPError: If the endpoint cannot be reached or answers with an error status.
        KeyError: If the version document has no webSocketDebuggerUrl.
        ValueError: If the version document is not JSON.
    """
    if url.startswith(('ws://', 'wss://')):
        return url

    if '://' not in url:
        url = f'http://{url}'
    version_url = url.rstrip('/')
    if not version_url.endswith('/json/version'):
        version_url = version_url + '/json/version'

    logger.debug(f'Resolving control endpoint via {version_url}')
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(version_url)
        response.raise_for_status()
        version_info = response.json()
    return version_info['webSocketDebuggerUrl']
