"""Transports carrying control frames to and from the endpoint."""

import json
import logging
from typing import Any, Protocol

import websockets

from cdpctl.exceptions import ControlConnectionError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """A bidirectional channel of decoded control frames.

    ``recv`` must raise ControlConnectionError once the channel is gone.
    """

    async def send(self, frame: dict[str, Any]) -> None: ...

    async def recv(self) -> dict[str, Any]: ...

    async def close(self) -> None: ...


class WebSocketTransport:
    """JSON text frames over a single WebSocket, as spoken by Chromium."""

    def __init__(self, websocket: Any, url: str):
        self._websocket = websocket
        self.url = url

    @classmethod
    async def connect(cls, url: str) -> 'WebSocketTransport':
        """Open a WebSocket to ``url``.

        Raises:
            ControlConnectionError: If the handshake fails.
        """
        logger.debug(f'Opening control WebSocket: {url}')
        try:
            websocket = await websockets.connect(url, max_size=None)
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise ControlConnectionError(f'failed to open {url}: {type(e).__name__}: {e}') from e
        return cls(websocket, url)

    async def send(self, frame: dict[str, Any]) -> None:
        try:
            await self._websocket.send(json.dumps(frame))
        except websockets.exceptions.ConnectionClosed as e:
            raise ControlConnectionError(f'connection closed: {e}', frame.get('method')) from e

    async def recv(self) -> dict[str, Any]:
        while True:
            try:
                raw_message = await self._websocket.recv()
            except websockets.exceptions.ConnectionClosed as e:
                raise ControlConnectionError(f'connection closed: {e}') from e
            try:
                return json.loads(raw_message)
            except json.JSONDecodeError:
                logger.warning(f'Invalid JSON frame from endpoint: {str(raw_message)[:100]}')

    async def close(self) -> None:
        await self._websocket.close()
