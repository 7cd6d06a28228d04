"""Control connection: request/response correlation over one channel.

ControlConnection owns the transport to the endpoint. Callers may ``send``
concurrently; each request gets a fresh id and a pending future. A single
background task drains the transport: frames carrying an id resolve the
matching future, every other frame is published to the EventBus as an Event.

When the channel closes, every request still pending fails with
ControlConnectionError and every event waiter on the bus is cancelled, so no
caller is left waiting on a lost channel.
"""

import asyncio
import itertools
import logging
from typing import Any

from pydantic import ValidationError

from cdpctl.connection.transport import Transport
from cdpctl.connection.views import Request, Response
from cdpctl.events.service import EventBus
from cdpctl.events.views import Event
from cdpctl.exceptions import ControlConnectionError, RemoteError

logger = logging.getLogger(__name__)


class ControlConnection:
    """Multiplexed request/response channel to one control endpoint.

    Attributes:
        event_bus: Bus receiving every frame that is not a response.

    Example:
        >>> connection = ControlConnection(transport, EventBus())
        >>> connection.start()
        >>> result = await connection.send('Target.getTargets')
        >>> await connection.close()
    """

    def __init__(self, transport: Transport, event_bus: EventBus):
        self._transport = transport
        self.event_bus = event_bus
        self._ids = itertools.count(1)
        self._pending: dict[int, tuple[str, asyncio.Future[Response]]] = {}
        self._reader: asyncio.Task | None = None
        self._close_reason: str | None = None

    @property
    def closed(self) -> bool:
        return self._close_reason is not None

    @property
    def pending_count(self) -> int:
        """Number of requests sent and not yet resolved."""
        return len(self._pending)

    def start(self) -> None:
        """Start the background receive loop.

        Raises:
            RuntimeError: If the loop was already started for this connection.
        """
        if self._reader is not None:
            raise RuntimeError('receive loop already started for this connection')
        self._reader = asyncio.get_running_loop().create_task(self._receive_loop())

    async def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """Send a control call and wait for its response.

        Args:
            method: Control method, e.g. 'Target.createTarget'.
            params: Method parameters.
            session_id: Flattened per-target session to address, if any.

        Returns:
            The response's result object.

        Raises:
            ControlConnectionError: If the channel is closed, the write fails
                or the channel closes before the response arrives.
            RemoteError: If the endpoint answered with an error.
        """
        if self._close_reason is not None:
            raise ControlConnectionError(self._close_reason, method)

        request = Request(id=next(self._ids), method=method, params=params or {}, session_id=session_id)
        future: asyncio.Future[Response] = asyncio.get_running_loop().create_future()
        self._pending[request.id] = (method, future)
        try:
            logger.debug(f'-> #{request.id} {method}' + (f' [{session_id}]' if session_id else ''))
            try:
                await self._transport.send(request.to_frame())
            except ControlConnectionError:
                raise
            except Exception as e:
                raise ControlConnectionError(f'write failed: {type(e).__name__}: {e}', method) from e
            response = await future
        finally:
            self._pending.pop(request.id, None)

        if response.error is not None:
            logger.debug(f'<- #{request.id} {method} error: {response.error.message}')
            raise RemoteError(
                response.error.message,
                method,
                code=response.error.code,
                data=response.error.data,
            )
        logger.debug(f'<- #{request.id} {method}')
        return response.result

    async def close(self) -> None:
        """Stop the receive loop, close the transport and fail pending requests."""
        self._shutdown('connection closed by client')
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            await asyncio.wait({self._reader})
        try:
            await self._transport.close()
        except Exception as e:
            logger.debug(f'Transport close failed: {type(e).__name__}: {e}')

    async def _receive_loop(self) -> None:
        reason = 'connection closed'
        try:
            while True:
                frame = await self._transport.recv()
                self._dispatch(frame)
        except ControlConnectionError as e:
            reason = e.message
            logger.debug(f'Receive loop stopped: {reason}')
        except Exception as e:
            reason = f'receive loop failed: {type(e).__name__}: {e}'
            logger.error(reason)
        finally:
            self._shutdown(reason)

    def _dispatch(self, frame: dict[str, Any]) -> None:
        try:
            if frame.get('id') is not None:
                self._resolve(Response.model_validate(frame))
            elif 'method' in frame:
                self.event_bus.publish(Event.model_validate(frame))
            else:
                logger.warning(f'Ignoring unrecognized frame: {str(frame)[:100]}')
        except ValidationError as e:
            logger.warning(f'Ignoring malformed frame: {e.error_count()} validation errors in {str(frame)[:100]}')

    def _resolve(self, response: Response) -> None:
        pending = self._pending.pop(response.id, None)
        if pending is None:
            logger.debug(f'Dropping response for unknown request #{response.id}')
            return
        _, future = pending
        if not future.done():
            future.set_result(response)

    def _shutdown(self, reason: str) -> None:
        if self._close_reason is not None:
            return
        self._close_reason = reason
        pending, self._pending = self._pending, {}
        for method, future in pending.values():
            if not future.done():
                future.set_exception(ControlConnectionError(reason, method))
        if pending:
            logger.debug(f'Failed {len(pending)} pending requests: {reason}')
        self.event_bus.cancel_waiters(reason)
