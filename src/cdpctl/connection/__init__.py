"""Control connection: transport, wire models and request correlation."""

from cdpctl.connection.service import ControlConnection
from cdpctl.connection.transport import Transport, WebSocketTransport
from cdpctl.connection.views import RemoteErrorPayload, Request, Response

__all__ = [
    "ControlConnection",
    "RemoteErrorPayload",
    "Request",
    "Response",
    "Transport",
    "WebSocketTransport",
]
