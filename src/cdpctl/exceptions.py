"""Exceptions raised by the control-plane client."""

from typing import Any


class CDPCtlError(Exception):
    """Base exception for all control-plane errors."""

    def __init__(self, message: str, method: str | None = None):
        super().__init__(message)
        self.message = message
        self.method = method

    def __str__(self) -> str:
        if self.method:
            return f'{self.method}: {self.message}'
        return self.message


class ControlConnectionError(CDPCtlError):
    """Exception raised when the control channel is closed or unusable."""
    pass


class RemoteError(CDPCtlError):
    """Exception raised when the endpoint answers a request with an error."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        code: int | None = None,
        data: Any = None,
    ):
        super().__init__(message, method)
        self.code = code
        self.data = data

    def __str__(self) -> str:
        text = super().__str__()
        if self.code is not None:
            text = f'[{self.code}] {text}'
        if self.data:
            text = f'{text} ({self.data})'
        return text


class NavigationError(RemoteError):
    """Exception raised when Page.navigate reports an errorText."""

    def __init__(self, message: str, url: str, method: str | None = 'Page.navigate'):
        super().__init__(message, method)
        self.url = url


class CancellationError(CDPCtlError):
    """Exception raised when a scope is cancelled before an operation completes."""
    pass


class DeadlineExceededError(CancellationError):
    """Exception raised when a scope's deadline passes before an operation completes."""

    def __init__(self, message: str, method: str | None = None, timeout: float | None = None):
        super().__init__(message, method)
        self.timeout = timeout


class EventFilterError(CDPCtlError):
    """Exception raised when an event wait's predicate fails on an event."""
    pass


class ClosedTargetError(CDPCtlError):
    """Exception raised when an operation is issued against a closed target."""

    def __init__(self, target_id: str, method: str | None = None):
        super().__init__(f'target {target_id} is closed', method)
        self.target_id = target_id


class ConnectError(CDPCtlError):
    """Exception raised when connecting, launching or enabling discovery fails."""
    pass


class AbortError(SystemExit):
    """Process abort raised by the convenience layer.

    Wraps the original error so the failure kind and the failing method name
    survive the abort, even when many calls are in flight.
    """

    def __init__(self, error: BaseException):
        self.error = error
        self.kind = type(error).__name__
        self.method = getattr(error, 'method', None)
        super().__init__(1)

    def __str__(self) -> str:
        return f'{self.kind}: {self.error}'
