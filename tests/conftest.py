"""Pytest configuration and fixtures for the cdpctl test suite.

Configuration:
    - Adds src/ directory to Python path for test imports
    - Provides an in-memory FakeTransport standing in for the WebSocket
    - Scripts a stub browser endpoint answering the target/page methods

Shared Fixtures:
    transport: FakeTransport with no scripted replies.
    stub: StubBrowser scripting ``transport`` like a browser with no targets.
    browser: BrowserSession connected to ``transport``.
"""

import asyncio
import itertools
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

# Add the src directory to the path so tests can import cdpctl without installing it
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from cdpctl.browser.session import BrowserSession  # noqa: E402
from cdpctl.exceptions import ControlConnectionError  # noqa: E402

STUB_URL = "ws://stub/devtools/browser/0"

Reply = dict[str, Any] | Callable[[dict[str, Any]], dict[str, Any] | None]


class RemoteFailure:
    """Reply marker making the stub answer with an error payload."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data


class FakeTransport:
    """In-memory transport: records sent frames and replays scripted replies.

    Methods without a registered reply are left unanswered, so their
    requests stay pending until the test responds, cancels or closes.
    """

    _CLOSED = object()

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.replies: dict[str, Reply | RemoteFailure] = {}
        self.fail_writes = False
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    def on(self, method: str, reply: "Reply | RemoteFailure") -> None:
        self.replies[method] = reply

    def methods(self) -> list[str]:
        return [frame["method"] for frame in self.sent]

    def frames(self, method: str) -> list[dict[str, Any]]:
        return [frame for frame in self.sent if frame["method"] == method]

    def respond(self, request_id: int, result: dict | None = None, error: dict | None = None) -> None:
        frame: dict[str, Any] = {"id": request_id}
        if error is not None:
            frame["error"] = error
        else:
            frame["result"] = result or {}
        self._incoming.put_nowait(frame)

    def emit(self, method: str, params: dict | None = None, session_id: str | None = None) -> None:
        frame: dict[str, Any] = {"method": method, "params": params or {}}
        if session_id is not None:
            frame["sessionId"] = session_id
        self._incoming.put_nowait(frame)

    def inject(self, frame: dict[str, Any]) -> None:
        self._incoming.put_nowait(frame)

    def drop(self) -> None:
        """Simulate the endpoint going away."""
        self._incoming.put_nowait(self._CLOSED)

    async def send(self, frame: dict[str, Any]) -> None:
        if self.closed:
            raise ControlConnectionError("transport closed", frame.get("method"))
        if self.fail_writes:
            raise OSError("broken pipe")
        self.sent.append(frame)

        reply = self.replies.get(frame["method"])
        if reply is None:
            return
        if isinstance(reply, RemoteFailure):
            self.respond(frame["id"], error={"code": reply.code, "message": reply.message, "data": reply.data})
            return
        result = reply(frame) if callable(reply) else reply
        if result is not None:
            self.respond(frame["id"], result)

    async def recv(self) -> dict[str, Any]:
        frame = await self._incoming.get()
        if frame is self._CLOSED:
            raise ControlConnectionError("transport closed")
        return frame

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(self._CLOSED)


class StubBrowser:
    """Scripted endpoint keeping a table of open targets."""

    def __init__(self, transport: FakeTransport):
        self.transport = transport
        self.targets: dict[str, dict[str, Any]] = {}
        self._target_ids = itertools.count(1)

        transport.on("Target.setDiscoverTargets", {})
        transport.on("Target.createTarget", self._create_target)
        transport.on("Target.attachToTarget", self._attach)
        transport.on("Target.getTargets", self._get_targets)
        transport.on("Target.getTargetInfo", self._get_target_info)
        transport.on("Target.closeTarget", self._close_target)
        transport.on("Browser.close", {})
        transport.on("Page.enable", {})
        transport.on("Page.reload", {})
        transport.on("Page.navigate", self._navigate)
        transport.on("Page.captureScreenshot", {"data": "aGVsbG8="})
        transport.on("Emulation.setDeviceMetricsOverride", {})
        transport.on("Input.dispatchMouseEvent", {})
        transport.on("Input.dispatchKeyEvent", {})
        transport.on("Input.insertText", {})

    def add_target(self, target_type: str = "page", url: str = "about:blank") -> str:
        target_id = f"T{next(self._target_ids)}"
        self.targets[target_id] = {
            "targetId": target_id,
            "type": target_type,
            "title": "",
            "url": url,
            "attached": False,
        }
        return target_id

    def _create_target(self, frame: dict) -> dict:
        target_id = self.add_target(url=frame["params"]["url"])
        self.transport.emit("Target.targetCreated", {"targetInfo": self.targets[target_id]})
        return {"targetId": target_id}

    def _attach(self, frame: dict) -> dict:
        target_id = frame["params"]["targetId"]
        self.targets[target_id]["attached"] = True
        return {"sessionId": f"S-{target_id}"}

    def _get_targets(self, frame: dict) -> dict:
        return {"targetInfos": list(self.targets.values())}

    def _get_target_info(self, frame: dict) -> dict:
        return {"targetInfo": self.targets[frame["params"]["targetId"]]}

    def _close_target(self, frame: dict) -> dict:
        target_id = frame["params"]["targetId"]
        self.targets.pop(target_id, None)
        self.transport.emit("Target.targetDestroyed", {"targetId": target_id})
        return {"success": True}

    def _navigate(self, frame: dict) -> dict:
        target_id = frame["sessionId"].removeprefix("S-")
        self.targets[target_id]["url"] = frame["params"]["url"]
        return {"frameId": target_id, "loaderId": "L1"}


async def until(condition: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the loop until ``condition()`` holds."""
    async with asyncio.timeout(timeout):
        while not condition():
            await asyncio.sleep(0.001)


@pytest.fixture
def transport():
    """FakeTransport with no scripted replies."""
    return FakeTransport()


@pytest.fixture
def stub(transport):
    return StubBrowser(transport)


@pytest.fixture
def transport_factory(transport):
    async def factory(url: str) -> FakeTransport:
        return transport

    return factory


@pytest_asyncio.fixture
async def browser(stub, transport_factory):
    """BrowserSession connected to the stub browser."""
    session = BrowserSession(control_url=STUB_URL, transport_factory=transport_factory)
    await session.connect()
    yield session
    await session.disconnect()
