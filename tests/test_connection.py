"""Tests for ControlConnection request/response correlation."""

import asyncio

import pytest

from cdpctl.connection import ControlConnection, Request
from cdpctl.events import EventBus
from cdpctl.exceptions import CancellationError, ControlConnectionError, RemoteError
from cdpctl.scope import Scope

from conftest import FakeTransport, RemoteFailure


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def bus():
    return EventBus()


class TestWireModels:
    """Request serialization."""

    def test_request_frame_uses_wire_names(self):
        frame = Request(id=3, method="Page.navigate", params={"url": "https://example.com"}, session_id="S1").to_frame()
        assert frame == {"id": 3, "method": "Page.navigate", "params": {"url": "https://example.com"}, "sessionId": "S1"}

    def test_request_frame_omits_missing_session(self):
        frame = Request(id=1, method="Target.getTargets").to_frame()
        assert "sessionId" not in frame
        assert frame["params"] == {}


class TestCorrelation:
    """Responses are matched to requests by id only."""

    @pytest.mark.asyncio
    async def test_send_returns_matching_result(self, transport, bus):
        transport.on("Target.getTargets", {"targetInfos": []})
        connection = ControlConnection(transport, bus)
        connection.start()

        result = await connection.send("Target.getTargets")

        assert result == {"targetInfos": []}
        assert transport.sent[0]["id"] == 1
        assert connection.pending_count == 0
        await connection.close()

    @pytest.mark.asyncio
    async def test_ids_are_unique_and_increasing(self, transport, bus):
        transport.on("Runtime.enable", {})
        connection = ControlConnection(transport, bus)
        connection.start()

        await asyncio.gather(*(connection.send("Runtime.enable") for _ in range(5)))

        assert [frame["id"] for frame in transport.sent] == [1, 2, 3, 4, 5]
        await connection.close()

    @pytest.mark.asyncio
    async def test_out_of_order_responses(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()

        first = asyncio.create_task(connection.send("First.method"))
        second = asyncio.create_task(connection.send("Second.method"))
        await asyncio.sleep(0.01)
        assert connection.pending_count == 2

        transport.respond(2, {"which": "second"})
        transport.respond(1, {"which": "first"})

        assert await second == {"which": "second"}
        assert await first == {"which": "first"}
        await connection.close()

    @pytest.mark.asyncio
    async def test_session_id_is_sent(self, transport, bus):
        transport.on("Page.enable", {})
        connection = ControlConnection(transport, bus)
        connection.start()

        await connection.send("Page.enable", session_id="S1")

        assert transport.sent[0]["sessionId"] == "S1"
        await connection.close()

    @pytest.mark.asyncio
    async def test_unknown_response_id_is_dropped(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()

        pending = asyncio.create_task(connection.send("Slow.method"))
        await asyncio.sleep(0.01)
        transport.respond(99, {"stray": True})
        transport.respond(1, {"ok": True})

        assert await pending == {"ok": True}
        assert not connection.closed
        await connection.close()

    @pytest.mark.asyncio
    async def test_malformed_frames_are_ignored(self, transport, bus):
        transport.on("Target.getTargets", {})
        connection = ControlConnection(transport, bus)
        connection.start()

        transport.inject({"id": "not-a-number"})
        transport.inject({"neither": "id nor method"})

        assert await connection.send("Target.getTargets") == {}
        await connection.close()

    @pytest.mark.asyncio
    async def test_frames_without_id_are_published(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()
        waiter = bus.wait("Target.targetCreated")

        transport.emit("Target.targetCreated", {"targetInfo": {"targetId": "T1"}}, session_id=None)

        event = await asyncio.wait_for(waiter.wait(), 1)
        assert event.params["targetInfo"]["targetId"] == "T1"
        await connection.close()

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()
        with pytest.raises(RuntimeError):
            connection.start()
        await connection.close()


class TestFailures:
    """Every request resolves to exactly one outcome."""

    @pytest.mark.asyncio
    async def test_remote_error(self, transport, bus):
        transport.on("Bogus.method", RemoteFailure(-32601, "'Bogus.method' wasn't found"))
        connection = ControlConnection(transport, bus)
        connection.start()

        with pytest.raises(RemoteError) as exc_info:
            await connection.send("Bogus.method")

        error = exc_info.value
        assert error.code == -32601
        assert error.method == "Bogus.method"
        assert "wasn't found" in error.message
        assert connection.pending_count == 0
        await connection.close()

    @pytest.mark.asyncio
    async def test_pending_requests_fail_when_channel_drops(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()

        pending = [asyncio.create_task(connection.send(f"Slow.method{i}")) for i in range(3)]
        await asyncio.sleep(0.01)
        transport.drop()

        for i, task in enumerate(pending):
            with pytest.raises(ControlConnectionError) as exc_info:
                await task
            assert exc_info.value.method == f"Slow.method{i}"
        assert connection.closed
        assert connection.pending_count == 0

    @pytest.mark.asyncio
    async def test_channel_drop_cancels_event_waiters(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()
        waiter = bus.wait("Never.happens", Scope())
        received = []
        subscription = bus.subscribe(received.append)

        transport.drop()

        with pytest.raises(CancellationError) as exc_info:
            await asyncio.wait_for(waiter.wait(), 1)
        assert "transport closed" in exc_info.value.message
        assert bus.waiter_count == 0
        assert not bus.closed
        assert subscription.active
        subscription.cancel()

    @pytest.mark.asyncio
    async def test_pending_requests_fail_on_close(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()

        pending = asyncio.create_task(connection.send("Slow.method"))
        await asyncio.sleep(0.01)
        await connection.close()

        with pytest.raises(ControlConnectionError):
            await pending
        assert transport.closed

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()
        await connection.close()

        with pytest.raises(ControlConnectionError) as exc_info:
            await connection.send("Target.getTargets")
        assert exc_info.value.method == "Target.getTargets"

    @pytest.mark.asyncio
    async def test_write_failure_raises_connection_error(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()
        transport.fail_writes = True

        with pytest.raises(ControlConnectionError) as exc_info:
            await connection.send("Target.getTargets")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert connection.pending_count == 0
        await connection.close()

    @pytest.mark.asyncio
    async def test_cancelled_caller_frees_pending_slot(self, transport, bus):
        connection = ControlConnection(transport, bus)
        connection.start()
        scope = Scope()

        caller = asyncio.create_task(scope.run(connection.send("Slow.method")))
        await asyncio.sleep(0.01)
        assert connection.pending_count == 1

        scope.cancel()
        with pytest.raises(CancellationError):
            await caller
        await until_idle(connection)

        assert connection.pending_count == 0
        # A late response for the abandoned request is dropped.
        transport.respond(1, {})
        await connection.close()


async def until_idle(connection: ControlConnection) -> None:
    for _ in range(10):
        if connection.pending_count == 0:
            return
        await asyncio.sleep(0)
