"""Tests for the cdpctl command line interface."""

import pytest
from click.testing import CliRunner

from cdpctl import cli as cli_module
from cdpctl.browser.session import BrowserSession
from cdpctl.cli import cli

from conftest import STUB_URL, RemoteFailure


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def stub_sessions(monkeypatch, stub, transport_factory):
    """Make the CLI open its sessions on the stub browser."""
    monkeypatch.setattr(
        cli_module,
        "BrowserSession",
        lambda **kwargs: BrowserSession(transport_factory=transport_factory, **kwargs),
    )
    return stub


class TestCommands:
    """Each command connects, acts and disconnects."""

    def test_pages(self, runner, stub_sessions):
        stub_sessions.add_target(url="https://example.com")

        result = runner.invoke(cli, ["--control-url", STUB_URL, "pages"])

        assert result.exit_code == 0, result.output
        assert "T1" in result.output
        assert "example.com" in result.output

    def test_open(self, runner, stub_sessions, transport):
        result = runner.invoke(cli, ["-u", STUB_URL, "open", "https://example.com"])

        assert result.exit_code == 0, result.output
        assert "T1" in result.output
        assert transport.frames("Page.navigate")[0]["params"] == {"url": "https://example.com"}

    def test_call_browser_method(self, runner, stub_sessions):
        result = runner.invoke(cli, ["-u", STUB_URL, "call", "Target.getTargets"])

        assert result.exit_code == 0, result.output
        assert '"targetInfos": []' in result.output

    def test_call_on_target(self, runner, stub_sessions, transport):
        target_id = stub_sessions.add_target()

        result = runner.invoke(
            cli, ["-u", STUB_URL, "call", "Page.reload", "--params", '{"ignoreCache": true}', "--target", target_id]
        )

        assert result.exit_code == 0, result.output
        reload = transport.frames("Page.reload")[0]
        assert reload["sessionId"] == f"S-{target_id}"
        assert reload["params"] == {"ignoreCache": True}

    def test_call_rejects_invalid_params(self, runner, stub_sessions):
        result = runner.invoke(cli, ["-u", STUB_URL, "call", "Page.reload", "--params", "[1, 2]"])
        assert result.exit_code == 2

    def test_remote_error_exits_with_status_1(self, runner, stub_sessions, transport):
        transport.on("Bogus.method", RemoteFailure(-32601, "'Bogus.method' wasn't found"))

        result = runner.invoke(cli, ["-u", STUB_URL, "call", "Bogus.method"])

        assert result.exit_code == 1
        assert "RemoteError" in result.output
        assert "Bogus.method" in result.output

    def test_close(self, runner, stub_sessions, transport):
        result = runner.invoke(cli, ["-u", STUB_URL, "close"])

        assert result.exit_code == 0, result.output
        assert "Browser.close" in transport.methods()

    def test_connect_failure(self, runner, monkeypatch):
        monkeypatch.delenv("CDPCTL_CONTROL_URL", raising=False)
        result = runner.invoke(cli, ["pages"])

        assert result.exit_code == 1
        assert "ConnectError" in result.output
