"""CLI module for cdpctl."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, Optional

try:
    import click
    from rich.console import Console
    from rich.table import Table
except ImportError:
    raise ImportError("Please install CLI dependencies: pip install click rich")

from cdpctl import __version__
from cdpctl.actor.page import Page
from cdpctl.browser.session import BrowserSession
from cdpctl.exceptions import AbortError
from cdpctl.logging_config import setup_logging
from cdpctl.utils import must

console = Console()


def _run(options: dict[str, Any], action: Callable[[BrowserSession], Awaitable[None]]) -> None:
    """Connect, run ``action`` on a session bounded by --timeout, then disconnect."""

    async def execute():
        overrides = {"control_url": options["control_url"]} if options["control_url"] else {}
        browser = BrowserSession(**overrides)
        await browser.must_connect()
        try:
            await action(browser.timeout(options["timeout"]))
        finally:
            await browser.disconnect()

    try:
        asyncio.run(execute())
    except AbortError as e:
        console.print(f"[red]{e.kind}[/red] in [bold]{e.method or 'unknown method'}[/bold]: {e.error}")
        raise SystemExit(1) from e


@click.group()
@click.version_option(version=__version__, prog_name="cdpctl")
@click.option("--control-url", "-u", default=None, help="ws:// endpoint or http://host:port of the browser (default: CDPCTL_CONTROL_URL)")
@click.option("--timeout", "-t", default=30.0, type=float, help="Seconds before the command is cancelled")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, control_url: Optional[str], timeout: float, verbose: bool):
    """cdpctl - drive a remote browser over the DevTools protocol."""
    setup_logging("debug" if verbose else None)
    ctx.obj = {"control_url": control_url, "timeout": timeout}


@cli.command()
@click.pass_obj
def pages(options: dict[str, Any]):
    """List open pages."""

    async def action(browser: BrowserSession):
        table = Table(title="Pages")
        table.add_column("Target ID", style="cyan")
        table.add_column("Title")
        table.add_column("URL", style="green")
        for page in await browser.must_pages():
            info = await must(page.get_info())
            table.add_row(page.target_id, info.title, info.url)
        console.print(table)

    _run(options, action)


@cli.command(name="open")
@click.argument("url")
@click.pass_obj
def open_page(options: dict[str, Any], url: str):
    """Open URL in a new page and print its target id."""

    async def action(browser: BrowserSession):
        page = await browser.must_create_page(url)
        console.print(page.target_id)

    _run(options, action)


@cli.command()
@click.argument("method")
@click.option("--params", "-p", default="{}", help="JSON object of method parameters")
@click.option("--target", default=None, help="Target id to send the call to (default: browser)")
@click.pass_obj
def call(options: dict[str, Any], method: str, params: str, target: Optional[str]):
    """Send a raw control call and print its result."""
    try:
        parsed_params = json.loads(params)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="--params")
    if not isinstance(parsed_params, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--params")

    async def action(browser: BrowserSession):
        if target:
            page = await must(Page.for_target(browser, target))
            result = await page.must_call(method, parsed_params)
        else:
            result = await browser.must_call(method, parsed_params)
        console.print_json(json.dumps(result))

    _run(options, action)


@cli.command()
@click.pass_obj
def close(options: dict[str, Any]):
    """Close the browser."""

    async def action(browser: BrowserSession):
        await browser.must_close()
        console.print("[green]Browser closed[/green]")

    _run(options, action)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
