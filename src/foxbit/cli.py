"""Typer-based CLI for one-shot FoxBit queries."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from .client import FoxbitClient
    from .settings import Settings

T = TypeVar("T")


# Import with local function to avoid circular imports
def _load_settings(config_path: Optional[Path] = None) -> "Settings":
    from .config import load_settings
    return load_settings(config_path)


def _create_client(settings: "Settings") -> "FoxbitClient":
    from .client import create_client_from_settings
    return create_client_from_settings(settings)


app = typer.Typer(help="FoxBit WebSocket API client")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


async def _with_client(
    settings: "Settings",
    action: Callable[["FoxbitClient"], Awaitable[T]],
    *,
    login: bool = False,
) -> T:
    client = _create_client(settings)
    await client.connect()
    try:
        if login:
            creds = settings.credentials
            if not creds.configured:
                raise typer.BadParameter("credentials.username and credentials.password must be configured")
            await client.login(
                creds.username,
                creds.password.get_secret_value(),
                creds.two_fa_code.get_secret_value() if creds.two_fa_code else None,
            )
        return await action(client)
    finally:
        await client.disconnect()


def _run(
    what: str,
    config: Optional[Path],
    action: Callable[["Settings", "FoxbitClient"], Awaitable[T]],
    *,
    login: bool = False,
) -> tuple["Settings", T]:
    try:
        settings = _load_settings(config)
        result = asyncio.run(_with_client(settings, lambda client: action(settings, client), login=login))
        return settings, result
    except typer.Exit:
        raise
    except Exception as e:
        logger.error("Failed to %s: %s", what, e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _fmt(value: Any, digits: int = 8) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.{digits}f}".rstrip("0").rstrip(".") or "0"
    return str(value)


def _account_id(settings: "Settings", account_id: Optional[int]) -> int:
    resolved = account_id if account_id is not None else settings.account_id
    if resolved is None:
        console.print("[red]Error:[/red] pass --account-id or set account_id in the config")
        raise typer.Exit(1)
    return resolved


@app.command()
def instruments(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List tradable instruments."""
    _, items = _run("list instruments", config, lambda s, c: c.get_instruments(s.oms_id))

    if not items:
        console.print("[yellow]No instruments found[/yellow]")
        return

    table = Table(title="Instruments")
    table.add_column("Id", style="cyan")
    table.add_column("Symbol", style="green")
    table.add_column("Product 1", style="magenta")
    table.add_column("Product 2", style="magenta")
    table.add_column("Session", style="yellow")
    table.add_column("Qty increment", style="dim")

    for item in sorted(items, key=lambda i: i.instrument_id):
        table.add_row(
            str(item.instrument_id),
            item.symbol,
            item.product1_symbol or "",
            item.product2_symbol or "",
            _fmt(item.session_status),
            _fmt(item.quantity_increment),
        )

    console.print(table)


@app.command()
def products(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List products (assets)."""
    _, items = _run("list products", config, lambda s, c: c.get_products(s.oms_id))

    if not items:
        console.print("[yellow]No products found[/yellow]")
        return

    table = Table(title="Products")
    table.add_column("Id", style="cyan")
    table.add_column("Product", style="green")
    table.add_column("Name", style="white")
    table.add_column("Type", style="yellow")
    table.add_column("Decimals", style="dim")

    for item in sorted(items, key=lambda p: p.product_id):
        table.add_row(
            str(item.product_id),
            item.product,
            item.product_full_name or "",
            _fmt(item.product_type),
            _fmt(item.decimal_places),
        )

    console.print(table)


@app.command()
def book(
    instrument_id: int = typer.Argument(..., help="Instrument id"),
    depth: int = typer.Option(10, help="Price levels to fetch"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show an order book snapshot."""
    _, entries = _run(
        "fetch order book",
        config,
        lambda s, c: c.get_l2_snapshot(s.oms_id, instrument_id, depth),
    )

    bids = sorted((e for e in entries if e.side == 0), key=lambda e: e.price, reverse=True)
    asks = sorted((e for e in entries if e.side == 1), key=lambda e: e.price)

    table = Table(title=f"Order book #{instrument_id}")
    table.add_column("Bid qty", style="green", justify="right")
    table.add_column("Bid", style="green", justify="right")
    table.add_column("Ask", style="red", justify="right")
    table.add_column("Ask qty", style="red", justify="right")

    for i in range(max(len(bids), len(asks))):
        bid = bids[i] if i < len(bids) else None
        ask = asks[i] if i < len(asks) else None
        table.add_row(
            _fmt(bid.quantity) if bid else "",
            _fmt(bid.price) if bid else "",
            _fmt(ask.price) if ask else "",
            _fmt(ask.quantity) if ask else "",
        )

    console.print(table)


@app.command()
def ticker_history(
    instrument_id: int = typer.Argument(..., help="Instrument id"),
    days: int = typer.Option(1, help="Days of history to fetch"),
    interval: int = typer.Option(3600, help="Candle interval in seconds"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show candles for the last N days."""
    to_date = date.today()
    from_date = to_date - timedelta(days=days)
    _, ticks = _run(
        "fetch ticker history",
        config,
        lambda s, c: c.get_ticker_history(s.oms_id, instrument_id, from_date, to_date, interval),
    )

    if not ticks:
        console.print(f"[yellow]No candles between {from_date} and {to_date}[/yellow]")
        return

    table = Table(title=f"Ticker #{instrument_id} ({interval}s)")
    table.add_column("Time", style="dim")
    table.add_column("Open", justify="right")
    table.add_column("High", style="green", justify="right")
    table.add_column("Low", style="red", justify="right")
    table.add_column("Close", justify="right")
    table.add_column("Volume", style="cyan", justify="right")

    for tick in ticks:
        table.add_row(
            str(tick.ticker_date),
            _fmt(tick.open),
            _fmt(tick.high),
            _fmt(tick.low),
            _fmt(tick.close),
            _fmt(tick.volume),
        )

    console.print(table)
    console.print(f"\n[bold]Total candles:[/bold] {len(ticks)}")


@app.command()
def level1(
    instrument: str = typer.Argument(..., help="Instrument id or symbol"),
    timeout: float = typer.Option(10.0, help="Seconds to wait for the snapshot"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the current top of book for one instrument."""
    key: int | str = int(instrument) if instrument.isdigit() else instrument

    async def _snapshot(settings: "Settings", client: "FoxbitClient"):
        subscription = await client.subscribe_level1(settings.oms_id, key)
        async with subscription:
            return await subscription.next(timeout)

    _, quote = _run("fetch level1", config, _snapshot)

    console.print(Panel.fit(
        f"Instrument: [cyan]{quote.instrument_id}[/cyan]\n"
        f"Bid: [green]{_fmt(quote.best_bid)}[/green]\n"
        f"Ask: [red]{_fmt(quote.best_offer)}[/red]\n"
        f"Last: [bold]{_fmt(quote.last_traded_px)}[/bold] x {_fmt(quote.last_traded_qty)}\n"
        f"Volume: {_fmt(quote.volume)}",
        title="Level 1",
    ))


@app.command()
def positions(
    account_id: Optional[int] = typer.Option(None, help="Account id (default: account_id from config)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show balances of an account. Requires credentials."""

    async def _positions(settings: "Settings", client: "FoxbitClient"):
        return await client.get_account_positions(_account_id(settings, account_id), settings.oms_id)

    _, items = _run("fetch positions", config, _positions, login=True)

    if not items:
        console.print("[yellow]No positions found[/yellow]")
        return

    table = Table(title="Positions")
    table.add_column("Product", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Hold", style="yellow", justify="right")
    table.add_column("Available", style="green", justify="right")
    table.add_column("Pending deposits", style="dim", justify="right")

    for item in items:
        table.add_row(
            item.product_symbol,
            _fmt(item.amount),
            _fmt(item.hold),
            _fmt(item.available),
            _fmt(item.pending_deposits),
        )

    console.print(table)


@app.command()
def open_orders(
    account_id: Optional[int] = typer.Option(None, help="Account id (default: account_id from config)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List open orders of an account. Requires credentials."""

    async def _orders(settings: "Settings", client: "FoxbitClient"):
        return await client.get_open_orders(_account_id(settings, account_id), settings.oms_id)

    _, orders = _run("fetch open orders", config, _orders, login=True)

    if not orders:
        console.print("[yellow]No open orders[/yellow]")
        return

    table = Table(title="Open orders")
    table.add_column("Order Id", style="cyan")
    table.add_column("Instrument", style="magenta")
    table.add_column("Side", style="yellow")
    table.add_column("Type", style="blue")
    table.add_column("Price", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Executed", style="green", justify="right")
    table.add_column("State", style="white")

    for order in orders:
        table.add_row(
            str(order.order_id),
            str(order.instrument),
            _fmt(order.side),
            _fmt(order.order_type),
            _fmt(order.price),
            _fmt(order.quantity),
            _fmt(order.quantity_executed),
            order.order_state,
        )

    console.print(table)
    console.print(f"\n[bold]Total orders:[/bold] {len(orders)}")


@app.command()
def config_show(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Print the effective configuration with secrets masked."""
    try:
        settings = _load_settings(config)
    except Exception as e:
        logger.error("Failed to load config: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print_json(json.dumps(settings.redacted()))


def main():
    """CLI main entry point."""
    app()


if __name__ == "__main__":
    main()
