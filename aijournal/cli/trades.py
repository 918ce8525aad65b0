"""Trade commands for the journal CLI.

Handles manual trade entry, the trade list and journal reset.
"""

from datetime import date
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from aijournal.models import (
    VALID_BIASES,
    VALID_GRADES,
    VALID_NEWS_IMPACTS,
    VALID_POSITIONS,
    VALID_SESSIONS,
    VALID_STATUSES,
)

console = Console()


def _get_orchestrator():
    """Open the journal configured for this user."""
    from aijournal.config import load_config
    from aijournal.orchestrator import open_orchestrator

    return open_orchestrator(load_config())


def _print_error(title: str, message: str) -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def _money(amount: float, currency) -> str:
    from aijournal.analytics.formatting import format_currency

    color = "green" if amount >= 0 else "red"
    sign = "+" if amount > 0 else ""
    return f"[{color}]{sign}{format_currency(amount, currency)}[/{color}]"


@click.command()
@click.option("--date", "trade_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Trade date (YYYY-MM-DD). Defaults to today.")
@click.option("--pair", required=True, help="Instrument symbol, e.g. EURUSD.")
@click.option("--pnl", type=float, required=True, help="Gross profit or loss.")
@click.option("--commission", type=float, default=0.0, show_default=True, help="Commission paid.")
@click.option("--lot-size", type=float, default=0.0, show_default=True, help="Lot size.")
@click.option("--position", type=click.Choice(VALID_POSITIONS), default="long", show_default=True)
@click.option("--status", type=click.Choice(VALID_STATUSES), default="win", show_default=True)
@click.option("--session", type=click.Choice(VALID_SESSIONS), default="london", show_default=True)
@click.option("--bias", type=click.Choice(VALID_BIASES), default="ranging", show_default=True)
@click.option("--news-impact", type=click.Choice(VALID_NEWS_IMPACTS), default="low", show_default=True)
@click.option("--grade", type=click.Choice(VALID_GRADES), default="C", show_default=True)
@click.option("--smt/--no-smt", "confirm_smt", default=False, help="SMT divergence confirmed.")
@click.option("--emotion", default="", help="How you felt, e.g. Confident.")
@click.option("--notes", default="", help="Trade analysis and thoughts.")
def add(
    trade_date,
    pair: str,
    pnl: float,
    commission: float,
    lot_size: float,
    position: str,
    status: str,
    session: str,
    bias: str,
    news_impact: str,
    grade: str,
    confirm_smt: bool,
    emotion: str,
    notes: str,
) -> None:
    """Record a trade in the journal.

    \b
    Examples:
      aijournal add --pair EURUSD --pnl 150000 --commission 15000
      aijournal add --pair XAUUSD --pnl -50000 --status loss --session asia --grade B
    """
    from aijournal.errors import JournalError
    from aijournal.models import TradeDraft

    try:
        draft = TradeDraft(
            date=trade_date.date() if trade_date else date.today(),
            pair=pair.strip().upper(),
            lot_size=lot_size,
            position=position,
            status=status,
            pnl=pnl,
            commission=commission,
            session=session,
            bias=bias,
            confirm_smt=confirm_smt,
            news_impact=news_impact,
            emotion=emotion,
            grade=grade,
            notes=notes,
        )
    except ValidationError as e:
        errors = "\n".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        _print_error("Invalid Trade", errors)
        raise SystemExit(1)

    orchestrator = _get_orchestrator()
    try:
        trade = orchestrator.add_trade(draft)
    except JournalError as e:
        _print_error("Error", str(e))
        raise SystemExit(1)

    currency = orchestrator.config.currency
    console.print(Panel(
        f"[bold]{trade.pair}[/bold] {trade.position} on {trade.date.isoformat()} "
        f"({trade.session} session)\n\n"
        f"Net P&L: {_money(trade.net_pnl, currency)}\n"
        f"[dim]Trades in journal: {len(orchestrator.journal)}[/dim]",
        title="[bold green]Trade Added[/bold green]",
        border_style="green",
    ))


@click.command()
@click.option("--limit", type=click.IntRange(min=1), default=None,
              help="Show only the most recent N trades.")
def trades(limit: Optional[int]) -> None:
    """List recorded trades, newest first.

    \b
    Examples:
      aijournal trades            # All trades
      aijournal trades --limit 10 # Last 10 trades
    """
    orchestrator = _get_orchestrator()
    recorded = list(reversed(orchestrator.journal.snapshot()))

    if not recorded:
        console.print(Panel(
            "[dim]No Trades Yet[/dim]\n\n"
            "Add a trade with [cyan]aijournal add[/cyan] or import one with "
            "[cyan]aijournal import FILE[/cyan].",
            title="[bold]Recent Trades[/bold]",
            border_style="dim",
        ))
        return

    if limit is not None:
        recorded = recorded[:limit]

    currency = orchestrator.config.currency
    table = Table(
        title="Recent Trades",
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("Date", style="dim")
    table.add_column("Pair", style="bold")
    table.add_column("Side", justify="center")
    table.add_column("Session")
    table.add_column("Grade", justify="center")
    table.add_column("Status", justify="center")
    table.add_column("Net P&L", justify="right")
    table.add_column("Notes", max_width=30)

    status_colors = {"win": "green", "loss": "red", "breakeven": "white"}

    for trade in recorded:
        side_color = "green" if trade.position == "long" else "red"
        status_color = status_colors[trade.status]
        table.add_row(
            trade.date.isoformat(),
            trade.pair,
            f"[{side_color}]{trade.position}[/{side_color}]",
            trade.session,
            trade.grade,
            f"[{status_color}]{trade.status}[/{status_color}]",
            _money(trade.net_pnl, currency),
            (trade.notes[:27] + "...") if len(trade.notes) > 30 else (trade.notes or "-"),
        )

    console.print(table)
    console.print(f"\n[bold]Total Trades:[/bold] {len(orchestrator.journal)}")


@click.command()
@click.confirmation_option(prompt="Delete every trade in the journal?")
def reset() -> None:
    """Delete every trade and the last analysis."""
    orchestrator = _get_orchestrator()
    count = len(orchestrator.journal)
    orchestrator.reset_journal()
    console.print(f"[yellow]Deleted {count} trades.[/yellow]")
