"""Analysis and report commands for the journal CLI.

Runs the performance analysis over the journal and exports the last
result as a report workbook.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def _get_orchestrator():
    """Open the journal configured for this user."""
    from aijournal.config import load_config
    from aijournal.orchestrator import open_orchestrator

    return open_orchestrator(load_config())


def _series_table(title: str, label_header: str, value_header: str, series, formatter) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column(label_header)
    table.add_column(value_header, justify="right")
    for label, value in series.points():
        table.add_row(label, formatter(value))
    return table


def render_result(result, currency) -> None:
    """Print the metrics panel and the four series tables."""
    from aijournal.analytics.formatting import METRIC_LABELS, format_currency, format_metrics

    formatted = format_metrics(result.metrics, currency)
    width = max(len(label) for label in METRIC_LABELS.values())
    net_color = "green" if result.metrics.total_net_pnl >= 0 else "red"

    lines = []
    for key, label in METRIC_LABELS.items():
        value = formatted[key]
        if key == "totalNetPnl":
            value = f"[bold {net_color}]{value}[/bold {net_color}]"
        lines.append(f"{label + ':':<{width + 1}} {value}")

    console.print(Panel(
        "\n".join(lines),
        title="[bold cyan]Analysis Dashboard[/bold cyan]",
        border_style="cyan",
    ))

    money = lambda value: format_currency(value, currency)  # noqa: E731
    console.print(_series_table(
        "Cumulative Net PnL", "Date", "Cumulative", result.cumulative_pnl_data, money
    ))
    console.print(_series_table(
        "Outcome Distribution", "Outcome", "Trades", result.outcome_distribution_data,
        lambda value: str(int(value)),
    ))
    console.print(_series_table(
        "PnL by Session", "Session", "Net PnL", result.session_pnl_data, money
    ))
    console.print(_series_table(
        "PnL by Grade", "Grade", "Net PnL", result.grade_pnl_data, money
    ))


@click.command()
def analyze() -> None:
    """Analyze the journal.

    Computes net P&L, profit, loss, win rate, commissions, the most
    profitable session and the best performing grade, plus cumulative,
    outcome, session and grade breakdowns. Needs at least 3 trades.

    \b
    Examples:
      aijournal analyze
    """
    from aijournal.errors import (
        InferenceError,
        InsufficientTradesError,
        JournalInputError,
        OperationInProgressError,
    )

    orchestrator = _get_orchestrator()
    message = (
        "[dim]AI is analyzing your trades...[/dim]"
        if orchestrator.config.analysis.engine == "agent"
        else "[dim]Analyzing your trades...[/dim]"
    )

    try:
        with console.status(message):
            result = orchestrator.run_analysis()
    except InsufficientTradesError as e:
        console.print(Panel(
            f"[yellow]{e}[/yellow]",
            title="[bold yellow]Not Enough Data[/bold yellow]",
            border_style="yellow",
        ))
        raise SystemExit(1)
    except JournalInputError as e:
        console.print(Panel(
            f"[red]{e}[/red]",
            title="[bold red]Cannot Analyze[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)
    except (InferenceError, OperationInProgressError) as e:
        console.print(Panel(
            f"[red]An error occurred during analysis.[/red]\n\n[dim]{e}[/dim]",
            title="[bold red]Analysis Failed[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    render_result(result, orchestrator.config.currency)


@click.command()
@click.argument(
    "path",
    type=click.Path(path_type=Path),
    default="AI_Trading_Analysis.xlsx",
    required=False,
)
def export(path: Path) -> None:
    """Export the last analysis and all trades to an Excel report.

    PATH is the destination file (default: AI_Trading_Analysis.xlsx).
    Run `aijournal analyze` first; the export refuses to write a report
    whose analysis no longer matches the journal.

    \b
    Examples:
      aijournal export
      aijournal export reports/march.xlsx
    """
    from aijournal.errors import JournalError

    orchestrator = _get_orchestrator()
    try:
        written = orchestrator.export_report(path)
    except JournalError as e:
        console.print(Panel(
            f"[yellow]{e}[/yellow]\n\nRun [cyan]aijournal analyze[/cyan] first.",
            title="[bold yellow]No Report[/bold yellow]",
            border_style="yellow",
        ))
        raise SystemExit(1)
    except OSError as e:
        console.print(Panel(
            f"[red]Could not write report:[/red]\n\n{e}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    console.print(f"[green]Report written to {written}[/green]")
