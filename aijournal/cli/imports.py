"""Import command for the journal CLI."""

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel

console = Console()


@click.command(name="import")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
def import_trades(file: Path) -> None:
    """Import trades from a spreadsheet.

    FILE is an .xlsx, .xls or .csv file with one trade per row. Column
    names may be in any layout; P&L, commission, dates, sessions and
    grades are recognized under common names. Rows without a P&L value
    are skipped.

    \b
    Examples:
      aijournal import journal.xlsx
      aijournal import export.csv
    """
    from aijournal.config import load_config
    from aijournal.errors import (
        InferenceError,
        JournalInputError,
        NothingToImportError,
        OperationInProgressError,
    )
    from aijournal.orchestrator import open_orchestrator

    config = load_config()
    orchestrator = open_orchestrator(config)

    message = (
        "[dim]AI is interpreting your file...[/dim]"
        if config.import_.engine == "agent"
        else "[dim]Reading your file...[/dim]"
    )

    try:
        with console.status(message):
            imported = orchestrator.import_file(file)
    except JournalInputError as e:
        console.print(Panel(
            f"[red]{e}[/red]",
            title="[bold red]Import Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)
    except NothingToImportError as e:
        console.print(Panel(
            f"[yellow]{e}[/yellow]",
            title="[bold yellow]Nothing Imported[/bold yellow]",
            border_style="yellow",
        ))
        raise SystemExit(1)
    except (InferenceError, OperationInProgressError) as e:
        console.print(Panel(
            f"[red]An error occurred during import.[/red]\n\n[dim]{e}[/dim]",
            title="[bold red]Import Failed[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    console.print(Panel(
        f"[green]Successfully imported {len(imported)} trades![/green]\n\n"
        f"[dim]Trades in journal: {len(orchestrator.journal)}[/dim]",
        title="[bold cyan]Import Complete[/bold cyan]",
        border_style="cyan",
    ))
