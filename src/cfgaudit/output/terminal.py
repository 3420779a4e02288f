"""Rich terminal reporter for a pipeline run."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from cfgaudit.audit.writer import format_key
from cfgaudit.pipeline.models import RunResult

_KIND_STYLE = {
    "ADDED": "bold black on green",
    "DELETED": "bold white on red",
    "MODIFIED": "bold black on yellow",
}


def _kind_pill(kind: str) -> Text:
    return Text(f" {kind} ", style=_KIND_STYLE.get(kind, ""))


def render(result: RunResult, *, show_summary: bool = True, console: Console | None = None) -> None:
    """Print a run result to the terminal using Rich."""
    console = console or Console(stderr=True)

    if not result.entries:
        console.print()
        if result.pending == 0:
            console.print("[bold green]✅ No new checkpoints since the last run.[/bold green]")
        else:
            console.print("[bold green]✅ No configuration changes to record.[/bold green]")
    else:
        console.print()
        table = Table(
            title="Configuration Changes",
            show_lines=True,
            title_style="bold",
            border_style="dim",
        )
        table.add_column("Change", justify="center", width=12)
        table.add_column("Checkpoint Time", style="green")
        table.add_column("User", style="cyan")
        table.add_column("File", style="magenta")
        table.add_column("Lines", justify="right")

        for entry in result.entries:
            table.add_row(
                _kind_pill(entry.change_kind.value),
                format_key(entry.checkpoint_key),
                entry.user_id,
                entry.file_path,
                str(len(entry.changes)),
            )
        console.print(table)

    for failure in result.failed:
        console.print(
            f"[yellow]⚠[/yellow]  {failure.name} skipped at {failure.stage}: {failure.reason}"
        )

    if show_summary:
        _print_summary(console, result)

    if result.write_failed:
        console.print()
        console.print(
            "[bold red]❌ Audit log write failed — cursor not advanced, "
            "changes will be retried.[/bold red]"
        )


def _print_summary(console: Console, result: RunResult) -> None:
    console.print()
    console.print(f"[dim]Checkpoints:[/dim]   {result.scanned}")
    console.print(f"[dim]Pending:[/dim]       {result.pending}")
    console.print(f"[dim]Processed:[/dim]     {len(result.processed)}")
    console.print(f"[dim]Failed:[/dim]        {len(result.failed)}")
    console.print(f"[dim]Changes:[/dim]       {result.total_entries}")
    console.print(f"[dim]Skipped:[/dim]       {len(result.skipped)}")
    console.print(f"[dim]Cursor:[/dim]        {result.previous_cursor} → {result.cursor}")
    console.print(f"[dim]Duration:[/dim]      {result.duration_ms:.0f}ms")
