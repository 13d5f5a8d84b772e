"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from upload_tracker.models.config import TrackerConfig
from upload_tracker.models.stats import UploadStats
from upload_tracker.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Run `upload-tracker validate` to see which setting is rejected.",
            "• Run `upload-tracker init --force` to write a fresh default config.",
        ],
        "TrackerClosedError": [
            "• The tracking session has already been shut down.",
            "• Start a new session to submit more files.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the configuration file's values."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in config_data.items())
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: TrackerConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row(
        "Duration:", f"{config.min_duration:g}s – {config.max_duration:g}s"
    )
    table.add_row("Tick Interval:", f"{config.tick_interval:g}s")
    table.add_row("Failure Rate:", f"{config.failure_probability:.0%}")
    table.add_row("Error Message:", f"[dim]{config.error_message}[/dim]")
    table.add_row("Seed:", str(config.seed) if config.seed is not None else "random")
    table.add_row("Event Log:", config.log_dir or "✗ Disabled")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(stats: UploadStats, duration_s: float):
    """Displays a final summary of the tracking session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Submitted:", f"[cyan]{stats.submitted}[/cyan]")
    stats_table.add_row("✓ Uploaded:", f"[bold green]{stats.succeeded}[/bold green]")
    if stats.failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.failed}[/bold red]")
    if stats.removed_in_flight > 0:
        stats_table.add_row(
            "○ Cancelled:", f"[yellow]{stats.removed_in_flight}[/yellow]"
        )

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_size_submitted)}[/cyan]"
    )
    stats_table.add_row("Peak Concurrent:", f"[green]{stats.peak_active}[/green]")
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if stats.failed == 0 and stats.removed_in_flight == 0:
        title = "⇪ [bold]Uploads Complete![/bold]"
        border_color = "green"
    else:
        title = "⇪ [bold]Uploads Finished With Issues[/bold]"
        border_color = "yellow"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
