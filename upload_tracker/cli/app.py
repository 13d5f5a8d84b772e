"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from upload_tracker import __version__
from upload_tracker.core.driver import ProgressDriver
from upload_tracker.core.tracker import UploadTracker
from upload_tracker.exceptions import UploadTrackerError
from upload_tracker.models.upload import PayloadRef
from upload_tracker.storage.config_manager import ConfigManager
from upload_tracker.utils.structured_logger import create_structured_logger

from .formatters import print_config, print_summary_panel, print_validation_table
from .progress_manager import UploadProgressView

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("upload_tracker")
log.setLevel("WARNING")

app = typer.Typer(
    name="upload-tracker",
    help=(
        "Track a batch of concurrent uploads with live per-file progress. Use"
        " 'upload-tracker <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "upload-tracker"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Upload Tracker CLI"""
    if version:
        console.print(
            f"[bold]upload-tracker[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    log_level = "WARNING"
    if verbose >= 2:
        log_level = "DEBUG"
    elif verbose == 1:
        log_level = "INFO"
    logging.getLogger("upload_tracker").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]upload-tracker init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.load_config()
        print_config(CONFIG_FILE, config_manager._get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config without asking."
    ),
):
    """Write a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    config_manager = ConfigManager(CONFIG_FILE)
    config_manager.save_new_config({})
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready! Try: [cyan]upload-tracker upload <FILE>...[/cyan]")


@app.command(name="upload")
def upload_command(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., help="Files to submit. Missing files are accepted and tracked as 0 B."
    ),
    failure_rate: float | None = typer.Option(
        None,
        "--failure-rate",
        "-p",
        help="Probability (0-1) that an individual upload fails.",
    ),
    min_duration: float | None = typer.Option(
        None, "--min-duration", help="Shortest simulated upload, in seconds."
    ),
    max_duration: float | None = typer.Option(
        None, "--max-duration", help="Longest simulated upload, in seconds."
    ),
    tick: float | None = typer.Option(
        None, "--tick", help="Seconds between progress updates."
    ),
    seed: int | None = typer.Option(
        None, "--seed", help="Seed durations and outcomes for a reproducible run."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Print one line per finished upload, no live view."
    ),
):
    """Upload files and follow their progress until every one has finished."""
    cli_options = {
        key: value
        for key, value in {
            "failure_probability": failure_rate,
            "min_duration": min_duration,
            "max_duration": max_duration,
            "tick_interval": tick,
            "seed": seed,
        }.items()
        if value is not None
    }

    try:
        config = ConfigManager(CONFIG_FILE).load_config(cli_options)
    except UploadTrackerError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    payloads = [PayloadRef.from_path(path) for path in files]
    missing = [p.name for p in payloads if p.path and not p.path.is_file()]
    if missing:
        log.warning(
            f"[yellow]Not found on disk, tracking anyway:[/] {', '.join(missing)}"
        )

    async def _upload_async() -> UploadTracker:
        log_dir = Path(config.log_dir).expanduser() if config.log_dir else None
        base_logger, upload_logger, session_logger = create_structured_logger(
            log_dir=log_dir, enable_json=log_dir is not None
        )
        tracker = UploadTracker(
            driver=ProgressDriver.from_config(config), event_log=upload_logger
        )
        session_logger.session_started(
            total_items=len(payloads),
            failure_probability=config.failure_probability,
            min_duration=config.min_duration,
            max_duration=config.max_duration,
        )
        try:
            async with UploadProgressView(console=console, quiet=quiet) as view:
                view.attach(tracker)
                tracker.enqueue(payloads)
                try:
                    await tracker.join()
                except asyncio.CancelledError:
                    removed = tracker.clear()
                    console.print(
                        f"\n[yellow]⚠️  Cancelled, dismissed {removed} upload(s)."
                        "[/yellow]"
                    )
                    raise
        finally:
            await tracker.aclose()
            session_logger.session_completed(tracker.stats.as_dict())
            base_logger.close()
        return tracker

    start_time = time.monotonic()
    tracker = asyncio.run(_upload_async())
    print_summary_panel(tracker.stats, time.monotonic() - start_time)

    if tracker.stats.failed:
        raise typer.Exit(code=2)


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config = config_manager.load_config()
        print_validation_table(config)
    except UploadTrackerError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
