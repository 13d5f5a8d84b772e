"""
Renders tracker snapshots as a Rich Live display.
Shows a session header and one row per tracked upload with its progress bar,
outcome icon and error message.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from upload_tracker.core.tracker import Snapshot, UploadTracker
from upload_tracker.models.upload import UploadItem, UploadState
from upload_tracker.utils.formatting import format_megabytes, truncate_name

log = logging.getLogger(__name__)


class UploadProgressView:
    """
    A read-only view over an `UploadTracker`. It subscribes to the tracker and
    redraws from every snapshot it is handed; it never mutates tracker state.

    In quiet mode no Live display is started and only terminal transitions are
    reported, one line each.
    """

    def __init__(self, console: Console, quiet: bool = False):
        self.console = console
        self.quiet = quiet

        self._live: Live | None = None
        self._snapshot: Snapshot = ()
        self._reported: set[str] = set()
        self._unsubscribe: Callable[[], None] | None = None
        self._start_time: datetime | None = None

    @property
    def snapshot(self) -> Snapshot:
        """The last snapshot received from the tracker."""
        return self._snapshot

    def attach(self, tracker: UploadTracker) -> None:
        """Subscribes to a tracker and renders its current state."""
        self.detach()
        self._unsubscribe = tracker.subscribe(self.on_snapshot)
        self.on_snapshot(tracker.snapshot())

    def detach(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def on_snapshot(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        if self.quiet:
            self._report_terminal(snapshot)
        elif self._live:
            self._live.update(self.render(), refresh=False)

    def _report_terminal(self, snapshot: Snapshot) -> None:
        for item in snapshot:
            if item.is_terminal and item.id not in self._reported:
                self._reported.add(item.id)
                if item.state is UploadState.SUCCEEDED:
                    self.console.print(
                        f"  [green]✓ Uploaded:[/green] {escape(item.payload.name)}"
                    )
                else:
                    self.console.print(
                        f"  [red]✗ Failed:[/red] {escape(item.payload.name)} "
                        f"[dim]({escape(item.error_message or '')})[/dim]"
                    )

    def _generate_header(self) -> Panel:
        if self._start_time:
            elapsed = (datetime.now() - self._start_time).total_seconds()
        else:
            elapsed = 0.0
        uploading = sum(1 for i in self._snapshot if not i.is_terminal)
        succeeded = sum(1 for i in self._snapshot if i.state is UploadState.SUCCEEDED)
        failed = sum(1 for i in self._snapshot if i.state is UploadState.FAILED)

        header_text = Text()
        header_text.append("⇪ Upload Tracker ", style="bold cyan")
        header_text.append("│ ", style="dim")
        header_text.append(f"{elapsed:5.1f}s", style="yellow")
        header_text.append(" │ ", style="dim")
        header_text.append(f"{uploading} uploading", style="cyan")
        header_text.append(" • ", style="dim")
        header_text.append(f"{succeeded} done", style="green")
        header_text.append(" • ", style="dim")
        header_text.append(f"{failed} failed", style="red")
        return Panel(header_text, border_style="cyan")

    @staticmethod
    def _status_cell(item: UploadItem):
        if item.state is UploadState.UPLOADING:
            bar = ProgressBar(total=100, completed=item.progress, width=20)
            grid = Table.grid(padding=(0, 1))
            grid.add_row(bar, f"{round(item.progress):>3d}%")
            return grid
        if item.state is UploadState.SUCCEEDED:
            return Text("✓", style="bold green")
        return Text.assemble(
            ("✗ ", "bold red"), (item.error_message or "", "red")
        )

    def _generate_items_panel(self) -> Panel:
        if not self._snapshot:
            return Panel(
                Text("No files selected.", style="dim italic", justify="center"),
                title="[bold]📄 Uploads[/bold]",
                border_style="green",
            )
        table = Table.grid(padding=(0, 2))
        table.add_column(style="white", no_wrap=True)
        table.add_column(style="dim", justify="right")
        table.add_column()
        for item in self._snapshot:
            table.add_row(
                escape(truncate_name(item.payload.name)),
                format_megabytes(item.payload.size),
                self._status_cell(item),
            )
        return Panel(
            table,
            title=f"[bold]📄 Uploads ({len(self._snapshot)})[/bold]",
            border_style="green",
        )

    def render(self) -> Group:
        return Group(self._generate_header(), self._generate_items_panel())

    async def __aenter__(self):
        self._start_time = datetime.now()
        if self.quiet:
            return self
        self._live = Live(
            self.render(),
            console=self.console,
            refresh_per_second=12,
            vertical_overflow="visible",
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.detach()
        if self._live:
            # Let the final state paint before tearing down
            await asyncio.sleep(0.2)
            self._live.update(self.render(), refresh=True)
            self._live.stop()
            self._live = None
