"""Rich console implementation of the UserInterface."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from contactsweep.domain.interfaces.user_interface import UserInterface
from contactsweep.domain.models.common import (
    STATUS_BATCH_PAUSE,
    STATUS_CANCELLED,
    STATUS_DONE,
    STATUS_FAILED,
    STATUS_RATE_LIMITED,
    STATUS_REMOVED,
    STATUS_REMOVING,
    BulkResult,
    FetchProgress,
    RemoveProgress,
)
from contactsweep.domain.models.contact import ContactRecord

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    STATUS_REMOVING: "[cyan]Removing[/cyan] {item}",
    STATUS_REMOVED: "[green]Removed[/green] {item}",
    STATUS_RATE_LIMITED: "[yellow]Rate limited, backing off[/yellow] ({item})",
    STATUS_BATCH_PAUSE: "[yellow]Batch pause[/yellow]",
    STATUS_FAILED: "[red]Failed[/red] {item}",
    STATUS_CANCELLED: "[red]Cancelled[/red]",
    STATUS_DONE: "[green]Done[/green]",
}


def _format_connected_at(value: Optional[int]) -> str:
    if not value:
        return ""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def confirm(self, prompt_message: str) -> bool:
        """Asks a yes/no question and returns the answer."""
        logger.debug(f"Asking yes/no question: {prompt_message}")
        panel = Panel(
            Text(f"{prompt_message} (y/n)", style="white"),
            title="[bold yellow]Question[/bold yellow]",
            border_style="yellow",
            box=ROUNDED,
            padding=(0, 1)
        )
        self.console.print(panel)
        response = self.console.input("[bold yellow]> [/bold yellow]").strip().lower()
        return response in ('y', 'yes')

    def display_contacts(self, records: Sequence[ContactRecord], limit: int = 20) -> None:
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("#", style="dim", justify="right")
        table.add_column("Name", style="bold")
        table.add_column("Headline", overflow="fold")
        table.add_column("Connected", style="dim")
        for index, record in enumerate(records[:limit], start=1):
            table.add_row(str(index), escape(record.name or record.label), escape(record.headline), _format_connected_at(record.connected_at))
        self.console.print(table)
        if len(records) > limit:
            self.console.print(f"[dim]... and {len(records) - limit} more[/dim]")

    # --- Progress ---

    def _start(self, *columns: Any, description: str, total: Optional[int]) -> None:
        self.stop_progress()
        self._progress = Progress(*columns, console=self.console, transient=False)
        self._progress.start()
        self._task = self._progress.add_task(description, total=total)

    def start_fetch_progress(self) -> None:
        self._start(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            description="Fetching contacts",
            total=None,
        )

    def update_fetch_progress(self, progress: FetchProgress) -> None:
        if self._progress is None or self._task is None:
            return
        # An unknown total keeps the bar indeterminate
        total = progress["total"] or None
        self._progress.update(self._task, completed=progress["fetched"], total=total)

    def start_removal_progress(self, total: int) -> None:
        self._start(
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            description="Starting",
            total=total,
        )

    def update_removal_progress(self, progress: RemoveProgress) -> None:
        if self._progress is None or self._task is None:
            return
        template = STATUS_LABELS.get(progress["status"], "{item}")
        description = template.format(item=escape(progress["current_item"] or ""))
        self._progress.update(self._task, completed=progress["completed"], description=description)

    def stop_progress(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None

    def display_bulk_summary(self, result: BulkResult) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Removed", f"[green]{result.completed}[/green]")
        table.add_row("Failed", f"[red]{len(result.failed)}[/red]" if result.failed else "0")
        table.add_row("Cancelled", "[yellow]yes[/yellow]" if result.cancelled else "no")
        self.console.print(Panel(table, title="[bold]Bulk removal summary[/bold]", border_style="cyan", box=SIMPLE))

        if result.failed:
            failures = Table(show_header=True, box=SIMPLE, border_style="red", padding=(0, 1))
            failures.add_column("Contact")
            failures.add_column("Reason", overflow="fold")
            for entry in result.failed:
                name = entry.item.label if isinstance(entry.item, ContactRecord) else str(entry.item)
                failures.add_row(escape(name), escape(entry.error))
            self.console.print(failures)
