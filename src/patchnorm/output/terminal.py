"""Rich terminal renderer — record tables and stats summary."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from patchnorm.git.models import CommitDiffResult, CommitStats, FileStatus

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold cyan",
    FileStatus.MODIFIED: "bold yellow",
}


def _status_pill(status: FileStatus) -> Text:
    return Text(f" {status.value.upper()} ", style=_STATUS_STYLE.get(status, ""))


def _mode_change(old_mode: str, new_mode: str) -> str:
    if old_mode == new_mode:
        return old_mode or "-"
    return f"{old_mode or '-'} → {new_mode or '-'}"


def render_diffs(
    result: CommitDiffResult,
    *,
    show_body: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Print a commit's records as a table, optionally followed by bodies."""
    console = console or Console()

    if not len(result):
        console.print(f"[dim]No file changes in {result.commit_id}.[/dim]")
        return

    table = Table(
        title=f"Changes in {result.commit_id[:12]}",
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Status", justify="center", width=12)
    table.add_column("Path", style="magenta")
    table.add_column("Mode", style="green")

    for record in result:
        path = record.new_path or record.old_path
        if record.renamed_file and record.old_path != record.new_path:
            path = f"{record.old_path} → {record.new_path}"
        table.add_row(
            _status_pill(record.status),
            path,
            _mode_change(record.old_mode, record.new_mode),
        )

    console.print(table)

    if show_body:
        for record in result:
            if not record.body:
                continue
            console.print()
            console.print(f"[bold]{record.new_path or record.old_path}[/bold]")
            console.print(Syntax(record.body, "diff", theme="ansi_dark", word_wrap=True))


def render_stats(stats: CommitStats, *, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(f"[dim]Commit:[/dim]     {stats.id}")
    console.print(f"[dim]Additions:[/dim]  [green]+{stats.additions}[/green]")
    console.print(f"[dim]Deletions:[/dim]  [red]-{stats.deletions}[/red]")
    console.print(f"[dim]Total:[/dim]      {stats.total}")
