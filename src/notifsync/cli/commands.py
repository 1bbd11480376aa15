"""CLI command handlers."""

from datetime import datetime

from rich.table import Table

from notifsync.cli.helpers import clear_pending, get_audit_log, get_pending, queue_ids
from notifsync.cli.ui import console
from notifsync.utils.config import Config, get_notifsync_dir
from notifsync.utils.constants import QueueName


def cmd_status():
    """Show current status."""
    from notifsync.daemon import get_runner_pid

    notifsync_dir = get_notifsync_dir()
    config = Config(notifsync_dir)

    console.print(f"[bold]Config:[/bold] [dim]{notifsync_dir}[/dim]")

    if config.is_configured:
        console.print(
            f"[bold]Service:[/bold] [green]{config.api_base_url}[/green] "
            f"as [cyan]{config.username}[/cyan]"
        )
    else:
        console.print("[bold]Service:[/bold] [yellow]not configured[/yellow]")

    debug_color = "green" if config.debug else "dim"
    console.print(
        f"[bold]Debug:[/bold] [{debug_color}]{'on' if config.debug else 'off'}[/{debug_color}]"
    )
    console.print(f"[bold]Poll interval:[/bold] {config.poll_interval_ms} ms")

    pid = get_runner_pid(notifsync_dir)
    if pid:
        console.print(f"[bold]Sync:[/bold] [green]running[/green] [dim](pid {pid})[/dim]")
    else:
        console.print("[bold]Sync:[/bold] [dim]stopped[/dim]")

    pending = get_pending(notifsync_dir)
    counts = ", ".join(f"{name} {len(pending[name])}" for name in QueueName.ALL)
    console.print(f"[bold]Pending:[/bold] {counts}")


def cmd_run():
    """Run sync in the foreground."""
    from notifsync.daemon import get_runner_pid, run_foreground

    notifsync_dir = get_notifsync_dir()
    config = Config(notifsync_dir)
    if not config.is_configured:
        console.print("[red]Not configured.[/red]")
        console.print("[dim]Set api_base_url and username with: notifsync config set[/dim]")
        return 1

    if get_runner_pid(notifsync_dir):
        console.print("[yellow]Sync is already running[/yellow]")
        return 1

    console.print(f"[green]Syncing[/green] for [cyan]{config.username}[/cyan] (Ctrl+C to stop)")
    run_foreground(notifsync_dir)
    console.print("[dim]Sync stopped[/dim]")
    return 0


def cmd_queue(queue: str, ids: list[str]):
    """Queue ids for the next sync cycle."""
    if not ids:
        console.print("[yellow]No ids given[/yellow]")
        return
    queue_ids(get_notifsync_dir(), queue, ids)
    console.print(f"[green]✓ Queued {len(ids)} for {queue}[/green]")


def cmd_pending(clear: bool = False):
    """List or clear pending ids."""
    notifsync_dir = get_notifsync_dir()
    if clear:
        clear_pending(notifsync_dir)
        console.print("[green]✓ Pending queues cleared[/green]")
        return

    pending = get_pending(notifsync_dir)
    if not any(pending.values()):
        console.print("[dim]Nothing pending[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Queue")
    table.add_column("Count", justify="right")
    table.add_column("Ids")
    for name in QueueName.ALL:
        ids = pending[name]
        if ids:
            shown = ", ".join(ids[:10]) + (" ..." if len(ids) > 10 else "")
            table.add_row(name, str(len(ids)), shown)
    console.print(table)


def cmd_audit(limit: int = 20):
    """Show recent audit entries."""
    entries = get_audit_log(get_notifsync_dir(), limit)
    if not entries:
        console.print("[dim]No audit entries[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Time")
    table.add_column("Event")
    table.add_column("Queue")
    table.add_column("Details")
    for entry in entries:
        when = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        details = " ".join(f"{k}={v}" for k, v in entry.details.items())
        table.add_row(when, entry.event_type, entry.queue or "", details)
    console.print(table)


def cmd_debug(state: str):
    """Toggle debug logging."""
    from notifsync.utils.debug import reload_config

    config = Config(get_notifsync_dir())
    enabled = state.lower() in ("on", "true", "1", "yes")
    config.set_debug(enabled)
    reload_config()
    console.print(f"[bold]Debug:[/bold] {'on' if enabled else 'off'}")


def cmd_config_set(key: str, value: str):
    """Set a config value."""
    config = Config(get_notifsync_dir())
    if not config.set_value(key, value):
        console.print(f"[red]Cannot set[/red] {key}")
        console.print(f"[dim]Settable keys: {', '.join(Config.SETTABLE)}[/dim]")
        return 1
    console.print(f"[green]✓[/green] {key} = {getattr(config, key)}")
    return 0


def cmd_config_show():
    """Show config values."""
    config = Config(get_notifsync_dir())
    for key, description in Config.SETTABLE.items():
        value = getattr(config, key)
        if key == "api_token" and value:
            value = "********"
        console.print(f"[bold]{key}[/bold] = {value} [dim]({description})[/dim]")
