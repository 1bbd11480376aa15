"""CLI entry point for notifsync.

Uses Typer for command routing with lazy loading so `status` stays fast.
"""

from typing import List

import typer

__all__ = ["app", "main"]

app = typer.Typer(
    name="notifsync",
    help="Background sync for a notification feed",
    no_args_is_help=False,
)

config_app = typer.Typer(help="Show or change configuration")
app.add_typer(config_app, name="config")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Show status if no command given."""
    if ctx.invoked_subcommand is None:
        from notifsync.cli.commands import cmd_status

        cmd_status()


@app.command()
def status() -> None:
    """Show current status."""
    from notifsync.cli.commands import cmd_status

    cmd_status()


@app.command()
def run() -> None:
    """Run sync in the foreground until Ctrl+C."""
    from notifsync.cli.commands import cmd_run

    raise typer.Exit(cmd_run() or 0)


@app.command("mark-read")
def mark_read(ids: List[str] = typer.Argument(..., help="Notification ids")) -> None:
    """Queue notifications to be marked read."""
    from notifsync.cli.commands import cmd_queue
    from notifsync.utils.constants import QueueName

    cmd_queue(QueueName.READ, ids)


@app.command("mark-unread")
def mark_unread(ids: List[str] = typer.Argument(..., help="Notification ids")) -> None:
    """Queue notifications to be marked unread."""
    from notifsync.cli.commands import cmd_queue
    from notifsync.utils.constants import QueueName

    cmd_queue(QueueName.UNREAD, ids)


@app.command("mark-shown")
def mark_shown(ids: List[str] = typer.Argument(..., help="Notification ids")) -> None:
    """Queue notifications to be marked shown."""
    from notifsync.cli.commands import cmd_queue
    from notifsync.utils.constants import QueueName

    cmd_queue(QueueName.SHOWN, ids)


@app.command()
def pending(
    clear: bool = typer.Option(False, "--clear", help="Drop all pending ids"),
) -> None:
    """List ids waiting to be sent."""
    from notifsync.cli.commands import cmd_pending

    cmd_pending(clear=clear)


@app.command()
def audit(
    limit: int = typer.Option(20, "--limit", "-n", help="Entries to show"),
) -> None:
    """Show recent sync outcomes."""
    from notifsync.cli.commands import cmd_audit

    cmd_audit(limit)


@app.command()
def debug(state: str = typer.Argument(..., help="on or off")) -> None:
    """Turn debug logging on or off."""
    from notifsync.cli.commands import cmd_debug

    cmd_debug(state)


@config_app.command("set")
def config_set(key: str, value: str) -> None:
    """Set a config value."""
    from notifsync.cli.commands import cmd_config_set

    raise typer.Exit(cmd_config_set(key, value))


@config_app.command("show")
def config_show() -> None:
    """Show config values."""
    from notifsync.cli.commands import cmd_config_show

    cmd_config_show()
