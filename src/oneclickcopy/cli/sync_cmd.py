"""Sync commands: backup, restore, status."""

from __future__ import annotations

import click
from rich.panel import Panel

from ..sync.errors import SyncErrorKind
from ._common import console, format_ms, home_option, open_session


def register_sync_commands(main: click.Group) -> None:
    """Register the sync command group."""

    @main.group()
    def sync():
        """Cloud backup of all documents.

        One JSON file on your drive holds every document. Backups
        run automatically when the list is shown; these commands
        run them by hand.
        """

    @sync.command("backup")
    @home_option
    def sync_backup(home: str):
        """Back up every document now, ignoring the cooldown."""
        with open_session(home) as session:
            count = session.store.count()
            console.print(f"\n  Backing up {count} document(s)...", end=" ")
            result = session.backup_now()
            if result.ok:
                console.print("[green]done[/]\n")
                return
            console.print("[red]failed[/]")
            console.print(f"  [red]Backup failed: {result.error.message}[/]\n")
            raise SystemExit(1)

    @sync.command("restore")
    @click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
    @home_option
    def sync_restore(yes: bool, home: str):
        """Add every document from the backup as a new local document.

        Existing documents are kept; running this twice adds the
        backup twice.
        """
        if not yes:
            click.confirm("Add all backed-up documents to this device?", abort=True)
        with open_session(home) as session:
            result = session.restore_now()
            if result.ok:
                console.print(f"\n  [green]Restored {len(result.value)} document(s)[/]\n")
                return
            if result.kind == SyncErrorKind.NO_BACKUP_FOUND:
                console.print("\n  [yellow]No backup found[/]\n")
                return
            console.print(f"\n  [red]Restore failed: {result.error.message}[/]\n")
            raise SystemExit(1)

    @sync.command("status")
    @home_option
    def sync_status(home: str):
        """Show sign-in, last backup, and restore state."""
        with open_session(home) as session:
            identity = session.auth.current_identity()
            state = session.coordinator.state.snapshot()

            account = (
                f"[green]{identity.email or 'signed in'}[/]" if identity else "[yellow]not signed in[/]"
            )
            lines = [
                f"Account: {account}",
                f"Store: [cyan]{session.client.remote.name}[/]",
                f"Documents: {session.store.count()}",
                f"Last auto-backup: {format_ms(state.last_backup_at)}",
                f"Auto-backups: {state.backup_count}",
                f"First-login restore: {'done' if state.has_restored_once else 'pending'}",
            ]
            if state.last_error:
                lines.append(f"Last error: [red]{state.last_error}[/]")
            console.print(Panel("\n".join(lines), title="Sync Status", border_style="cyan"))
