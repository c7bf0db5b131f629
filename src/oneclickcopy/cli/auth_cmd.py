"""Account commands: login, logout, whoami."""

from __future__ import annotations

from typing import Optional

import click

from ..auth import LocalAuthenticator
from ._common import console, home_option, open_session


def register_auth_commands(main: click.Group) -> None:
    """Register the auth command group."""

    @main.group()
    def auth():
        """Sign in to the backup account."""

    @auth.command("login")
    @click.option("--email", default=None, help="Account email (local store only).")
    @home_option
    def auth_login(email: Optional[str], home: str):
        """Sign in. The first sign-in on a device restores the backup once."""
        with open_session(home) as session:
            authenticator = session.auth
            try:
                if isinstance(authenticator, LocalAuthenticator):
                    if not email:
                        console.print("[red]--email is required for the local store[/]")
                        raise SystemExit(1)
                    authenticator.sign_in(email)
                else:
                    authenticator.sign_in()
            except FileNotFoundError as exc:
                console.print(f"[red]Sign-in failed: {exc}[/]")
                raise SystemExit(1)

            if session.sign_in_completed():
                console.print("  [dim]Checking for a backup to restore...[/]")
                session.wait_idle(timeout=60)

    @auth.command("logout")
    @home_option
    def auth_logout(home: str):
        """Sign out. Local documents are kept."""
        with open_session(home) as session:
            session.sign_out()

    @auth.command("whoami")
    @home_option
    def auth_whoami(home: str):
        """Show the signed-in account."""
        with open_session(home) as session:
            identity = session.auth.current_identity()
            if identity is None:
                console.print("  [yellow]Not signed in[/]")
                return
            console.print(f"  Signed in as [cyan]{identity.email}[/]")
