"""Shared utilities for all CLI command modules.

Provides the Rich console, logging setup, and the session helper
every command uses to reach the store and sync engine.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

import click
from rich.console import Console

from .. import APP_HOME
from ..app import NotesSession, build_session
from ..config import resolve_home

console = Console()
logger = logging.getLogger("oneclickcopy.cli")

LOG_DIR = "logs"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

_logging_configured = False

home_option = click.option(
    "--home", default=APP_HOME, type=click.Path(), help="App home directory."
)


def setup_logging(home: Path, verbose: bool = False) -> None:
    """Log to ``<home>/logs/oneclickcopy.log``; with ``verbose`` also to stderr."""
    global _logging_configured
    if _logging_configured:
        return
    root = logging.getLogger()
    log_dir = home / LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / "oneclickcopy.log", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    if verbose:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(stream)
        root.setLevel(logging.DEBUG)
    _logging_configured = True


def notify(message: str) -> None:
    """Transient user notification."""
    style = "red" if "failed" in message.lower() else "dim"
    console.print(f"  [{style}]{message}[/]")


@contextmanager
def open_session(home: str) -> Iterator[NotesSession]:
    """Build a session for ``home``; finish background sync before closing."""
    home_path = resolve_home(Path(home))
    ctx = click.get_current_context(silent=True)
    verbose = bool(ctx and ctx.find_root().params.get("verbose"))
    setup_logging(home_path, verbose)

    session = build_session(home_path, notify=notify)
    try:
        yield session
    finally:
        session.wait_idle(timeout=60)
        session.close()


def format_ms(epoch_ms: int | None) -> str:
    """Render an epoch-ms timestamp for humans."""
    if not epoch_ms:
        return "never"
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")
