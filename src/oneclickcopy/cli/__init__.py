"""
OneClickCopy CLI -- snippet documents from the command line.

The main Click group is defined here and every command group
is registered from its own module.

Entry point: oneclickcopy.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="oneclickcopy")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """OneClickCopy: one line, one tap, copied.

    Keep snippets in documents, copy them line by line, and back
    everything up to your drive.
    """


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .auth_cmd import register_auth_commands
from .docs import register_doc_commands
from .sync_cmd import register_sync_commands

register_doc_commands(main)
register_sync_commands(main)
register_auth_commands(main)
