"""Document commands: new, list, show, edit, copy, move, reset, rm."""

from __future__ import annotations

import click
from rich.table import Table

from ..store import DocumentNotFoundError
from ._common import console, format_ms, home_option, open_session


def _open_editor(session, doc_id: int):
    try:
        return session.open_editor(doc_id)
    except DocumentNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        raise SystemExit(1)


def register_doc_commands(main: click.Group) -> None:
    """Register the document commands."""

    @main.command("new")
    @click.argument("title")
    @click.option("--line", "-l", "lines", multiple=True, help="Snippet line (repeatable).")
    @home_option
    def new_doc(title: str, lines: tuple[str, ...], home: str):
        """Create a document.

        Examples:

            oneclickcopy new "Addresses" -l "221B Baker Street" -l "742 Evergreen Terrace"
        """
        with open_session(home) as session:
            editor = session.open_editor()
            editor.set_title(title)
            editor.set_content("\n".join(lines))
            editor.close()
            console.print(f"  Created document [cyan]{editor.document_id}[/]: {title}")

    @main.command("list")
    @home_option
    def list_docs(home: str):
        """List documents, most recently edited first.

        Showing the list also runs the auto-backup when signed in.
        """
        with open_session(home) as session:
            visit = session.open_list()
            documents = visit.documents
            visit.close()

            if not documents:
                console.print("\n  [dim]No documents yet. Create one with[/] oneclickcopy new\n")
                return

            table = Table(title="Last opened")
            table.add_column("ID", style="cyan", justify="right")
            table.add_column("Title")
            table.add_column("Items", justify="right")
            table.add_column("Copied", justify="right")
            table.add_column("Updated", style="dim")
            for doc in documents:
                items = doc.lines()
                copied = sum(1 for item in items if item in doc.copied_keys)
                table.add_row(
                    str(doc.id), doc.title or "[dim](untitled)[/]",
                    str(len(items)), str(copied), format_ms(doc.updated_at),
                )
            console.print(table)

    @main.command("show")
    @click.argument("doc_id", type=int)
    @home_option
    def show_doc(doc_id: int, home: str):
        """Show a document's items and which have been copied."""
        with open_session(home) as session:
            doc = session.store.get(doc_id)
            if doc is None:
                console.print(f"[red]Document not found: {doc_id}[/]")
                raise SystemExit(1)

            console.print(f"\n  [bold]{doc.title}[/]  [dim](updated {format_ms(doc.updated_at)})[/]")
            copied = doc.copied_keys
            for index, item in enumerate(doc.lines(), start=1):
                mark = "[green]\\[x][/]" if item in copied else "[dim]\\[ ][/]"
                console.print(f"  {mark} {index:>2}. {item}")
            console.print()

    @main.command("edit")
    @click.argument("doc_id", type=int)
    @click.option("--title", "-t", default=None, help="New title.")
    @click.option("--line", "-l", "lines", multiple=True, help="Replace all lines (repeatable).")
    @click.option("--append", "-a", "appended", multiple=True, help="Append a line (repeatable).")
    @home_option
    def edit_doc(doc_id: int, title: str, lines: tuple[str, ...], appended: tuple[str, ...], home: str):
        """Change a document's title or lines."""
        with open_session(home) as session:
            editor = _open_editor(session, doc_id)
            if title is not None:
                editor.set_title(title)
            if lines:
                editor.set_content("\n".join(lines))
            if appended:
                base = editor.content
                extra = "\n".join(appended)
                editor.set_content(f"{base}\n{extra}" if base else extra)
            editor.close()
            console.print(f"  Saved document [cyan]{doc_id}[/]")

    @main.command("copy")
    @click.argument("doc_id", type=int)
    @click.argument("index", type=int)
    @home_option
    def copy_item(doc_id: int, index: int, home: str):
        """Print item INDEX (1-based) and mark it as copied."""
        with open_session(home) as session:
            editor = _open_editor(session, doc_id)
            if not 1 <= index <= len(editor.items):
                editor.close()
                console.print(f"[red]No item {index} in document {doc_id}[/]")
                raise SystemExit(1)
            text = editor.mark_copied(index - 1)
            editor.close()
            click.echo(text)

    @main.command("move")
    @click.argument("doc_id", type=int)
    @click.argument("from_index", type=int)
    @click.argument("to_index", type=int)
    @home_option
    def move_item(doc_id: int, from_index: int, to_index: int, home: str):
        """Move item FROM_INDEX to TO_INDEX (1-based)."""
        with open_session(home) as session:
            editor = _open_editor(session, doc_id)
            items = editor.enter_list_view()
            if not (1 <= from_index <= len(items) and 1 <= to_index <= len(items)):
                editor.close()
                console.print(f"[red]Positions must be between 1 and {len(items)}[/]")
                raise SystemExit(1)
            editor.move(from_index - 1, to_index - 1)
            editor.exit_list_view()
            editor.close()
            console.print(f"  Moved item {from_index} to {to_index}")

    @main.command("reset")
    @click.argument("doc_id", type=int)
    @home_option
    def reset_doc(doc_id: int, home: str):
        """Clear all copied marks on a document."""
        with open_session(home) as session:
            editor = _open_editor(session, doc_id)
            editor.reset_copied()
            editor.close()
            console.print(f"  Reset copied marks on document [cyan]{doc_id}[/]")

    @main.command("rm")
    @click.argument("doc_id", type=int)
    @home_option
    def remove_doc(doc_id: int, home: str):
        """Delete a document."""
        with open_session(home) as session:
            if not session.delete_document(doc_id):
                console.print(f"[red]Document not found: {doc_id}[/]")
                raise SystemExit(1)
            console.print(f"  Deleted document [cyan]{doc_id}[/]")
