# src/crudforge/ui.py

from rich.align import Align
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .core.logging import log
from .db.models import ModelDescriptor

# --- Global Console ---
# Shared with the logger so output interleaves in order.
console = log.console


def display_resource_structure(descriptor: ModelDescriptor) -> None:
    """Prints the columns, relations and capabilities of a registered model."""

    structure_table = Table(
        box=None, padding=(0, 1), show_header=False, show_edge=False
    )
    structure_table.add_column("Name", style="cyan", no_wrap=True, width=24)
    structure_table.add_column("Type", style="green", width=32)
    structure_table.add_column("Details", style="white")

    for column in descriptor.table.columns:
        col_name = f"{column.name}{'*' if not column.nullable else ''}"
        details = []
        if column.primary_key:
            details.append("[yellow]PK[/yellow]")
        if column.foreign_keys:
            fk = next(iter(column.foreign_keys))
            details.append(f"[blue]FK -> {fk.column.table.name}[/blue]")
        if column.name in descriptor.full_text_columns.values():
            details.append("[bold magenta]TSV[/bold magenta]")
        structure_table.add_row(col_name, str(column.type), " ".join(details))

    for name, rel in descriptor.relations.items():
        kind = "many" if rel.uselist else "one"
        preload = " [dim](preload)[/dim]" if name in descriptor.preloads else ""
        structure_table.add_row(
            f"[magenta]{name}[/magenta]", f"-> {rel.mapper.class_.__name__} ({kind})", preload
        )

    console.print(structure_table)
    caps = ", ".join(sorted(c.value for c in descriptor.capabilities)) or "none"
    console.print(
        f"  [bold]Delete[/bold]: {descriptor.deletion_policy.value}  "
        f"[bold]Capabilities[/bold]: [dim]{caps}[/dim]"
    )
    console.print()


def print_welcome(project_name: str, version: str, host: str, port: int) -> None:
    """Prints a welcome message using a rich Panel."""
    docs_url = f"http://{host}:{port}/docs"
    message = Text.from_markup(
        f"API Documentation available at [link={docs_url}]{docs_url}[/link]"
    )
    panel = Panel(
        Align.center(message, vertical="middle"),
        title=f"[bold green]{project_name} v{version}[/bold green]",
        border_style="blue",
        padding=(1, 2),
    )
    console.print(panel)
