import asyncio
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from appdom._dom import CURRENT_VERSION
from appdom._errors import AppDomError
from appdom._expr import UNDEFINED, Failed, JsRuntime, Loading, to_json
from appdom._functions import FunctionRuntime
from appdom._io import load_document, save_document
from appdom._migrations import migrate_up, pending_migrations

from .config import get_config

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Appdom CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _document_path(document: Path | None) -> Path:
    """Path given on the command line, else ``[tool.appdom].document``."""
    if document is not None:
        return document
    config = get_config()
    if config.document is None:
        msg = "No document given and no [tool.appdom].document configured"
        raise _fail(msg)
    return config.document


def _resource_path(module: Path) -> Path:
    """Module path as given, else relative to ``[tool.appdom].resources``."""
    if module.is_absolute() or module.exists():
        return module
    config = get_config()
    if config.resources is not None:
        return config.resources / module
    return module


def _parse_json(value: str, what: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON {what}: {e}"
        raise _fail(msg) from e


def _print_json(value: Any) -> None:
    text = to_json(value, 2)
    if text is UNDEFINED:
        out_console.print("undefined")
    else:
        out_console.print_json(text)


@app.command()
def check(
    document: Annotated[
        Path | None,
        typer.Argument(help="Path to the document JSON (defaults to [tool.appdom].document)"),
    ] = None,
) -> None:
    """Check the integrity of a document after migrating it in memory."""
    path = _document_path(document)
    err_console.print()
    err_console.print(f"[cyan]Loading document from:[/cyan] {path}")
    try:
        doc = load_document(path)
    except (AppDomError, OSError) as e:
        raise _fail(str(e)) from e

    app_node = doc.get_app()
    counts = Counter(node.type for node in doc.nodes.values())

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node type", style="bold")
    table.add_column("Count", justify="right", style="yellow")
    for node_type, count in sorted(counts.items()):
        table.add_row(escape(node_type), str(count))

    err_console.print(
        Panel(
            table,
            title=f"[bold]App: {escape(app_node.name)}[/bold]",
            subtitle=f"[dim]{len(doc)} nodes, version {doc.version}[/dim]",
            border_style="cyan",
        ),
    )
    err_console.print()
    err_console.print("[green]✓ Document is valid[/green]")
    err_console.print()


@app.command()
def migrate(
    document: Annotated[
        Path | None,
        typer.Argument(help="Path to the document JSON (defaults to [tool.appdom].document)"),
    ] = None,
    *,
    to: Annotated[
        int,
        typer.Option("--to", help="Target document version"),
    ] = CURRENT_VERSION,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to write the migrated document (defaults to in place)"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show pending migrations without writing"),
    ] = False,
) -> None:
    """Upgrade a document file to a newer version."""
    path = _document_path(document)
    err_console.print()
    try:
        doc = load_document(path, migrate=False)
        pending = pending_migrations(doc, to)
        migrated = migrate_up(doc, to)
    except (AppDomError, OSError) as e:
        raise _fail(str(e)) from e

    if not pending:
        err_console.print(f"[green]✓ Document is already at version {doc.version}[/green]")
        err_console.print()
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Version", style="dim")
    table.add_column("Migration")
    for migration in pending:
        table.add_row(f"v{migration.from_version} → v{migration.to_version}", migration.description)
    err_console.print(Panel(table, title="[bold]Pending migrations[/bold]", border_style="cyan"))
    err_console.print()

    if dry_run:
        err_console.print("[yellow]Dry run, nothing written[/yellow]")
        err_console.print()
        return

    target = output or path
    err_console.print(f"[cyan]Writing migrated document to:[/cyan] {target}")
    save_document(migrated, target)
    err_console.print()
    err_console.print(f"[green]✓ Migrated to version {migrated.version}[/green]")
    err_console.print()


@app.command(name="eval")
def eval_(
    expression: Annotated[
        str,
        typer.Argument(help="Expression to evaluate"),
    ],
    *,
    scope: Annotated[
        str,
        typer.Option("--scope", help="JSON object whose keys are available to the expression"),
    ] = "{}",
) -> None:
    """Evaluate a binding expression and print its JSON value."""
    scope_value = _parse_json(scope, "scope")
    if not isinstance(scope_value, dict):
        msg = "Scope must be a JSON object"
        raise _fail(msg)

    runtime = JsRuntime()
    try:
        result = runtime.evaluate_expression(expression, scope_value)
    finally:
        runtime.close()

    match result:
        case Failed():
            raise _fail(result.message)
        case Loading():
            err_console.print("[yellow]Loading[/yellow]")
        case _:
            _print_json(result.value)


@app.command()
def run(
    module: Annotated[
        Path,
        typer.Argument(help="Python file defining the function (relative to [tool.appdom].resources if not found)"),
    ],
    function: Annotated[
        str,
        typer.Argument(help="Name of the exported function"),
    ],
    arguments: Annotated[
        list[str] | None,
        typer.Argument(help="Positional arguments, each as JSON"),
    ] = None,
) -> None:
    """Execute a function exported by a module and print its result."""
    path = _resource_path(module)
    parameters = [_parse_json(arg, "argument") for arg in arguments or []]
    err_console.print(f"[cyan]Running[/cyan] {escape(function)} [cyan]from[/cyan] {path}")

    runtime = FunctionRuntime()
    try:
        result = asyncio.run(runtime.execute(path, function, parameters))
    except AppDomError as e:
        raise _fail(str(e)) from e
    _print_json(result)


@app.command()
def introspect(
    module: Annotated[
        Path,
        typer.Argument(help="Python file defining the data provider (relative to [tool.appdom].resources if not found)"),
    ],
    name: Annotated[
        str,
        typer.Argument(help="Name of the exported data provider"),
    ],
) -> None:
    """Show the capabilities of a data provider."""
    path = _resource_path(module)
    runtime = FunctionRuntime()
    try:
        info = runtime.introspect_data_provider(path, name)
    except AppDomError as e:
        raise _fail(str(e)) from e

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Capability", style="bold")
    table.add_column("Value")
    table.add_row("Pagination mode", info.pagination_mode)
    for label, supported in [
        ("Create record", info.has_create_record),
        ("Update record", info.has_update_record),
        ("Delete record", info.has_delete_record),
    ]:
        table.add_row(label, "[green]✓ yes[/green]" if supported else "[dim]no[/dim]")

    out_console.print(Panel(table, title=f"[bold]DataProvider: {escape(name)}[/bold]", border_style="cyan"))


def main() -> None:
    app()
