"""Image (box) commands."""

import asyncio

import typer
from rich.table import Table

from boxfleet.cli.output import console, print_error
from boxfleet.config import config
from boxfleet.vagrant.exceptions import ProcessFailedError
from boxfleet.vagrant.images import ImageRegistry
from boxfleet.vagrant.output import OutputMultiplexer
from boxfleet.vagrant.process import ProcessRunner

app = typer.Typer(help="Image commands")


@app.command("list")
def list_images():
    """Show images known to Vagrant and the bundled catalog."""
    registry = ImageRegistry(
        ProcessRunner(),
        OutputMultiplexer(console=console),
        config.TOOL_COMMAND,
        config.BUNDLED_IMAGE_URLS,
    )
    try:
        known = asyncio.run(registry.list_images())
    except ProcessFailedError as e:
        print_error(str(e))
        raise typer.Exit(1)

    table = Table(title="Images", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Source")
    for name in sorted(known | set(registry.catalog)):
        status = "[green]present[/green]" if name in known else "[dim]bundled[/dim]"
        table.add_row(name, status, registry.catalog.get(name, "local"))
    console.print(table)
