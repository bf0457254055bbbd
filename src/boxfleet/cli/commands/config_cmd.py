"""Config management commands."""

import os
import shlex
from dataclasses import fields

import typer
from rich.table import Table

from boxfleet.cli.output import console
from boxfleet.config import ENV_PREFIX, config

app = typer.Typer(help="Configuration commands")


@app.command("show")
def show_config():
    """Show current configuration."""
    table = Table(title="Current Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source")

    for f in fields(config):
        value = getattr(config, f.name)
        if isinstance(value, list):
            shown = shlex.join(value)
        elif isinstance(value, dict):
            shown = ", ".join(sorted(value)) or "(empty)"
        else:
            shown = str(getattr(value, "value", value))
        source = "env" if os.environ.get(f"{ENV_PREFIX}{f.name}") else "default/file"
        table.add_row(f.name, shown, source)

    table.add_row("state dir", config.get_state_dir(), "derived")
    console.print(table)
