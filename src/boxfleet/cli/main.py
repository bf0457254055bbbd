"""
boxfleet CLI entry point.

Usage:
    boxfleet [OPTIONS] COMMAND [ARGS]...

Commands:
    create    Create and boot an instance
    start     Boot instances
    stop      Shut down instances
    destroy   Destroy instances
    list      List instances
    show      Show one instance record
    image     Image commands
    config    Configuration
"""

import os
from typing import Annotated

import typer

from boxfleet.cli.commands import config_cmd, image, instance
from boxfleet.cli.output import console, print_error
from boxfleet.config import config
from boxfleet.models.enums import LogLevel
from boxfleet.utils.logger import configure_logging

DEFAULT_CONFIG_FILE = "~/.boxfleet.yaml"

app = typer.Typer(
    name="boxfleet",
    help="Local Vagrant instance manager",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Instance commands live at the top level
app.command("create")(instance.create_instance)
app.command("start")(instance.start_instances)
app.command("stop")(instance.stop_instances)
app.command("destroy")(instance.destroy_instances)
app.command("list")(instance.list_instances)
app.command("show")(instance.show_instance)

app.add_typer(image.app, name="image", help="Image commands")
app.add_typer(config_cmd.app, name="config", help="Configuration")


@app.callback()
def main(
    config_file: Annotated[
        str | None,
        typer.Option(
            "--config", help="YAML config file", envvar="BOXFLEET_CONFIG_FILE"
        ),
    ] = None,
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", "-l", help="Log verbosity"),
    ] = None,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only log warnings and errors")
    ] = False,
):
    """
    boxfleet: provision, start, stop and destroy local Vagrant instances.
    """
    path = config_file or DEFAULT_CONFIG_FILE
    try:
        if config_file or os.path.exists(os.path.expanduser(path)):
            config.load_file(path)
        config.load_env()
    except (OSError, ValueError) as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    if log_level:
        config.LOG_LEVEL = log_level
    if quiet:
        config.LOG_LEVEL = LogLevel.WARNING
    configure_logging(config.LOG_LEVEL)


@app.command("version")
def version():
    """Show version information."""
    from boxfleet import __version__

    console.print(f"boxfleet v{__version__}")


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
