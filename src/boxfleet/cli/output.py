"""Console output helpers for the CLI."""

from rich.console import Console
from rich.markup import escape

from boxfleet.vagrant.exceptions import FatalError

console = Console(highlight=False)


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def print_fatal(error: FatalError) -> None:
    """Print a fatal error and its remediation hint."""
    console.print(f"[red]{escape(str(error))}[/red]")
    if error.hint:
        console.print(escape(error.hint))


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")
