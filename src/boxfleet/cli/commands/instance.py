"""Instance lifecycle commands."""

import asyncio
import os
from collections.abc import Awaitable, Callable
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.table import Table

from boxfleet.cli.output import (
    console,
    print_error,
    print_fatal,
    print_success,
    print_warning,
)
from boxfleet.config import config
from boxfleet.models.instance import InstanceSpec
from boxfleet.models.requests import InstanceCreateRequest
from boxfleet.store import InstanceStore
from boxfleet.utils.logger import format_traceback, get_logger
from boxfleet.utils.ssh_key import read_default_public_key, read_public_key_file
from boxfleet.vagrant.exceptions import (
    FatalError,
    InstanceNotFoundError,
    ProcessFailedError,
)
from boxfleet.vagrant.lifecycle import InstanceLifecycle
from boxfleet.vagrant.output import OutputMultiplexer

log = get_logger(__name__)

Operation = Callable[[InstanceSpec], Awaitable[InstanceSpec]]


def _lifecycle() -> InstanceLifecycle:
    return InstanceLifecycle.from_config(
        config, multiplexer=OutputMultiplexer(console=console)
    )


def _store() -> InstanceStore:
    return InstanceStore(config.get_state_dir())


def _resolve(names: list[str]) -> list[InstanceSpec]:
    store = _store()
    try:
        return [store.get(name) for name in names]
    except InstanceNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(1)


async def _run_fleet(
    operation: Operation, instances: list[InstanceSpec]
) -> list[InstanceSpec | ProcessFailedError]:
    """
    Run ``operation`` on every instance concurrently.

    A process failure only ends its own instance's operation; a fatal
    error propagates and ends the whole run.
    """

    async def _one(instance: InstanceSpec) -> InstanceSpec | ProcessFailedError:
        try:
            return await operation(instance)
        except ProcessFailedError as e:
            return e

    return await asyncio.gather(*(_one(instance) for instance in instances))


def _run_operation(verb: str, names: list[str], pick) -> None:
    instances = _resolve(names)
    lifecycle = _lifecycle()
    try:
        results = asyncio.run(_run_fleet(pick(lifecycle), instances))
    except FatalError as e:
        print_fatal(e)
        raise typer.Exit(1)

    failed = 0
    for instance, result in zip(instances, results):
        if isinstance(result, ProcessFailedError):
            failed += 1
            log.debug(format_traceback(result))
            print_error(
                f"{instance.name}: {verb} failed (exit status {result.exit_code})"
            )
        else:
            print_success(f"{instance.name}: {verb} complete.")

    if failed:
        raise typer.Exit(1)


def create_instance(
    name: Annotated[str, typer.Argument(help="Instance name")],
    image: Annotated[
        str | None, typer.Option("--image", "-i", help="Image (box) name")
    ] = None,
    ram: Annotated[
        int | None, typer.Option("--ram", "-m", help="Memory in MB")
    ] = None,
    cpus: Annotated[int | None, typer.Option("--cpus", "-c", help="CPU count")] = None,
    ip: Annotated[
        str | None,
        typer.Option("--ip", help="Preferred address (next free one if taken)"),
    ] = None,
    ssh_pub_key_file: Annotated[
        str | None,
        typer.Option("--ssh-pub-key", help="Public key file to install"),
    ] = None,
):
    """Create and boot a new instance."""
    store = _store()
    if store.exists(name):
        print_error(f"Instance '{name}' already exists.")
        raise typer.Exit(1)

    try:
        if ssh_pub_key_file:
            public_key = read_public_key_file(ssh_pub_key_file)
        else:
            public_key = read_default_public_key(config.DEFAULT_SSH_PUBLIC_KEY_FILE)
        request = InstanceCreateRequest(
            name=name,
            image=image or config.DEFAULT_IMAGE,
            ram_mb=ram or config.DEFAULT_RAM_MB,
            cpu_count=cpus or config.DEFAULT_CPUS,
            ssh_public_key=public_key,
            preferred_address=ip,
        )
    except (OSError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        print_error(_describe_invalid(e))
        raise typer.Exit(1)

    instance = request.to_spec()
    lifecycle = _lifecycle()
    try:
        asyncio.run(lifecycle.create(instance, request.preferred_address))
    except FatalError as e:
        print_fatal(e)
        raise typer.Exit(1)
    except ProcessFailedError as e:
        log.debug(format_traceback(e))
        print_error(f"{name}: create failed (exit status {e.exit_code})")
        if instance.work_dir and os.path.isdir(instance.work_dir):
            # Not recorded in the store, but still claims its address
            print_warning(
                f"{instance.work_dir} was left behind and keeps "
                f"{instance.address} reserved. Remove it to free the address."
            )
        raise typer.Exit(1)

    store.save(instance)
    print_success(f"Instance '{name}' created at {instance.address}.")


def _describe_invalid(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in error.errors()
        )
    return str(error)


def start_instances(
    names: Annotated[list[str], typer.Argument(help="Instance names")],
):
    """Boot one or more instances."""
    _run_operation("start", names, lambda lc: lc.start)


def stop_instances(
    names: Annotated[list[str], typer.Argument(help="Instance names")],
):
    """Shut down one or more instances."""
    _run_operation("stop", names, lambda lc: lc.stop)


def destroy_instances(
    names: Annotated[list[str], typer.Argument(help="Instance names")],
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip confirmation")
    ] = False,
):
    """Destroy one or more instances and delete their state."""
    if not yes:
        typer.confirm(f"Destroy {', '.join(names)}?", abort=True)
    _run_operation("destroy", names, lambda lc: lc.destroy)


def list_instances():
    """List managed instances."""
    instances = _store().list()
    if not instances:
        console.print("[yellow]No instances found.[/yellow]")
        return

    table = Table(title="Instances", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Address", style="green")
    table.add_column("Image")
    table.add_column("RAM (MB)", justify="right")
    table.add_column("CPUs", justify="right")
    table.add_column("Directory", style="dim")
    for instance in instances:
        table.add_row(
            instance.name,
            instance.address,
            instance.image,
            str(instance.ram_mb),
            str(instance.cpu_count),
            instance.work_dir,
        )
    console.print(table)


def show_instance(
    name: Annotated[str, typer.Argument(help="Instance name")],
):
    """Print an instance record as JSON."""
    (instance,) = _resolve([name])
    console.print_json(data=instance.to_dict())

