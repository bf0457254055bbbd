"""
Instance lifecycle pipeline.

Each operation is a short, fixed list of steps run in order. The first
step that raises aborts the operation: the remaining steps never run and
nothing already done is rolled back. ``OperationState`` records how far
an operation got.

Operations act on one instance. Running a fleet means calling them once
per instance, possibly concurrently; the multiplexer's palette and the
console are the only state they share.
"""

import asyncio
import os
import shlex
import shutil
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from boxfleet.config import BoxfleetConfig, config as default_config
from boxfleet.models.enums import (
    LifecycleOperation,
    LifecycleStep,
    OperationStatus,
)
from boxfleet.models.instance import InstanceSpec
from boxfleet.utils.logger import get_logger
from boxfleet.vagrant.addressing import AllocationLedger
from boxfleet.vagrant.images import ImageRegistry
from boxfleet.vagrant.output import OutputMultiplexer
from boxfleet.vagrant.process import ProcessRunner

logger = get_logger(__name__)

Step = tuple[LifecycleStep, Callable[[], Awaitable[None]]]


@dataclass
class OperationState:
    """Progress of one lifecycle operation on one instance."""

    operation: LifecycleOperation
    instance: str
    status: OperationStatus = OperationStatus.PENDING
    step: LifecycleStep | None = None
    completed: list[LifecycleStep] = field(default_factory=list)
    error: BaseException | None = None


def _remove_tree(path: str) -> None:
    """Remove ``path`` recursively; failures are logged, never raised."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Could not remove {path}: {e}")


class InstanceLifecycle:
    """
    Create, start, stop and destroy instances.

    Provides:
    - create: list images -> resolve image -> allocate address -> provision
    - start / stop: ``up`` / ``halt`` inside the instance directory
    - destroy: ``destroy -f`` then removal of the instance directory
    """

    def __init__(
        self,
        runner: ProcessRunner,
        multiplexer: OutputMultiplexer,
        registry: ImageRegistry,
        ledger: AllocationLedger,
        tool_command: list[str],
        provision_command: list[str],
        first_address: str,
    ):
        self.runner = runner
        self.multiplexer = multiplexer
        self.registry = registry
        self.ledger = ledger
        self.tool_command = list(tool_command)
        self.provision_command = list(provision_command)
        self.first_address = first_address
        self.states: dict[str, OperationState] = {}

    @classmethod
    def from_config(
        cls,
        cfg: BoxfleetConfig | None = None,
        multiplexer: OutputMultiplexer | None = None,
        runner: ProcessRunner | None = None,
    ) -> "InstanceLifecycle":
        """Wire a pipeline from configuration; one palette is shared by all parts."""
        cfg = cfg or default_config
        runner = runner or ProcessRunner()
        multiplexer = multiplexer or OutputMultiplexer()
        registry = ImageRegistry(
            runner, multiplexer, cfg.TOOL_COMMAND, cfg.BUNDLED_IMAGE_URLS
        )
        return cls(
            runner=runner,
            multiplexer=multiplexer,
            registry=registry,
            ledger=AllocationLedger(cfg.get_state_dir()),
            tool_command=cfg.TOOL_COMMAND,
            provision_command=cfg.PROVISION_COMMAND,
            first_address=cfg.FIRST_ADDRESS,
        )

    # --- Operations ---

    async def create(
        self, instance: InstanceSpec, candidate: str | None = None
    ) -> InstanceSpec:
        """
        Provision a new instance.

        ``instance.address`` and ``instance.work_dir`` are set in place.

        Raises:
            UnknownImageError: If the image cannot be resolved.
            AddressSpaceExhaustedError: If no address is left.
            ProcessFailedError: If a tool invocation fails.
        """
        known_images: frozenset[str] = frozenset()

        async def list_images():
            nonlocal known_images
            known_images = await self.registry.list_images()

        async def resolve_image():
            await self.registry.ensure_image(
                instance.image, known_images, label=instance.name
            )

        async def allocate_address():
            address = self.ledger.allocate(
                candidate or instance.address or None, self.first_address
            )
            logger.info(f"Using IP address {address}.")
            instance.assign_address(address, self.ledger.state_dir)

        async def provision():
            await self.multiplexer.launch(
                self.runner,
                self.provision_command,
                instance.name,
                env=self._provision_env(instance),
            )

        await self._run(
            LifecycleOperation.CREATE,
            instance,
            [
                (LifecycleStep.LIST_IMAGES, list_images),
                (LifecycleStep.RESOLVE_IMAGE, resolve_image),
                (LifecycleStep.ALLOCATE_ADDRESS, allocate_address),
                (LifecycleStep.PROVISION, provision),
            ],
        )
        return instance

    async def start(self, instance: InstanceSpec) -> InstanceSpec:
        """Boot a stopped instance."""
        await self._run(
            LifecycleOperation.START,
            instance,
            [(LifecycleStep.UP, lambda: self._tool(instance, "up"))],
        )
        return instance

    async def stop(self, instance: InstanceSpec) -> InstanceSpec:
        """Shut an instance down."""
        await self._run(
            LifecycleOperation.STOP,
            instance,
            [(LifecycleStep.HALT, lambda: self._tool(instance, "halt"))],
        )
        return instance

    async def destroy(self, instance: InstanceSpec) -> InstanceSpec:
        """
        Destroy an instance and remove its directory.

        An instance whose directory is already gone is treated as destroyed.
        """
        if not instance.work_dir:
            raise ValueError(f"Instance '{instance.name}' has no directory")

        steps: list[Step] = []
        if os.path.isdir(instance.work_dir):
            steps.append(
                (LifecycleStep.DESTROY, lambda: self._tool(instance, "destroy", "-f"))
            )
        else:
            logger.info(f"{instance.name}: {instance.work_dir} already removed.")
        steps.append(
            (
                LifecycleStep.REMOVE_STATE,
                lambda: asyncio.to_thread(_remove_tree, instance.work_dir),
            )
        )

        await self._run(LifecycleOperation.DESTROY, instance, steps)
        return instance

    # --- Internals ---

    async def _tool(self, instance: InstanceSpec, *args: str) -> None:
        await self.multiplexer.launch(
            self.runner,
            [*self.tool_command, *args],
            instance.name,
            cwd=instance.work_dir,
        )

    def _provision_env(self, instance: InstanceSpec) -> dict[str, str]:
        return {
            "VM_BOX": instance.image,
            "VM_IP": instance.address,
            "VM_RAM": str(instance.ram_mb),
            "VM_CPUS": str(instance.cpu_count),
            "VM_PUB_KEY": instance.ssh_public_key,
            "VM_DIR": instance.work_dir,
            "VM_TOOL": shlex.join(self.tool_command),
        }

    async def _run(
        self,
        operation: LifecycleOperation,
        instance: InstanceSpec,
        steps: list[Step],
    ) -> OperationState:
        state = OperationState(operation=operation, instance=instance.name)
        self.states[instance.name] = state
        state.status = OperationStatus.RUNNING

        for step, action in steps:
            state.step = step
            logger.debug(f"{instance.name}: {operation.value} -> {step.value}")
            try:
                await action()
            except Exception as e:
                state.status = OperationStatus.FAILED
                state.error = e
                logger.debug(
                    f"{instance.name}: {operation.value} failed at {step.value}: {e}"
                )
                raise
            state.completed.append(step)

        state.step = None
        state.status = OperationStatus.SUCCEEDED
        return state
