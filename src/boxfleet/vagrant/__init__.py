"""
Vagrant provisioning pipeline for boxfleet.

Provides:
- Sequential private address allocation
- Image resolution and import
- Subprocess execution with multiplexed, color-coded output
- Instance lifecycle (create, start, stop, destroy)
"""

from boxfleet.vagrant.addressing import (
    FIRST_ADDRESS,
    AllocationLedger,
    find_next_available_address,
    increment_address,
    next_available_address,
)
from boxfleet.vagrant.exceptions import (
    AddressSpaceExhaustedError,
    BoxfleetError,
    FatalError,
    InstanceNotFoundError,
    ProcessFailedError,
    UnknownImageError,
)
from boxfleet.vagrant.images import (
    ImageRegistry,
    extract_image_names,
    parse_machine_readable,
)
from boxfleet.vagrant.lifecycle import InstanceLifecycle, OperationState
from boxfleet.vagrant.output import ColorPalette, OutputMultiplexer
from boxfleet.vagrant.process import (
    OutputChunk,
    ProcessHandle,
    ProcessRunner,
    build_environment,
)

__all__ = [
    # Addressing
    "FIRST_ADDRESS",
    "AllocationLedger",
    "find_next_available_address",
    "increment_address",
    "next_available_address",
    # Exceptions
    "BoxfleetError",
    "FatalError",
    "AddressSpaceExhaustedError",
    "UnknownImageError",
    "ProcessFailedError",
    "InstanceNotFoundError",
    # Images
    "ImageRegistry",
    "parse_machine_readable",
    "extract_image_names",
    # Processes and output
    "ProcessRunner",
    "ProcessHandle",
    "OutputChunk",
    "build_environment",
    "ColorPalette",
    "OutputMultiplexer",
    # Lifecycle
    "InstanceLifecycle",
    "OperationState",
]
