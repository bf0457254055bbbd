"""
Enumeration types for boxfleet.

This module defines the enumeration types shared by the provisioning
pipeline, the output multiplexer and the configuration layer.
"""

from enum import Enum


# =============================================================================
# Pipeline Enums
# =============================================================================


class LifecycleOperation(str, Enum):
    """The four single-instance lifecycle operations."""

    CREATE = "create"
    START = "start"
    STOP = "stop"
    DESTROY = "destroy"


class LifecycleStep(str, Enum):
    """
    Individual steps of a lifecycle operation.

    Sequences:
        CREATE:  LIST_IMAGES -> RESOLVE_IMAGE -> ALLOCATE_ADDRESS -> PROVISION
        START:   UP
        STOP:    HALT
        DESTROY: DESTROY -> REMOVE_STATE
    """

    LIST_IMAGES = "list_images"
    RESOLVE_IMAGE = "resolve_image"
    ALLOCATE_ADDRESS = "allocate_address"
    PROVISION = "provision"
    UP = "up"
    HALT = "halt"
    DESTROY = "destroy"
    REMOVE_STATE = "remove_state"


class OperationStatus(str, Enum):
    """
    Status of a lifecycle operation.

    State transitions:
        PENDING -> RUNNING -> SUCCEEDED
        PENDING -> RUNNING -> FAILED (first failing step aborts the rest)
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ImageStatus(str, Enum):
    """Outcome of resolving an image name."""

    PRESENT = "present"  # Already known to the tool, nothing to do
    FETCHED = "fetched"  # Imported from the bundled catalog


# =============================================================================
# Output Enums
# =============================================================================


class OutputStream(str, Enum):
    """
    Output channel of a spawned process.

    - NORMAL: the process's stdout
    - DIAGNOSTIC: the process's stderr, rendered muted
    """

    NORMAL = "normal"
    DIAGNOSTIC = "diagnostic"


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels for boxfleet.

    Levels (from most to least verbose):
        - FULL: Complete trace with detailed stack information
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
