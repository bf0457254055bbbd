"""Provisioning pipeline exception classes."""


class BoxfleetError(Exception):
    """Base exception for boxfleet operations."""

    pass


class FatalError(BoxfleetError):
    """
    Unrecoverable condition.

    The CLI reports the message and the remediation hint, then terminates
    the whole process.
    """

    def __init__(self, message: str, hint: str = ""):
        self.hint = hint
        super().__init__(message)


class AddressSpaceExhaustedError(FatalError):
    """Every address in the private block is claimed."""

    def __init__(self, block: str):
        self.block = block
        super().__init__(
            f"Congratulations! You seem to have used all available IP "
            f"addresses in the {block} block.",
            "Please destroy some of these instances before making a new one.",
        )


class UnknownImageError(FatalError):
    """Image is neither known to the tool nor in the bundled catalog."""

    def __init__(self, image: str):
        self.image = image
        super().__init__(
            f'Image "{image}" not found. Please add this using Vagrant:',
            f'vagrant box add --name "{image}" [image-url]',
        )


class ProcessFailedError(BoxfleetError):
    """A spawned process exited with a non-zero status."""

    def __init__(self, command: list[str], exit_code: int, label: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.label = label
        prefix = f"{label}: " if label else ""
        super().__init__(
            f"{prefix}'{' '.join(command)}' exited with status {exit_code}"
        )


class InstanceNotFoundError(BoxfleetError):
    """No stored instance has the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Instance not found: {name}")
