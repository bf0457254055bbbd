"""boxfleet: provision and drive local Vagrant instances."""

__version__ = "0.1.0"
