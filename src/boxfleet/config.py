"""
boxfleet configuration.

A global config instance that can be modified at runtime, either directly,
from ``BOXFLEET_*`` environment variables, or from a YAML file.

Usage:
    from boxfleet.config import config

    config.DEFAULT_RAM_MB = 1024
    config.load_file("~/.boxfleet.yaml")
"""

import os
import shlex
from dataclasses import dataclass, field, fields

import yaml

from boxfleet.models.enums import LogLevel

ENV_PREFIX = "BOXFLEET_"

BUNDLED_IMAGE_URLS = {
    "trusty64": "https://cloud-images.ubuntu.com/vagrant/trusty/current/trusty-server-cloudimg-amd64-vagrant-disk1.box",
    "precise64": "https://cloud-images.ubuntu.com/vagrant/precise/current/precise-server-cloudimg-amd64-vagrant-disk1.box",
}


def _default_provision_command() -> list[str]:
    script = os.path.join(
        os.path.dirname(__file__), "vagrant", "scripts", "provision.sh"
    )
    return ["bash", script]


@dataclass
class BoxfleetConfig:
    """boxfleet configuration."""

    # Path Configuration
    HOME_DIR: str = field(default_factory=lambda: os.path.expanduser("~"))
    STATE_DIR_NAME: str = ".boxfleet-vagrant"

    # Network Configuration
    FIRST_ADDRESS: str = "192.168.22.10"

    # Tool Configuration
    TOOL_COMMAND: list[str] = field(default_factory=lambda: ["vagrant"])
    PROVISION_COMMAND: list[str] = field(default_factory=_default_provision_command)

    # Instance Defaults
    DEFAULT_IMAGE: str = "trusty64"
    DEFAULT_RAM_MB: int = 512
    DEFAULT_CPUS: int = 1
    DEFAULT_SSH_PUBLIC_KEY_FILE: str = "~/.ssh/id_rsa.pub"

    # Image Catalog
    BUNDLED_IMAGE_URLS: dict[str, str] = field(
        default_factory=lambda: dict(BUNDLED_IMAGE_URLS)
    )

    # Logging Configuration
    LOG_LEVEL: LogLevel = LogLevel.INFO

    def get_state_dir(self) -> str:
        """Root directory holding one subdirectory per managed instance."""
        return os.path.join(self.HOME_DIR, self.STATE_DIR_NAME)

    def update(self, values: dict) -> None:
        """
        Apply a mapping of overrides.

        Keys are matched case-insensitively against the field names.
        String values for list fields are split shell-style.

        Raises:
            ValueError: If a key does not name a config field.
        """
        known = {f.name: f for f in fields(self)}
        for key, value in values.items():
            name = key.upper()
            if name not in known:
                raise ValueError(f"Unknown config key: '{key}'")
            setattr(self, name, _coerce(getattr(self, name), value))

    def load_env(self, environ: dict[str, str] | None = None) -> None:
        """Apply ``BOXFLEET_<FIELD>`` environment overrides."""
        environ = os.environ if environ is None else environ
        known = {f.name for f in fields(self)}
        overrides = {
            key[len(ENV_PREFIX) :]: value
            for key, value in environ.items()
            if key.startswith(ENV_PREFIX) and key[len(ENV_PREFIX) :] in known
        }
        self.update(overrides)

    def load_file(self, path: str) -> None:
        """
        Apply overrides from a YAML mapping file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not a mapping or names unknown keys.
        """
        path = os.path.expanduser(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file '{path}' must contain a mapping")
        self.update(data)


def _coerce(current, value):
    """Convert an override value to the type of the current field value."""
    if isinstance(current, LogLevel):
        return LogLevel(str(value).lower())
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, list):
        return shlex.split(value) if isinstance(value, str) else list(value)
    if isinstance(current, dict):
        if not isinstance(value, dict):
            raise ValueError(f"Expected a mapping, got {type(value).__name__}")
        return dict(value)
    return str(value)


# Global config instance
config = BoxfleetConfig()
