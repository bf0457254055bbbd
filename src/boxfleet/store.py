"""
Instance persistence.

Each created instance is recorded as JSON inside its own state directory,
so removing the directory on destroy also forgets the instance.
"""

import json
import os

from boxfleet.models.instance import InstanceSpec
from boxfleet.naming import instance_record_path
from boxfleet.utils.logger import get_logger
from boxfleet.vagrant.exceptions import InstanceNotFoundError

log = get_logger(__name__)


class InstanceStore:
    """Reads and writes instance records under the state directory."""

    def __init__(self, state_dir: str):
        self.state_dir = state_dir

    def save(self, instance: InstanceSpec) -> str:
        """
        Write the record of an instance with an assigned address.

        Returns:
            Path of the written record.
        """
        if not instance.work_dir:
            raise ValueError(f"Instance '{instance.name}' has no directory yet")

        os.makedirs(instance.work_dir, exist_ok=True)
        path = instance_record_path(instance.work_dir)
        with open(path, "w") as f:
            json.dump(instance.to_dict(), f, indent=2)
        return path

    def list(self) -> list[InstanceSpec]:
        """All readable instance records, ordered by name."""
        try:
            entries = sorted(os.listdir(self.state_dir))
        except FileNotFoundError:
            return []

        instances = []
        for entry in entries:
            path = instance_record_path(os.path.join(self.state_dir, entry))
            if not os.path.isfile(path):
                continue
            try:
                with open(path) as f:
                    instances.append(InstanceSpec.from_dict(json.load(f)))
            except (OSError, ValueError, KeyError, TypeError) as e:
                log.warning(f"Skipping unreadable instance record {path}: {e}")
        return sorted(instances, key=lambda i: i.name)

    def get(self, name: str) -> InstanceSpec:
        """
        Find an instance by name.

        Raises:
            InstanceNotFoundError: If no record has that name.
        """
        for instance in self.list():
            if instance.name == name:
                return instance
        raise InstanceNotFoundError(name)

    def exists(self, name: str) -> bool:
        return any(instance.name == name for instance in self.list())
