"""Instance data model."""

from dataclasses import asdict, dataclass

from boxfleet.naming import instance_dir


@dataclass
class InstanceSpec:
    """
    One instance under management.

    ``work_dir`` is always derived from ``address``; an instance with an
    address but no working directory is rejected at construction time.
    """

    name: str
    image: str
    ram_mb: int
    cpu_count: int
    ssh_public_key: str = ""
    address: str = ""
    work_dir: str = ""
    ssh_port: int = 22

    def __post_init__(self):
        if self.address and not self.work_dir:
            raise ValueError(
                f"Instance '{self.name}' has address {self.address} but no work_dir"
            )

    def assign_address(self, address: str, state_dir: str) -> None:
        """Set the address and the working directory derived from it."""
        self.address = address
        self.work_dir = instance_dir(state_dir, address)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "InstanceSpec":
        return cls(
            name=data["name"],
            image=data["image"],
            ram_mb=int(data["ram_mb"]),
            cpu_count=int(data["cpu_count"]),
            ssh_public_key=data.get("ssh_public_key", ""),
            address=data.get("address", ""),
            work_dir=data.get("work_dir", ""),
            ssh_port=int(data.get("ssh_port", 22)),
        )
