"""
Pydantic models for instance requests.

The CLI builds an ``InstanceCreateRequest`` from user input; the pipeline
only ever sees the ``InstanceSpec`` it is converted into.
"""

import ipaddress

from pydantic import BaseModel, Field, field_validator

from boxfleet.models.instance import InstanceSpec


class InstanceCreateRequest(BaseModel):
    """Validated request to create one instance."""

    name: str = Field(..., min_length=1, description="Unique instance label")
    image: str = Field(..., min_length=1, description="Symbolic image name")
    ram_mb: int = Field(default=512, ge=128, description="Memory in MB")
    cpu_count: int = Field(default=1, ge=1, description="Number of CPUs")
    ssh_public_key: str = Field(default="", description="Public key material")
    preferred_address: str | None = Field(
        default=None,
        description="Candidate address (None=first address of the block)",
    )

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError("instance name must not contain path separators")
        return value

    @field_validator("preferred_address")
    @classmethod
    def _check_address(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return str(ipaddress.IPv4Address(value))

    def to_spec(self) -> InstanceSpec:
        return InstanceSpec(
            name=self.name,
            image=self.image,
            ram_mb=self.ram_mb,
            cpu_count=self.cpu_count,
            ssh_public_key=self.ssh_public_key.strip(),
        )
