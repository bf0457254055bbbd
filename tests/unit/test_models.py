"""Tests for instance models."""

import pytest
from pydantic import ValidationError

from boxfleet.models.instance import InstanceSpec
from boxfleet.models.requests import InstanceCreateRequest


class TestInstanceSpec:
    """Tests for InstanceSpec."""

    def test_address_without_work_dir_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            InstanceSpec(
                name="web",
                image="trusty64",
                ram_mb=512,
                cpu_count=1,
                address="192.168.22.10",
            )

    def test_assign_address_derives_work_dir(self) -> None:
        instance = InstanceSpec(name="web", image="trusty64", ram_mb=512, cpu_count=1)

        instance.assign_address("192.168.22.10", "/state")

        assert instance.address == "192.168.22.10"
        assert instance.work_dir == "/state/192.168.22.10"

    def test_dict_round_trip(self) -> None:
        instance = InstanceSpec(name="web", image="trusty64", ram_mb=512, cpu_count=1)
        instance.assign_address("192.168.22.10", "/state")

        assert InstanceSpec.from_dict(instance.to_dict()) == instance


class TestInstanceCreateRequest:
    """Tests for InstanceCreateRequest."""

    def test_to_spec(self) -> None:
        request = InstanceCreateRequest(
            name="web",
            image="trusty64",
            ram_mb=1024,
            cpu_count=2,
            ssh_public_key="ssh-ed25519 AAAA\n",
        )

        spec = request.to_spec()

        assert spec.name == "web"
        assert spec.ram_mb == 1024
        assert spec.ssh_public_key == "ssh-ed25519 AAAA"
        assert spec.address == ""
        assert spec.work_dir == ""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": ""},
            {"name": "a/b"},
            {"ram_mb": 64},
            {"cpu_count": 0},
            {"preferred_address": "not-an-ip"},
        ],
    )
    def test_invalid_requests(self, overrides) -> None:
        values = {"name": "web", "image": "trusty64", **overrides}

        with pytest.raises(ValidationError):
            InstanceCreateRequest(**values)

    def test_preferred_address_is_kept(self) -> None:
        request = InstanceCreateRequest(
            name="web", image="trusty64", preferred_address="192.168.22.10"
        )

        assert request.preferred_address == "192.168.22.10"
