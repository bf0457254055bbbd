"""Tests for address allocation."""

import pytest

from boxfleet.vagrant.addressing import (
    FIRST_ADDRESS,
    AllocationLedger,
    find_next_available_address,
    increment_address,
    next_available_address,
)
from boxfleet.vagrant.exceptions import AddressSpaceExhaustedError, FatalError


def _range(high: int, low_from: int, low_to: int) -> set[str]:
    return {f"192.168.{high}.{low}" for low in range(low_from, low_to + 1)}


class TestIncrementAddress:
    """Tests for increment_address."""

    def test_increments_low_octet(self) -> None:
        assert increment_address("192.168.22.10") == "192.168.22.11"

    def test_low_octet_rolls_over_to_minimum(self) -> None:
        assert increment_address("192.168.22.255") == "192.168.23.10"

    def test_last_address_exhausts(self) -> None:
        with pytest.raises(AddressSpaceExhaustedError) as exc_info:
            increment_address("192.168.255.255")

        assert isinstance(exc_info.value, FatalError)
        assert "destroy" in exc_info.value.hint

    def test_rejects_address_outside_block(self) -> None:
        with pytest.raises(ValueError):
            increment_address("10.0.0.1")


class TestNextAvailableAddress:
    """Tests for next_available_address."""

    @pytest.mark.parametrize(
        "claimed",
        [set(), {"192.168.22.10"}, {"192.168.22.11", "192.168.30.40"}],
    )
    def test_unclaimed_candidate_is_returned_unchanged(self, claimed) -> None:
        assert next_available_address("192.168.22.12", claimed) == "192.168.22.12"

    def test_claimed_candidate_moves_to_next(self) -> None:
        claimed = {"192.168.22.10"}

        assert next_available_address("192.168.22.10", claimed) == "192.168.22.11"

    def test_skips_every_claimed_address(self) -> None:
        claimed = _range(22, 10, 20)

        assert next_available_address(FIRST_ADDRESS, claimed) == "192.168.22.21"

    def test_scan_starts_at_first_address(self) -> None:
        claimed = {"192.168.22.10", "192.168.40.50"}

        assert next_available_address("192.168.40.50", claimed) == "192.168.22.11"

    def test_octet_rollover(self) -> None:
        claimed = _range(22, 10, 255)

        assert next_available_address("192.168.22.255", claimed) == "192.168.23.10"

    def test_is_deterministic(self) -> None:
        claimed = _range(22, 10, 30) | {"192.168.22.32"}

        results = {next_available_address(FIRST_ADDRESS, claimed) for _ in range(5)}

        assert results == {"192.168.22.31"}

    def test_exhaustion_is_fatal(self) -> None:
        claimed = set()
        for high in range(22, 256):
            claimed |= _range(high, 10, 255)

        with pytest.raises(AddressSpaceExhaustedError):
            next_available_address(FIRST_ADDRESS, claimed)

    def test_find_uses_custom_first_address(self) -> None:
        claimed = {"192.168.50.10"}

        assert (
            find_next_available_address(claimed, first="192.168.50.10")
            == "192.168.50.11"
        )


class TestAllocationLedger:
    """Tests for AllocationLedger."""

    def test_missing_state_dir_is_empty(self, tmp_path) -> None:
        ledger = AllocationLedger(str(tmp_path / "missing"))

        assert ledger.snapshot() == frozenset()
        assert ledger.allocate(None) == FIRST_ADDRESS

    def test_snapshot_lists_instance_directories(self, state_dir) -> None:
        (state_dir / "192.168.22.10").mkdir()
        (state_dir / "192.168.22.11").mkdir()

        ledger = AllocationLedger(str(state_dir))

        assert ledger.snapshot() == {"192.168.22.10", "192.168.22.11"}
        assert ledger.allocate("192.168.22.10") == "192.168.22.12"

    def test_snapshot_is_fresh_on_every_call(self, state_dir) -> None:
        ledger = AllocationLedger(str(state_dir))
        assert ledger.allocate(None) == FIRST_ADDRESS

        (state_dir / FIRST_ADDRESS).mkdir()

        assert ledger.allocate(None) == "192.168.22.11"

    def test_free_candidate_is_kept(self, state_dir) -> None:
        (state_dir / FIRST_ADDRESS).mkdir()

        ledger = AllocationLedger(str(state_dir))

        assert ledger.allocate("192.168.99.99") == "192.168.99.99"
