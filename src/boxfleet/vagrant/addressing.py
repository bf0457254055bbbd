"""
Sequential private address allocation.

Addresses live in a fixed two-octet prefix (``192.168.x.y``). The third
octet is the high octet, the fourth the low octet. Low octet values below
``LOW_OCTET_MIN`` are reserved, so a full scan walks ``x.10 .. x.255``
before moving on to ``(x+1).10``.

The set of claimed addresses is derived from the state directory: every
managed instance owns a directory named after its address.
"""

import ipaddress
import os

from boxfleet.vagrant.exceptions import AddressSpaceExhaustedError

PREFIX = "192.168"
BLOCK = f"{PREFIX}.0.0/16"
_NETWORK = ipaddress.IPv4Network(BLOCK)
FIRST_ADDRESS = f"{PREFIX}.22.10"

LOW_OCTET_MIN = 10
OCTET_MAX = 255


def _split(address: str) -> tuple[int, int]:
    """Return (high, low) octets of an address inside the private prefix."""
    ip = ipaddress.IPv4Address(address)
    if ip not in _NETWORK:
        raise ValueError(f"Address {address} is outside the {BLOCK} block")
    _, _, high, low = ip.packed
    return high, low


def increment_address(address: str) -> str:
    """
    Return the address following ``address`` in allocation order.

    Raises:
        AddressSpaceExhaustedError: If ``address`` is the last one in the block.
    """
    high, low = _split(address)
    if low >= OCTET_MAX:
        if high >= OCTET_MAX:
            raise AddressSpaceExhaustedError(BLOCK)
        high, low = high + 1, LOW_OCTET_MIN
    else:
        low += 1
    return f"{PREFIX}.{high}.{low}"


def find_next_available_address(
    claimed: set[str] | frozenset[str], first: str = FIRST_ADDRESS
) -> str:
    """
    Scan upwards from ``first`` and return the first unclaimed address.

    Raises:
        AddressSpaceExhaustedError: If every address from ``first`` on is claimed.
    """
    address = first
    while address in claimed:
        address = increment_address(address)
    return address


def next_available_address(
    candidate: str,
    claimed: set[str] | frozenset[str],
    first: str = FIRST_ADDRESS,
) -> str:
    """
    Return ``candidate`` if unclaimed, otherwise the lowest free address.

    The search is deterministic: the same claimed set always yields the
    same address.
    """
    if candidate not in claimed:
        return candidate
    return find_next_available_address(claimed, first)


class AllocationLedger:
    """
    Claimed addresses, read from the state directory.

    Every call to ``snapshot`` lists the directory again; nothing is cached
    between allocations. Two allocations racing before either instance
    directory exists may pick the same address.
    """

    def __init__(self, state_dir: str):
        self.state_dir = state_dir

    def snapshot(self) -> frozenset[str]:
        """List directory entries under the state directory."""
        try:
            return frozenset(os.listdir(self.state_dir))
        except FileNotFoundError:
            return frozenset()

    def allocate(self, candidate: str | None, first: str = FIRST_ADDRESS) -> str:
        """Pick an address for a new instance, starting from ``candidate``."""
        return next_available_address(candidate or first, self.snapshot(), first)
