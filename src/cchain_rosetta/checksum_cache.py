"""Cached EIP-55 checksum address formatting."""

from functools import lru_cache

from eth_typing import ChecksumAddress
from eth_utils.address import to_checksum_address
from hexbytes import HexBytes


@lru_cache(maxsize=65536)
def _checksum(address: str) -> ChecksumAddress:
    return to_checksum_address(address)


def get_checksum_address(address: str | bytes) -> ChecksumAddress:
    """Return the checksummed form of a hex string or raw 20-byte address."""
    if isinstance(address, (bytes, bytearray)):
        address = HexBytes(address).to_0x_hex()
    return _checksum(address.lower())
