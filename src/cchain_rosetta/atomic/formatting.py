"""Identifier and address formatting for the X and P chains."""

from hashlib import sha256

import base58
from bech32 import bech32_encode, convertbits

from cchain_rosetta.config import FUJI_NETWORK, MAINNET_NETWORK
from cchain_rosetta.exceptions import UnknownNetworkError
from cchain_rosetta.types import NetworkIdentifier

CHECKSUM_LENGTH = 4

MAINNET_HRP = "avax"
FUJI_HRP = "fuji"

_NETWORK_HRPS = {
    MAINNET_NETWORK.lower(): MAINNET_HRP,
    FUJI_NETWORK.lower(): FUJI_HRP,
}


def cb58_encode(payload: bytes) -> str:
    """Base58 with a trailing 4-byte SHA-256 checksum, as used for Avalanche ids."""
    checksum = sha256(payload).digest()[-CHECKSUM_LENGTH:]
    return base58.b58encode(payload + checksum).decode("ascii")


def cb58_decode(value: str) -> bytes:
    """Inverse of `cb58_encode`, for ids taken from configuration or node APIs.

    Raises ValueError when the checksum does not match.
    """
    raw = base58.b58decode(value)
    if len(raw) < CHECKSUM_LENGTH:
        raise ValueError(f"{value!r} is too short to be CB58 encoded")
    payload, checksum = raw[:-CHECKSUM_LENGTH], raw[-CHECKSUM_LENGTH:]
    if sha256(payload).digest()[-CHECKSUM_LENGTH:] != checksum:
        raise ValueError(f"{value!r} has an invalid CB58 checksum")
    return payload


def get_hrp(network_identifier: NetworkIdentifier) -> str:
    """Human-readable bech32 prefix for a network."""
    try:
        return _NETWORK_HRPS[network_identifier.network.lower()]
    except KeyError:
        raise UnknownNetworkError(network_identifier.network) from None


def format_address(chain_alias: str, hrp: str, address: bytes) -> str:
    """Address on another chain, e.g. `X-avax1...`."""
    five_bit = convertbits(address, 8, 5)
    if five_bit is None:
        raise ValueError(f"cannot convert address {address.hex()} to bech32")
    return f"{chain_alias}-{bech32_encode(hrp, five_bit)}"


def utxo_id(tx_id: str, output_index: int) -> str:
    return f"{tx_id}:{output_index}"
