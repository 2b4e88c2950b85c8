"""Account and amount helpers with the fixed AVAX currency descriptors."""

from eth_typing import ChecksumAddress

from cchain_rosetta.checksum_cache import get_checksum_address
from cchain_rosetta.types import AccountIdentifier, Amount, Currency

AVAX_SYMBOL = "AVAX"

# C-chain balances are denominated in wei (18 decimals), the X and P chains
# and atomic transactions in nAVAX (9 decimals).
AVAX_CURRENCY = Currency(symbol=AVAX_SYMBOL, decimals=18)
ATOMIC_AVAX_CURRENCY = Currency(symbol=AVAX_SYMBOL, decimals=9)

# Multiplier from nAVAX to wei
X2C_RATE = 1_000_000_000

CONTRACT_ADDRESS_METADATA = "contractAddress"


def account(address: str | bytes) -> AccountIdentifier:
    return AccountIdentifier(address=get_checksum_address(address))


def avax_amount(value: int) -> Amount:
    return Amount(value=value, currency=AVAX_CURRENCY)


def atomic_avax_amount(value: int) -> Amount:
    return Amount(value=value, currency=ATOMIC_AVAX_CURRENCY)


def to_currency(symbol: str, decimals: int, contract_address: ChecksumAddress) -> Currency:
    """Currency of an ERC20 token, tagged with the token contract address."""
    return Currency(
        symbol=symbol,
        decimals=decimals,
        metadata={CONTRACT_ADDRESS_METADATA: get_checksum_address(contract_address)},
    )


def erc20_amount(data: bytes, currency: Currency, *, is_sender: bool) -> Amount:
    """Amount carried in the unindexed data of an ERC20 Transfer log.

    Debits (sender side) are negative.
    """
    value = int.from_bytes(bytes(data), "big")
    if is_sender:
        value = -value
    return Amount(value=value, currency=currency)
