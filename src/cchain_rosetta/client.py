"""Contract metadata lookups for token currencies."""

from __future__ import annotations

from typing import Protocol

from eth_abi.abi import decode
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from cchain_rosetta.checksum_cache import get_checksum_address
from cchain_rosetta.exceptions import ContractInfoLookupError

UNKNOWN_ERC20_SYMBOL = "ERC20_UNKNOWN"
UNKNOWN_ERC20_DECIMALS = 0
UNKNOWN_ERC721_SYMBOL = "ERC721_UNKNOWN"
UNKNOWN_ERC721_DECIMALS = 0

# Function selectors
SYMBOL_SELECTOR = HexBytes("0x95d89b41")
DECIMALS_SELECTOR = HexBytes("0x313ce567")


class ContractInfoClient(Protocol):
    def get_contract_info(self, address: ChecksumAddress, is_erc20: bool) -> tuple[str, int]:
        """Return `(symbol, decimals)` for a token contract.

        Contracts that do not report usable metadata resolve to the unknown
        sentinels. Raises ContractInfoLookupError when the lookup itself fails.
        """
        ...


class Web3ContractInfoClient:
    """Reads `symbol()` and `decimals()` from token contracts, caching per address."""

    def __init__(self, w3: Web3):
        self.w3 = w3
        self._cache: dict[tuple[ChecksumAddress, bool], tuple[str, int]] = {}

    def get_contract_info(self, address: ChecksumAddress, is_erc20: bool) -> tuple[str, int]:
        address = get_checksum_address(address)
        key = (address, is_erc20)
        if key in self._cache:
            return self._cache[key]

        try:
            symbol = self._call_symbol(address)
            decimals = self._call_decimals(address)
        except (ContractLogicError, DecodingError, UnicodeDecodeError):
            symbol, decimals = "", 0
        except (Web3Exception, OSError) as e:
            raise ContractInfoLookupError(address, e) from e

        # Anything short of complete information marks the token as unknown
        if not symbol or decimals == 0:
            if is_erc20:
                symbol, decimals = UNKNOWN_ERC20_SYMBOL, UNKNOWN_ERC20_DECIMALS
            else:
                symbol, decimals = UNKNOWN_ERC721_SYMBOL, UNKNOWN_ERC721_DECIMALS

        self._cache[key] = (symbol, decimals)
        return symbol, decimals

    def _call_symbol(self, address: ChecksumAddress) -> str:
        result = self.w3.eth.call({"to": address, "data": SYMBOL_SELECTOR})
        (symbol,) = decode(["string"], result)
        return symbol

    def _call_decimals(self, address: ChecksumAddress) -> int:
        result = self.w3.eth.call({"to": address, "data": DECIMALS_SELECTOR})
        (decimals,) = decode(["uint8"], result)
        return decimals
