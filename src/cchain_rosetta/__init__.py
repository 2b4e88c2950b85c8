"""Avalanche C-chain to Rosetta operation mapping."""

from cchain_rosetta.config import FUJI_CONFIG, MAINNET_CONFIG, MapperConfig
from cchain_rosetta.exceptions import (
    AtomicCodecError,
    ContractInfoLookupError,
    DestroyedAccountBalanceError,
    MapperError,
    UnknownNetworkError,
    UnsupportedAtomicTransactionError,
)
from cchain_rosetta.transaction import (
    cross_chain_transactions,
    map_transaction,
    mempool_transaction_ids,
)
from cchain_rosetta.types import Operation, OperationType, Transaction

__all__ = [
    "FUJI_CONFIG",
    "MAINNET_CONFIG",
    "AtomicCodecError",
    "ContractInfoLookupError",
    "DestroyedAccountBalanceError",
    "MapperConfig",
    "MapperError",
    "Operation",
    "OperationType",
    "Transaction",
    "UnknownNetworkError",
    "UnsupportedAtomicTransactionError",
    "cross_chain_transactions",
    "map_transaction",
    "mempool_transaction_ids",
]
