"""Exceptions raised while mapping transactions into operations."""

from eth_typing import ChecksumAddress


class MapperError(Exception):
    """Base class for all mapping failures."""


class ContractInfoLookupError(MapperError):
    """Raised when contract metadata for a token cannot be fetched.

    Aborts mapping of the whole transaction, no partial result is returned.
    """

    def __init__(self, address: str, cause: Exception | None = None):
        self.address = address
        self.cause = cause
        message = f"Could not fetch contract info for {address}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class UnsupportedAtomicTransactionError(MapperError):
    """Raised for an atomic transaction that is neither an import nor an export."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"unsupported transaction: {kind}")


class DestroyedAccountBalanceError(MapperError):
    """Raised when a self-destructed account finishes a trace with a negative balance.

    Indicates the trace bookkeeping went wrong. Only the current transaction fails.
    """

    def __init__(self, address: ChecksumAddress, balance: int):
        self.address = address
        self.balance = balance
        super().__init__(f"negative balance for suicided account {address}: {balance}")


class AtomicCodecError(MapperError):
    """Raised when an atomic transaction payload cannot be decoded."""


class UnknownNetworkError(MapperError):
    """Raised when no address prefix is known for a network."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"can't recognize network: {network}")
