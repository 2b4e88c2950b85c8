"""Value types for Rosetta operations and the execution data they are built from."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from eth_typing import ChecksumAddress

# ============================================================================
# ENUMS
# ============================================================================


class OperationType(Enum):
    """Rosetta operation types emitted by the mapper."""

    FEE = "FEE"

    # Call types, named after the EVM opcodes reported by the call tracer
    CALL = "CALL"
    CALLCODE = "CALLCODE"
    DELEGATECALL = "DELEGATECALL"
    STATICCALL = "STATICCALL"
    CREATE = "CREATE"
    CREATE2 = "CREATE2"
    SELFDESTRUCT = "SELFDESTRUCT"

    # Final liquidation of a self-destructed account
    DESTRUCT = "DESTRUCT"

    # Atomic (cross-chain) transactions
    IMPORT = "IMPORT"
    EXPORT = "EXPORT"

    # Token transfers
    ERC20_TRANSFER = "ERC20_TRANSFER"
    ERC20_MINT = "ERC20_MINT"
    ERC20_BURN = "ERC20_BURN"
    ERC721_SENDER = "ERC721_SENDER"
    ERC721_RECEIVE = "ERC721_RECEIVE"
    ERC721_MINT = "ERC721_MINT"
    ERC721_BURN = "ERC721_BURN"

    @property
    def is_value_transfer_call(self) -> bool:
        """Call kinds that only move value, as opposed to creating or destroying accounts."""
        return self in VALUE_TRANSFER_CALL_TYPES

    @property
    def is_create(self) -> bool:
        return self in CREATE_CALL_TYPES


VALUE_TRANSFER_CALL_TYPES = frozenset({
    OperationType.CALL,
    OperationType.CALLCODE,
    OperationType.DELEGATECALL,
    OperationType.STATICCALL,
})
CREATE_CALL_TYPES = frozenset({OperationType.CREATE, OperationType.CREATE2})


class OperationStatus(Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class CoinAction(Enum):
    CREATED = "coin_created"
    SPENT = "coin_spent"


# ============================================================================
# PROTOCOL RECORDS
# ============================================================================


@dataclass(frozen=True)
class Currency:
    symbol: str
    decimals: int
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"symbol": self.symbol, "decimals": self.decimals}
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result


@dataclass(frozen=True)
class Amount:
    """Signed quantity of a currency. Serialized as a decimal string."""

    value: int
    currency: Currency

    def to_dict(self) -> dict[str, Any]:
        return {"value": str(self.value), "currency": self.currency.to_dict()}


@dataclass(frozen=True)
class AccountIdentifier:
    address: str
    sub_account: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"address": self.address}
        if self.sub_account is not None:
            result["sub_account"] = {"address": self.sub_account}
        return result


@dataclass(frozen=True)
class CoinChange:
    """UTXO created or spent by an operation, identified as `<tx id>:<output index>`."""

    coin_identifier: str
    coin_action: CoinAction

    def to_dict(self) -> dict[str, Any]:
        return {
            "coin_identifier": {"identifier": self.coin_identifier},
            "coin_action": self.coin_action.value,
        }


@dataclass(frozen=True)
class Operation:
    """A single accounting movement within a transaction.

    `index` is None only for operations whose position is not yet known
    (exported outputs of an atomic transaction before they are placed).
    """

    index: int | None
    type: OperationType
    status: OperationStatus
    account: AccountIdentifier
    amount: Amount | None = None
    related_operations: list[int] = field(default_factory=list)
    coin_change: CoinChange | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "operation_identifier": {"index": self.index},
            "type": self.type.value,
            "status": self.status.value,
            "account": self.account.to_dict(),
        }
        if self.related_operations:
            result["related_operations"] = [{"index": i} for i in self.related_operations]
        if self.amount is not None:
            result["amount"] = self.amount.to_dict()
        if self.coin_change is not None:
            result["coin_change"] = self.coin_change.to_dict()
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result


@dataclass(frozen=True)
class Transaction:
    """A protocol transaction: identifier, ordered operations and metadata."""

    id: str
    operations: list[Operation]
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_identifier": {"hash": self.id},
            "operations": [op.to_dict() for op in self.operations],
            "metadata": {
                key: _serialize_metadata_value(value) for key, value in self.metadata.items()
            },
        }


@dataclass(frozen=True)
class NetworkIdentifier:
    blockchain: str
    network: str


def _serialize_metadata_value(value: Any) -> Any:
    if isinstance(value, (Operation, Amount)):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize_metadata_value(v) for v in value]
    return value


# ============================================================================
# EXECUTION INPUTS
# ============================================================================


@dataclass(frozen=True)
class FlatCall:
    """One internal call from a flattened execution trace.

    Ordering of a list of these follows a pre-order walk of the call tree.
    """

    type: OperationType
    from_address: ChecksumAddress
    to_address: ChecksumAddress | None
    value: int
    revert: bool = False
    error: str | None = None


# ============================================================================
# INDEX COUNTER
# ============================================================================


class OperationIndex:
    """Running operation index shared by every stage that appends operations.

    Indices handed out by one counter form the gap-free sequence 0, 1, 2, ...
    """

    def __init__(self, start: int = 0):
        self._next = start

    @property
    def value(self) -> int:
        """The index the next operation will receive."""
        return self._next

    def take(self) -> int:
        """Reserve and return the next index."""
        index = self._next
        self._next += 1
        return index

    def advance(self, count: int) -> int:
        """Reserve `count` consecutive indices and return the first one."""
        first = self._next
        self._next += count
        return first
