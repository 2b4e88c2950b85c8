"""Atomic transaction model.

An atomic transaction is either an import into the C-chain or an export out
of it. Both carry their signatures as credentials, which matter here only
because they are part of the bytes the transaction id is computed from.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class UTXOID:
    tx_id: bytes
    output_index: int


@dataclass(frozen=True)
class TransferableInput:
    """UTXO on the source chain consumed by an import."""

    utxo_id: UTXOID
    asset_id: bytes
    amount: int
    sig_indices: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class EVMOutput:
    """C-chain balance credited by an import."""

    address: bytes
    amount: int
    asset_id: bytes


@dataclass(frozen=True)
class EVMInput:
    """C-chain balance debited by an export."""

    address: bytes
    amount: int
    asset_id: bytes
    nonce: int


@dataclass(frozen=True)
class TransferableOutput:
    """UTXO created on the destination chain by an export."""

    asset_id: bytes
    amount: int
    addresses: list[bytes] = field(default_factory=list)
    locktime: int = 0
    threshold: int = 1


@dataclass(frozen=True)
class UnsignedImportTx:
    network_id: int
    blockchain_id: bytes
    source_chain: bytes
    imported_inputs: list[TransferableInput] = field(default_factory=list)
    outs: list[EVMOutput] = field(default_factory=list)


@dataclass(frozen=True)
class UnsignedExportTx:
    network_id: int
    blockchain_id: bytes
    destination_chain: bytes
    ins: list[EVMInput] = field(default_factory=list)
    exported_outputs: list[TransferableOutput] = field(default_factory=list)


UnsignedAtomicTx = UnsignedImportTx | UnsignedExportTx


@dataclass(frozen=True)
class AtomicTx:
    """Signed atomic transaction. Each credential is a list of 65-byte signatures."""

    unsigned: UnsignedAtomicTx
    credentials: list[list[bytes]] = field(default_factory=list)
