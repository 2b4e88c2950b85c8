"""Binary codec for atomic transactions in block extra data.

Implements the fixed-layout, big-endian serialization (codec version 0) used by
the C-chain: slices are prefixed with a uint32 length, interfaces with a uint32
type id.
"""

from __future__ import annotations

import struct
from enum import IntEnum
from hashlib import sha256

from cchain_rosetta.atomic.formatting import cb58_encode
from cchain_rosetta.atomic.tx import (
    UTXOID,
    AtomicTx,
    EVMInput,
    EVMOutput,
    TransferableInput,
    TransferableOutput,
    UnsignedAtomicTx,
    UnsignedExportTx,
    UnsignedImportTx,
)
from cchain_rosetta.exceptions import AtomicCodecError, UnsupportedAtomicTransactionError

CODEC_VERSION = 0

ID_LEN = 32
ADDRESS_LEN = 20
SIGNATURE_LEN = 65


class TypeID(IntEnum):
    """Registered type ids of the types that can appear in C-chain atomic txs."""

    UNSIGNED_IMPORT_TX = 0
    UNSIGNED_EXPORT_TX = 1
    SECP256K1_TRANSFER_INPUT = 5
    SECP256K1_TRANSFER_OUTPUT = 7
    SECP256K1_CREDENTIAL = 9


# ============================================================================
# ENCODING
# ============================================================================


class _Packer:
    def __init__(self) -> None:
        self.buffer = bytearray()

    def pack_short(self, value: int) -> None:
        self.buffer += struct.pack(">H", value)

    def pack_int(self, value: int) -> None:
        self.buffer += struct.pack(">I", value)

    def pack_long(self, value: int) -> None:
        self.buffer += struct.pack(">Q", value)

    def pack_fixed(self, value: bytes, length: int) -> None:
        if len(value) != length:
            raise AtomicCodecError(f"expected {length} bytes, got {len(value)}")
        self.buffer += value


def _pack_unsigned(packer: _Packer, unsigned: UnsignedAtomicTx) -> None:
    if isinstance(unsigned, UnsignedImportTx):
        packer.pack_int(TypeID.UNSIGNED_IMPORT_TX)
        packer.pack_int(unsigned.network_id)
        packer.pack_fixed(unsigned.blockchain_id, ID_LEN)
        packer.pack_fixed(unsigned.source_chain, ID_LEN)
        packer.pack_int(len(unsigned.imported_inputs))
        for imported in unsigned.imported_inputs:
            packer.pack_fixed(imported.utxo_id.tx_id, ID_LEN)
            packer.pack_int(imported.utxo_id.output_index)
            packer.pack_fixed(imported.asset_id, ID_LEN)
            packer.pack_int(TypeID.SECP256K1_TRANSFER_INPUT)
            packer.pack_long(imported.amount)
            packer.pack_int(len(imported.sig_indices))
            for sig_index in imported.sig_indices:
                packer.pack_int(sig_index)
        packer.pack_int(len(unsigned.outs))
        for out in unsigned.outs:
            packer.pack_fixed(out.address, ADDRESS_LEN)
            packer.pack_long(out.amount)
            packer.pack_fixed(out.asset_id, ID_LEN)
    elif isinstance(unsigned, UnsignedExportTx):
        packer.pack_int(TypeID.UNSIGNED_EXPORT_TX)
        packer.pack_int(unsigned.network_id)
        packer.pack_fixed(unsigned.blockchain_id, ID_LEN)
        packer.pack_fixed(unsigned.destination_chain, ID_LEN)
        packer.pack_int(len(unsigned.ins))
        for evm_input in unsigned.ins:
            packer.pack_fixed(evm_input.address, ADDRESS_LEN)
            packer.pack_long(evm_input.amount)
            packer.pack_fixed(evm_input.asset_id, ID_LEN)
            packer.pack_long(evm_input.nonce)
        packer.pack_int(len(unsigned.exported_outputs))
        for exported in unsigned.exported_outputs:
            packer.pack_fixed(exported.asset_id, ID_LEN)
            packer.pack_int(TypeID.SECP256K1_TRANSFER_OUTPUT)
            packer.pack_long(exported.amount)
            packer.pack_long(exported.locktime)
            packer.pack_int(exported.threshold)
            packer.pack_int(len(exported.addresses))
            for address in exported.addresses:
                packer.pack_fixed(address, ADDRESS_LEN)
    else:
        raise UnsupportedAtomicTransactionError(type(unsigned).__name__)


def _pack_tx(packer: _Packer, tx: AtomicTx) -> None:
    _pack_unsigned(packer, tx.unsigned)
    packer.pack_int(len(tx.credentials))
    for signatures in tx.credentials:
        packer.pack_int(TypeID.SECP256K1_CREDENTIAL)
        packer.pack_int(len(signatures))
        for signature in signatures:
            packer.pack_fixed(signature, SIGNATURE_LEN)


def encode_unsigned_tx(unsigned: UnsignedAtomicTx) -> bytes:
    packer = _Packer()
    packer.pack_short(CODEC_VERSION)
    _pack_unsigned(packer, unsigned)
    return bytes(packer.buffer)


def encode_tx(tx: AtomicTx) -> bytes:
    """Signed bytes of a transaction."""
    packer = _Packer()
    packer.pack_short(CODEC_VERSION)
    _pack_tx(packer, tx)
    return bytes(packer.buffer)


def encode_atomic_txs(txs: list[AtomicTx], *, batch: bool) -> bytes:
    """Block extra data carrying `txs`, the inverse of `extract_atomic_txs`.

    Without `batch` exactly one tx is allowed.
    """
    packer = _Packer()
    packer.pack_short(CODEC_VERSION)
    if batch:
        packer.pack_int(len(txs))
        for tx in txs:
            _pack_tx(packer, tx)
    else:
        if len(txs) != 1:
            raise AtomicCodecError(f"expected a single atomic tx, got {len(txs)}")
        _pack_tx(packer, txs[0])
    return bytes(packer.buffer)


def tx_id(tx: AtomicTx) -> str:
    """Canonical id: CB58 of the SHA-256 of the signed bytes."""
    return cb58_encode(sha256(encode_tx(tx)).digest())


# ============================================================================
# DECODING
# ============================================================================


class _Unpacker:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.offset = 0

    def _take(self, length: int) -> bytes:
        end = self.offset + length
        if end > len(self.data):
            raise AtomicCodecError(
                f"insufficient length: need {length} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def unpack_short(self) -> int:
        return struct.unpack(">H", self._take(2))[0]

    def unpack_int(self) -> int:
        return struct.unpack(">I", self._take(4))[0]

    def unpack_long(self) -> int:
        return struct.unpack(">Q", self._take(8))[0]

    def unpack_fixed(self, length: int) -> bytes:
        return self._take(length)

    def unpack_type_id(self, expected: TypeID) -> None:
        type_id = self.unpack_int()
        if type_id != expected:
            raise AtomicCodecError(f"unexpected type id {type_id}, wanted {expected.name}")

    def finish(self) -> None:
        if self.offset != len(self.data):
            raise AtomicCodecError(f"{len(self.data) - self.offset} trailing bytes")


def _unpack_import(unpacker: _Unpacker) -> UnsignedImportTx:
    network_id = unpacker.unpack_int()
    blockchain_id = unpacker.unpack_fixed(ID_LEN)
    source_chain = unpacker.unpack_fixed(ID_LEN)

    imported_inputs = []
    for _ in range(unpacker.unpack_int()):
        utxo_id = UTXOID(tx_id=unpacker.unpack_fixed(ID_LEN), output_index=unpacker.unpack_int())
        asset_id = unpacker.unpack_fixed(ID_LEN)
        unpacker.unpack_type_id(TypeID.SECP256K1_TRANSFER_INPUT)
        amount = unpacker.unpack_long()
        sig_indices = [unpacker.unpack_int() for _ in range(unpacker.unpack_int())]
        imported_inputs.append(
            TransferableInput(
                utxo_id=utxo_id, asset_id=asset_id, amount=amount, sig_indices=sig_indices
            )
        )

    outs = [
        EVMOutput(
            address=unpacker.unpack_fixed(ADDRESS_LEN),
            amount=unpacker.unpack_long(),
            asset_id=unpacker.unpack_fixed(ID_LEN),
        )
        for _ in range(unpacker.unpack_int())
    ]

    return UnsignedImportTx(
        network_id=network_id,
        blockchain_id=blockchain_id,
        source_chain=source_chain,
        imported_inputs=imported_inputs,
        outs=outs,
    )


def _unpack_export(unpacker: _Unpacker) -> UnsignedExportTx:
    network_id = unpacker.unpack_int()
    blockchain_id = unpacker.unpack_fixed(ID_LEN)
    destination_chain = unpacker.unpack_fixed(ID_LEN)

    ins = [
        EVMInput(
            address=unpacker.unpack_fixed(ADDRESS_LEN),
            amount=unpacker.unpack_long(),
            asset_id=unpacker.unpack_fixed(ID_LEN),
            nonce=unpacker.unpack_long(),
        )
        for _ in range(unpacker.unpack_int())
    ]

    exported_outputs = []
    for _ in range(unpacker.unpack_int()):
        asset_id = unpacker.unpack_fixed(ID_LEN)
        unpacker.unpack_type_id(TypeID.SECP256K1_TRANSFER_OUTPUT)
        amount = unpacker.unpack_long()
        locktime = unpacker.unpack_long()
        threshold = unpacker.unpack_int()
        addresses = [unpacker.unpack_fixed(ADDRESS_LEN) for _ in range(unpacker.unpack_int())]
        exported_outputs.append(
            TransferableOutput(
                asset_id=asset_id,
                amount=amount,
                addresses=addresses,
                locktime=locktime,
                threshold=threshold,
            )
        )

    return UnsignedExportTx(
        network_id=network_id,
        blockchain_id=blockchain_id,
        destination_chain=destination_chain,
        ins=ins,
        exported_outputs=exported_outputs,
    )


def _unpack_tx(unpacker: _Unpacker) -> AtomicTx:
    unsigned: UnsignedAtomicTx
    type_id = unpacker.unpack_int()
    if type_id == TypeID.UNSIGNED_IMPORT_TX:
        unsigned = _unpack_import(unpacker)
    elif type_id == TypeID.UNSIGNED_EXPORT_TX:
        unsigned = _unpack_export(unpacker)
    else:
        raise AtomicCodecError(f"unknown atomic transaction type id {type_id}")

    credentials = []
    for _ in range(unpacker.unpack_int()):
        unpacker.unpack_type_id(TypeID.SECP256K1_CREDENTIAL)
        credentials.append([
            unpacker.unpack_fixed(SIGNATURE_LEN) for _ in range(unpacker.unpack_int())
        ])

    return AtomicTx(unsigned=unsigned, credentials=credentials)


def extract_atomic_txs(extra: bytes, *, batch: bool) -> list[AtomicTx]:
    """Decode the atomic transactions in a block's extra data.

    Before AP5 the payload is a single transaction, from AP5 on it is a list.
    """
    unpacker = _Unpacker(extra)
    version = unpacker.unpack_short()
    if version != CODEC_VERSION:
        raise AtomicCodecError(f"unknown codec version {version}")

    if batch:
        txs = [_unpack_tx(unpacker) for _ in range(unpacker.unpack_int())]
    else:
        txs = [_unpack_tx(unpacker)]

    unpacker.finish()
    return txs
