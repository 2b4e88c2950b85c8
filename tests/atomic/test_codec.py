"""Tests for the atomic transaction codec and identifier formatting."""

from hashlib import sha256

import pytest

from cchain_rosetta.atomic.codec import (
    encode_atomic_txs,
    encode_tx,
    extract_atomic_txs,
    tx_id,
)
from cchain_rosetta.atomic.formatting import (
    cb58_decode,
    cb58_encode,
    format_address,
    get_hrp,
    utxo_id,
)
from cchain_rosetta.atomic.tx import (
    UTXOID,
    AtomicTx,
    EVMInput,
    EVMOutput,
    TransferableInput,
    TransferableOutput,
    UnsignedExportTx,
    UnsignedImportTx,
)
from cchain_rosetta.config import (
    FUJI_AVAX_ASSET_ID,
    FUJI_C_CHAIN_ID,
    FUJI_X_CHAIN_ID,
    MAINNET_AVAX_ASSET_ID,
    MAINNET_C_CHAIN_ID,
    MAINNET_X_CHAIN_ID,
    P_CHAIN_ID,
)
from cchain_rosetta.exceptions import AtomicCodecError, UnknownNetworkError
from cchain_rosetta.types import NetworkIdentifier

AVAX_ASSET = bytes([1]) * 32
C_CHAIN = bytes([3]) * 32
X_CHAIN = bytes([2]) * 32


def make_import_tx() -> AtomicTx:
    return AtomicTx(
        unsigned=UnsignedImportTx(
            network_id=1,
            blockchain_id=C_CHAIN,
            source_chain=X_CHAIN,
            imported_inputs=[
                TransferableInput(
                    utxo_id=UTXOID(tx_id=bytes([9]) * 32, output_index=1),
                    asset_id=AVAX_ASSET,
                    amount=1_000_000,
                    sig_indices=[0],
                )
            ],
            outs=[EVMOutput(address=bytes([0xAA]) * 20, amount=999_000, asset_id=AVAX_ASSET)],
        ),
        credentials=[[bytes([7]) * 65]],
    )


def make_export_tx() -> AtomicTx:
    return AtomicTx(
        unsigned=UnsignedExportTx(
            network_id=1,
            blockchain_id=C_CHAIN,
            destination_chain=bytes(32),
            ins=[
                EVMInput(
                    address=bytes([0xBB]) * 20, amount=2_000_000, asset_id=AVAX_ASSET, nonce=4
                )
            ],
            exported_outputs=[
                TransferableOutput(
                    asset_id=AVAX_ASSET, amount=1_999_000, addresses=[bytes([0xCC]) * 20]
                )
            ],
        ),
        credentials=[[bytes([8]) * 65]],
    )


def hex_fields(*fields: str) -> bytes:
    return bytes.fromhex("".join(fields))


# Signed import tx built by make_import_tx, field by field
IMPORT_TX_BYTES = hex_fields(
    "0000",  # codec version
    "00000000",  # UnsignedImportTx type id
    "00000001",  # network id
    "03" * 32,  # blockchain id
    "02" * 32,  # source chain
    "00000001",  # imported inputs
    "09" * 32,  # utxo tx id
    "00000001",  # utxo output index
    "01" * 32,  # asset id
    "00000005",  # secp256k1fx.TransferInput type id
    "00000000000f4240",  # amount
    "00000001",  # sig indices
    "00000000",
    "00000001",  # outs
    "aa" * 20,  # address
    "00000000000f3e58",  # amount
    "01" * 32,  # asset id
    "00000001",  # credentials
    "00000009",  # secp256k1fx.Credential type id
    "00000001",  # signatures
    "07" * 65,
)

# Signed export tx built by make_export_tx, field by field
EXPORT_TX_BYTES = hex_fields(
    "0000",  # codec version
    "00000001",  # UnsignedExportTx type id
    "00000001",  # network id
    "03" * 32,  # blockchain id
    "00" * 32,  # destination chain
    "00000001",  # ins
    "bb" * 20,  # address
    "00000000001e8480",  # amount
    "01" * 32,  # asset id
    "0000000000000004",  # nonce
    "00000001",  # exported outputs
    "01" * 32,  # asset id
    "00000007",  # secp256k1fx.TransferOutput type id
    "00000000001e8098",  # amount
    "0000000000000000",  # locktime
    "00000001",  # threshold
    "00000001",  # addresses
    "cc" * 20,
    "00000001",  # credentials
    "00000009",  # secp256k1fx.Credential type id
    "00000001",  # signatures
    "08" * 65,
)


class TestAtomicCodec:
    def test_single_tx_payload(self) -> None:
        tx = make_import_tx()
        payload = encode_atomic_txs([tx], batch=False)

        assert payload[:2] == b"\x00\x00"
        assert extract_atomic_txs(payload, batch=False) == [tx]

    def test_batch_payload(self) -> None:
        txs = [make_import_tx(), make_export_tx()]
        payload = encode_atomic_txs(txs, batch=True)

        assert extract_atomic_txs(payload, batch=True) == txs

    def test_wrong_payload_format_is_rejected(self) -> None:
        payload = encode_atomic_txs([make_import_tx()], batch=False)

        # The import type id reads as a zero count, leaving the tx as trailing bytes
        with pytest.raises(AtomicCodecError):
            extract_atomic_txs(payload, batch=True)

    def test_trailing_bytes_are_rejected(self) -> None:
        payload = encode_atomic_txs([make_import_tx()], batch=False) + b"\x00"

        with pytest.raises(AtomicCodecError, match="trailing"):
            extract_atomic_txs(payload, batch=False)

    def test_unknown_type_id_is_rejected(self) -> None:
        payload = bytearray(encode_atomic_txs([make_import_tx()], batch=False))
        payload[2:6] = (42).to_bytes(4, "big")

        with pytest.raises(AtomicCodecError, match="type id 42"):
            extract_atomic_txs(bytes(payload), batch=False)

    def test_unknown_codec_version_is_rejected(self) -> None:
        payload = b"\x00\x01" + encode_atomic_txs([make_import_tx()], batch=False)[2:]

        with pytest.raises(AtomicCodecError, match="version"):
            extract_atomic_txs(payload, batch=False)

    def test_tx_id_hashes_signed_bytes(self) -> None:
        tx = make_export_tx()

        assert tx_id(tx) == cb58_encode(sha256(encode_tx(tx)).digest())
        assert tx_id(tx) != tx_id(make_import_tx())


class TestCanonicalLayout:
    @pytest.mark.parametrize(
        ("make_tx", "expected"),
        [(make_import_tx, IMPORT_TX_BYTES), (make_export_tx, EXPORT_TX_BYTES)],
    )
    def test_encoding_matches_layout(self, make_tx, expected: bytes) -> None:
        assert encode_tx(make_tx()) == expected

    @pytest.mark.parametrize(
        ("make_tx", "expected"),
        [(make_import_tx, IMPORT_TX_BYTES), (make_export_tx, EXPORT_TX_BYTES)],
    )
    def test_decoding_matches_layout(self, make_tx, expected: bytes) -> None:
        assert extract_atomic_txs(expected, batch=False) == [make_tx()]

    def test_batch_layout(self) -> None:
        payload = hex_fields("0000", "00000002") + IMPORT_TX_BYTES[2:] + EXPORT_TX_BYTES[2:]

        assert extract_atomic_txs(payload, batch=True) == [make_import_tx(), make_export_tx()]
        assert encode_atomic_txs([make_import_tx(), make_export_tx()], batch=True) == payload

    def test_tx_id_is_hash_of_signed_bytes(self) -> None:
        assert tx_id(make_import_tx()) == cb58_encode(sha256(IMPORT_TX_BYTES).digest())
        assert tx_id(make_export_tx()) == cb58_encode(sha256(EXPORT_TX_BYTES).digest())


class TestFormatting:
    def test_cb58_of_empty_id(self) -> None:
        assert cb58_encode(bytes(32)) == P_CHAIN_ID
        assert cb58_decode(P_CHAIN_ID) == bytes(32)

    @pytest.mark.parametrize(
        "cb58_id",
        [
            MAINNET_AVAX_ASSET_ID,
            MAINNET_X_CHAIN_ID,
            MAINNET_C_CHAIN_ID,
            FUJI_AVAX_ASSET_ID,
            FUJI_X_CHAIN_ID,
            FUJI_C_CHAIN_ID,
        ],
    )
    def test_network_ids_are_valid_cb58(self, cb58_id: str) -> None:
        assert len(cb58_decode(cb58_id)) == 32
        assert cb58_encode(cb58_decode(cb58_id)) == cb58_id

    def test_cb58_checksum_is_verified(self) -> None:
        encoded = cb58_encode(bytes([5]) * 32)
        tampered = ("2" if encoded[0] != "2" else "3") + encoded[1:]

        with pytest.raises(ValueError):
            cb58_decode(tampered)

    def test_hrp(self) -> None:
        assert get_hrp(NetworkIdentifier(blockchain="Avalanche", network="Mainnet")) == "avax"
        assert get_hrp(NetworkIdentifier(blockchain="Avalanche", network="fuji")) == "fuji"

        with pytest.raises(UnknownNetworkError):
            get_hrp(NetworkIdentifier(blockchain="Avalanche", network="Devnet"))

    def test_format_address(self) -> None:
        address = format_address("X", "avax", bytes(20))

        assert address.startswith("X-avax1")
        # 20 bytes -> 32 five-bit groups, plus separator and 6 checksum characters
        assert len(address) == len("X-avax1") + 32 + 6

    def test_utxo_id(self) -> None:
        assert utxo_id("abc", 3) == "abc:3"
