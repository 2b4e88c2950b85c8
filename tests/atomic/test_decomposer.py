"""Tests for atomic import/export decomposition and block-level assembly."""

import pytest
from hexbytes import HexBytes

from cchain_rosetta.amounts import ATOMIC_AVAX_CURRENCY, AVAX_CURRENCY, X2C_RATE
from cchain_rosetta.atomic.codec import encode_atomic_txs, tx_id
from cchain_rosetta.atomic.decomposer import AtomicCrossChainDecomposer
from cchain_rosetta.atomic.formatting import cb58_encode
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
from cchain_rosetta.checksum_cache import get_checksum_address
from cchain_rosetta.config import P_CHAIN_ID, MapperConfig
from cchain_rosetta.exceptions import UnsupportedAtomicTransactionError
from cchain_rosetta.transaction import cross_chain_transactions
from cchain_rosetta.types import (
    CoinAction,
    NetworkIdentifier,
    OperationIndex,
    OperationStatus,
    OperationType,
)

AVAX_ASSET = bytes([1]) * 32
OTHER_ASSET = bytes([4]) * 32
C_CHAIN = bytes([3]) * 32
X_CHAIN = bytes([2]) * 32
UNLISTED_CHAIN = bytes([6]) * 32

SOURCE_TX_1 = bytes([0x11]) * 32
SOURCE_TX_2 = bytes([0x22]) * 32

EVM_ADDRESS = bytes([0xAA]) * 20
OTHER_EVM_ADDRESS = bytes([0xBB]) * 20
X_ADDRESS = bytes([0xCC]) * 20

AP5_ACTIVATION = 1_000_000

CONFIG = MapperConfig(
    network_identifier=NetworkIdentifier(blockchain="Avalanche", network="Mainnet"),
    ap5_activation_time=AP5_ACTIVATION,
    native_asset_id=cb58_encode(AVAX_ASSET),
    chain_id_to_alias={cb58_encode(X_CHAIN): "X", P_CHAIN_ID: "P"},
)


def make_decomposer() -> AtomicCrossChainDecomposer:
    return AtomicCrossChainDecomposer(
        network_identifier=CONFIG.network_identifier,
        native_asset_id=CONFIG.native_asset_id,
        chain_id_to_alias=CONFIG.chain_id_to_alias,
    )


def imported_input(source_tx: bytes, output_index: int, amount: int, asset=AVAX_ASSET):
    return TransferableInput(
        utxo_id=UTXOID(tx_id=source_tx, output_index=output_index),
        asset_id=asset,
        amount=amount,
        sig_indices=[0],
    )


def make_import_tx() -> AtomicTx:
    return AtomicTx(
        unsigned=UnsignedImportTx(
            network_id=1,
            blockchain_id=C_CHAIN,
            source_chain=X_CHAIN,
            imported_inputs=[
                imported_input(SOURCE_TX_2, 0, 1000),
                imported_input(SOURCE_TX_1, 0, 2000),
                imported_input(SOURCE_TX_2, 1, 500),
            ],
            outs=[
                EVMOutput(address=EVM_ADDRESS, amount=3000, asset_id=AVAX_ASSET),
                EVMOutput(address=OTHER_EVM_ADDRESS, amount=777, asset_id=OTHER_ASSET),
            ],
        ),
        credentials=[[bytes([7]) * 65]],
    )


def make_export_tx(destination_chain: bytes = X_CHAIN) -> AtomicTx:
    return AtomicTx(
        unsigned=UnsignedExportTx(
            network_id=1,
            blockchain_id=C_CHAIN,
            destination_chain=destination_chain,
            ins=[
                EVMInput(address=EVM_ADDRESS, amount=5000, asset_id=AVAX_ASSET, nonce=0),
                EVMInput(address=OTHER_EVM_ADDRESS, amount=99, asset_id=OTHER_ASSET, nonce=3),
            ],
            exported_outputs=[
                TransferableOutput(asset_id=AVAX_ASSET, amount=4000, addresses=[X_ADDRESS]),
                TransferableOutput(asset_id=AVAX_ASSET, amount=500, addresses=[X_ADDRESS]),
            ],
        ),
        credentials=[[bytes([8]) * 65]],
    )


class TestImport:
    def test_native_outputs_become_import_operations(self) -> None:
        tx = make_import_tx()

        ops, metadata = make_decomposer().decompose(tx, OperationIndex())

        assert len(ops) == 1
        op = ops[0]
        assert op.index == 0
        assert op.type is OperationType.IMPORT
        assert op.status is OperationStatus.SUCCESS
        assert op.account.address == get_checksum_address(EVM_ADDRESS)
        assert op.amount is not None
        assert op.amount.value == 3000 * X2C_RATE
        assert op.amount.currency == AVAX_CURRENCY

        assert op.metadata["tx"] == tx_id(tx)
        source_tx_ids = sorted([cb58_encode(SOURCE_TX_1), cb58_encode(SOURCE_TX_2)])
        assert op.metadata["tx_ids"] == source_tx_ids
        assert op.metadata["blockchain_id"] == cb58_encode(C_CHAIN)
        assert op.metadata["source_chain"] == cb58_encode(X_CHAIN)
        assert op.metadata["network_id"] == 1
        assert op.metadata["asset_id"] == CONFIG.native_asset_id
        assert op.metadata["meta"].startswith("0x")

    def test_fee_is_inputs_minus_native_outputs(self) -> None:
        _, metadata = make_decomposer().decompose(make_import_tx(), OperationIndex())

        assert "exported_outputs" not in metadata
        assert metadata["tx_fee"].value == 3500 - 3000
        assert metadata["tx_fee"].currency == ATOMIC_AVAX_CURRENCY

    def test_source_tx_ids_are_not_shared(self) -> None:
        tx = make_import_tx()
        tx.unsigned.outs.append(EVMOutput(address=OTHER_EVM_ADDRESS, amount=1, asset_id=AVAX_ASSET))

        first, second = make_decomposer().decompose(tx, OperationIndex())[0]

        assert first.metadata["tx_ids"] == second.metadata["tx_ids"]
        assert first.metadata["tx_ids"] is not second.metadata["tx_ids"]

    def test_non_native_imported_inputs_are_not_counted(self) -> None:
        tx = make_import_tx()
        tx.unsigned.imported_inputs.append(imported_input(SOURCE_TX_1, 1, 9999, asset=OTHER_ASSET))

        _, metadata = make_decomposer().decompose(tx, OperationIndex())

        assert metadata["tx_fee"].value == 3500 - 3000


class TestExport:
    def test_native_inputs_become_export_operations(self) -> None:
        tx = make_export_tx()

        ops, _ = make_decomposer().decompose(tx, OperationIndex())

        assert len(ops) == 1
        assert ops[0].index == 0
        assert ops[0].type is OperationType.EXPORT
        assert ops[0].account.address == get_checksum_address(EVM_ADDRESS)
        assert ops[0].amount is not None
        assert ops[0].amount.value == -5000 * X2C_RATE
        assert ops[0].metadata["destination_chain"] == cb58_encode(X_CHAIN)
        assert "source_chain" not in ops[0].metadata

    def test_exported_outputs_follow_native_operations(self) -> None:
        tx = make_export_tx()

        ops, metadata = make_decomposer().decompose(tx, OperationIndex())

        outputs = metadata["exported_outputs"]
        assert [out.index for out in outputs] == [1, 2]
        assert [out.amount.value for out in outputs] == [4000, 500]
        assert all(out.amount.currency == ATOMIC_AVAX_CURRENCY for out in outputs)
        assert all(out.type is OperationType.EXPORT for out in outputs)
        assert all(out.account.address.startswith("X-avax1") for out in outputs)
        assert [out.coin_change.coin_identifier for out in outputs] == [
            f"{tx_id(tx)}:0",
            f"{tx_id(tx)}:1",
        ]
        assert all(out.coin_change.coin_action is CoinAction.CREATED for out in outputs)

        assert metadata["tx_fee"].value == 5000 - 4500

    def test_non_native_exported_outputs_are_skipped(self) -> None:
        tx = make_export_tx()
        tx.unsigned.exported_outputs[:] = [
            TransferableOutput(asset_id=OTHER_ASSET, amount=9, addresses=[X_ADDRESS]),
            TransferableOutput(asset_id=AVAX_ASSET, amount=4000, addresses=[X_ADDRESS]),
        ]

        ops, metadata = make_decomposer().decompose(tx, OperationIndex())

        (exported,) = metadata["exported_outputs"]
        assert [op.index for op in ops] == [0]
        assert exported.index == 1
        assert exported.coin_change.coin_identifier == f"{tx_id(tx)}:1"
        assert metadata["tx_fee"].value == 5000 - 4000

    def test_unlisted_destination_chain_has_no_exported_outputs(self) -> None:
        _, metadata = make_decomposer().decompose(
            make_export_tx(destination_chain=UNLISTED_CHAIN), OperationIndex()
        )

        assert "exported_outputs" not in metadata
        assert metadata["tx_fee"].value == 5000

    def test_fee_may_be_negative(self) -> None:
        tx = make_export_tx()
        tx.unsigned.ins[0] = EVMInput(address=EVM_ADDRESS, amount=10, asset_id=AVAX_ASSET, nonce=0)

        _, metadata = make_decomposer().decompose(tx, OperationIndex())

        assert metadata["tx_fee"].value == 10 - 4500


class TestUnsupported:
    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(UnsupportedAtomicTransactionError):
            make_decomposer().decompose(AtomicTx(unsigned=object()), OperationIndex())


class TestCrossChainTransactions:
    def test_block_without_extra_data(self) -> None:
        assert cross_chain_transactions({"timestamp": AP5_ACTIVATION}, CONFIG) == []
        assert (
            cross_chain_transactions(
                {"timestamp": AP5_ACTIVATION, "blockExtraData": "0x"}, CONFIG
            )
            == []
        )

    def test_single_tx_before_activation(self) -> None:
        tx = make_import_tx()
        block = {
            "timestamp": AP5_ACTIVATION - 1,
            "blockExtraData": HexBytes(encode_atomic_txs([tx], batch=False)).to_0x_hex(),
        }

        transactions = cross_chain_transactions(block, CONFIG)

        assert len(transactions) == 1
        assert transactions[0].id == tx_id(tx)
        assert [op.index for op in transactions[0].operations] == [0]

    def test_batch_after_activation_restarts_indices(self) -> None:
        txs = [make_export_tx(), make_import_tx()]
        block = {
            "timestamp": AP5_ACTIVATION,
            "blockExtraData": encode_atomic_txs(txs, batch=True),
        }

        transactions = cross_chain_transactions(block, CONFIG)

        assert [t.id for t in transactions] == [tx_id(tx) for tx in txs]
        assert all(t.operations[0].index == 0 for t in transactions)

        serialized = transactions[0].to_dict()
        assert serialized["metadata"]["tx_fee"] == {
            "value": "500",
            "currency": {"symbol": "AVAX", "decimals": 9},
        }
        exported = serialized["metadata"]["exported_outputs"][0]
        assert exported["operation_identifier"] == {"index": 1}
        assert exported["coin_change"]["coin_action"] == "coin_created"
