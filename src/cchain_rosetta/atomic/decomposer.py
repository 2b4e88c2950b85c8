"""Operations for atomic (cross-chain) import and export transactions.

Imports credit C-chain accounts from UTXOs on another chain, exports debit
C-chain accounts and create UTXOs on the destination chain. Amounts on the
other chains are in nAVAX, C-chain balances in wei.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from hexbytes import HexBytes

from cchain_rosetta.amounts import X2C_RATE, account, atomic_avax_amount, avax_amount
from cchain_rosetta.atomic.codec import encode_unsigned_tx, tx_id
from cchain_rosetta.atomic.formatting import cb58_encode, format_address, get_hrp, utxo_id
from cchain_rosetta.atomic.tx import AtomicTx, UnsignedExportTx, UnsignedImportTx
from cchain_rosetta.debug_logger import mapper_debug_logger
from cchain_rosetta.exceptions import UnsupportedAtomicTransactionError
from cchain_rosetta.types import (
    AccountIdentifier,
    CoinAction,
    CoinChange,
    NetworkIdentifier,
    Operation,
    OperationIndex,
    OperationStatus,
    OperationType,
)

METADATA_EXPORTED_OUTPUTS = "exported_outputs"
METADATA_TX_FEE = "tx_fee"


class AtomicCrossChainDecomposer:
    """Maps one atomic transaction to operations and fee metadata.

    Args:
        network_identifier: Network whose address prefix is used for exported outputs.
        native_asset_id: CB58 id of AVAX. Inputs and outputs of other assets are ignored.
        chain_id_to_alias: CB58 chain id to alias. Exported outputs are only
            resolved for destination chains listed here.
    """

    def __init__(
        self,
        network_identifier: NetworkIdentifier,
        native_asset_id: str,
        chain_id_to_alias: dict[str, str],
    ):
        self.network_identifier = network_identifier
        self.native_asset_id = native_asset_id
        self.chain_id_to_alias = chain_id_to_alias

    def decompose(
        self, tx: AtomicTx, index: OperationIndex
    ) -> tuple[list[Operation], dict[str, Any]]:
        """Return the transaction's operations and its transaction-level metadata."""
        unsigned = tx.unsigned
        canonical_id = tx_id(tx)

        if isinstance(unsigned, UnsignedImportTx):
            operations, exported_outputs, total_input, total_output = self._import_operations(
                unsigned, canonical_id, index
            )
            kind = "import"
        elif isinstance(unsigned, UnsignedExportTx):
            operations, exported_outputs, total_input, total_output = self._export_operations(
                unsigned, canonical_id, index
            )
            kind = "export"
        else:
            raise UnsupportedAtomicTransactionError(type(unsigned).__name__)

        # Exported outputs follow the native asset operations, in emission order
        placed_outputs = [replace(out, index=index.take()) for out in exported_outputs]

        # The fee is whatever the inputs provide beyond the outputs, never clamped
        tx_fee = total_input - total_output

        metadata: dict[str, Any] = {}
        if placed_outputs:
            metadata[METADATA_EXPORTED_OUTPUTS] = placed_outputs
        metadata[METADATA_TX_FEE] = atomic_avax_amount(tx_fee)

        mapper_debug_logger.log_atomic_transaction(
            tx_id=canonical_id,
            kind=kind,
            operation_count=len(operations),
            exported_output_count=len(placed_outputs),
            tx_fee=tx_fee,
        )

        return operations, metadata

    def _import_operations(
        self, unsigned: UnsignedImportTx, canonical_id: str, index: OperationIndex
    ) -> tuple[list[Operation], list[Operation], int, int]:
        # Source transactions, de-duplicated
        source_tx_ids = sorted({
            cb58_encode(imported.utxo_id.tx_id) for imported in unsigned.imported_inputs
        })
        total_input = sum(
            imported.amount
            for imported in unsigned.imported_inputs
            if cb58_encode(imported.asset_id) == self.native_asset_id
        )
        total_output = 0

        operations = []
        for out in unsigned.outs:
            asset_id = cb58_encode(out.asset_id)
            if asset_id != self.native_asset_id:
                continue

            total_output += out.amount
            operations.append(
                Operation(
                    index=index.take(),
                    type=OperationType.IMPORT,
                    status=OperationStatus.SUCCESS,
                    account=account(out.address),
                    amount=avax_amount(out.amount * X2C_RATE),
                    metadata={
                        "tx": canonical_id,
                        "tx_ids": list(source_tx_ids),
                        "blockchain_id": cb58_encode(unsigned.blockchain_id),
                        "network_id": unsigned.network_id,
                        "source_chain": cb58_encode(unsigned.source_chain),
                        "meta": HexBytes(encode_unsigned_tx(unsigned)).to_0x_hex(),
                        "asset_id": asset_id,
                    },
                )
            )

        return operations, [], total_input, total_output

    def _export_operations(
        self, unsigned: UnsignedExportTx, canonical_id: str, index: OperationIndex
    ) -> tuple[list[Operation], list[Operation], int, int]:
        destination_chain = cb58_encode(unsigned.destination_chain)
        total_input = 0
        total_output = 0

        operations = []
        for evm_input in unsigned.ins:
            asset_id = cb58_encode(evm_input.asset_id)
            if asset_id != self.native_asset_id:
                continue

            total_input += evm_input.amount
            operations.append(
                Operation(
                    index=index.take(),
                    type=OperationType.EXPORT,
                    status=OperationStatus.SUCCESS,
                    account=account(evm_input.address),
                    amount=avax_amount(-evm_input.amount * X2C_RATE),
                    metadata={
                        "tx": canonical_id,
                        "blockchain_id": cb58_encode(unsigned.blockchain_id),
                        "network_id": unsigned.network_id,
                        "destination_chain": destination_chain,
                        "meta": HexBytes(encode_unsigned_tx(unsigned)).to_0x_hex(),
                        "asset_id": asset_id,
                    },
                )
            )

        exported_outputs: list[Operation] = []
        chain_alias = self.chain_id_to_alias.get(destination_chain)
        if unsigned.exported_outputs and chain_alias is not None:
            exported_outputs, total_output = self._exported_outputs(
                unsigned, canonical_id, chain_alias
            )

        return operations, exported_outputs, total_input, total_output

    def _exported_outputs(
        self, unsigned: UnsignedExportTx, canonical_id: str, chain_alias: str
    ) -> tuple[list[Operation], int]:
        """UTXOs created on the destination chain, not yet given operation indices."""
        hrp = get_hrp(self.network_identifier)

        operations = []
        total_amount = 0
        for output_index, out in enumerate(unsigned.exported_outputs):
            if cb58_encode(out.asset_id) != self.native_asset_id:
                continue

            address = ""
            if out.addresses:
                address = format_address(chain_alias, hrp, out.addresses[0])

            total_amount += out.amount
            operations.append(
                Operation(
                    index=None,
                    type=OperationType.EXPORT,
                    status=OperationStatus.SUCCESS,
                    account=AccountIdentifier(address=address),
                    amount=atomic_avax_amount(out.amount),
                    coin_change=CoinChange(
                        coin_identifier=utxo_id(canonical_id, output_index),
                        coin_action=CoinAction.CREATED,
                    ),
                )
            )

        return operations, total_amount
