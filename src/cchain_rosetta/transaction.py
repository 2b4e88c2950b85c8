"""Assembles Rosetta transactions for C-chain blocks.

Ordinary transactions are mapped in three stages sharing one operation index
counter: fee operations, trace operations, token transfer operations. Atomic
transactions found in a block's extra data are mapped independently, each
with its own counter.
"""

from __future__ import annotations

import time
from typing import Any

from hexbytes import HexBytes
from web3.types import BlockData, TxData, TxReceipt

from cchain_rosetta.atomic.codec import extract_atomic_txs, tx_id
from cchain_rosetta.atomic.decomposer import AtomicCrossChainDecomposer
from cchain_rosetta.checksum_cache import get_checksum_address
from cchain_rosetta.client import ContractInfoClient
from cchain_rosetta.config import MapperConfig
from cchain_rosetta.debug_logger import mapper_debug_logger
from cchain_rosetta.fees import fee_operations
from cchain_rosetta.tokens import token_operations
from cchain_rosetta.trace import flatten_trace, trace_operations
from cchain_rosetta.types import FlatCall, Operation, OperationIndex, Transaction

BLOCK_EXTRA_DATA_FIELD = "blockExtraData"


def _to_int(value: int | str) -> int:
    if isinstance(value, str):
        return int(value, 16)
    return value


def map_transaction(
    block: BlockData,
    tx: TxData,
    receipt: TxReceipt,
    trace: dict[str, Any] | None,
    client: ContractInfoClient,
    config: MapperConfig,
    flattened_trace: list[FlatCall] | None = None,
) -> Transaction:
    """Map an executed transaction to its Rosetta operations.

    Args:
        block: Block containing the transaction. Its miner receives the fee.
        tx: The transaction.
        receipt: Receipt of the transaction.
        trace: Raw call tracer result, kept as metadata and flattened when
            `flattened_trace` is not given.
        client: Contract metadata lookup for token currencies.
        config: Token policy settings.
        flattened_trace: Pre-flattened calls, in execution order.

    Raises:
        ContractInfoLookupError: token metadata could not be fetched.
        DestroyedAccountBalanceError: trace bookkeeping left a negative balance.
    """
    tx_hash = HexBytes(tx["hash"])
    if flattened_trace is None:
        flattened_trace = flatten_trace(trace) if trace else []

    mapper_debug_logger.log_transaction_start(
        tx_hash=tx_hash,
        block_number=block.get("number"),
        log_count=len(receipt["logs"]),
        call_count=len(flattened_trace),
    )
    start = time.perf_counter()

    try:
        operations = _map_operations(block, tx, receipt, flattened_trace, client, config)
    except Exception as exc:
        mapper_debug_logger.log_exception(exc=exc, tx_hash=tx_hash)
        mapper_debug_logger.log_transaction_end(tx_hash=tx_hash, success=False)
        raise

    mapper_debug_logger.log_transaction_end(
        tx_hash=tx_hash,
        success=True,
        operation_count=len(operations),
        duration_ms=(time.perf_counter() - start) * 1000,
    )

    return Transaction(
        id=tx_hash.to_0x_hex(),
        operations=operations,
        metadata={
            "gas": _to_int(tx["gas"]),
            "gas_used": _to_int(receipt["gasUsed"]),
            "gas_price": str(_to_int(tx["gasPrice"])),
            "receipt": receipt,
            "trace": trace,
            "type": _to_int(tx.get("type", 0)),
        },
    )


def _map_operations(
    block: BlockData,
    tx: TxData,
    receipt: TxReceipt,
    flattened_trace: list[FlatCall],
    client: ContractInfoClient,
    config: MapperConfig,
) -> list[Operation]:
    index = OperationIndex()

    # The receipt's effective gas price is what was actually paid for dynamic fee txs
    gas_price = receipt.get("effectiveGasPrice", tx["gasPrice"])

    operations = fee_operations(
        sender=get_checksum_address(tx["from"]),
        fee_receiver=get_checksum_address(block["miner"]),
        gas_used=_to_int(receipt["gasUsed"]),
        gas_price=_to_int(gas_price),
        index=index,
    )
    operations.extend(trace_operations(flattened_trace, index))
    operations.extend(token_operations(receipt["logs"], client, config, index))
    return operations


def cross_chain_transactions(block: BlockData, config: MapperConfig) -> list[Transaction]:
    """Map the atomic transactions carried in a block's extra data.

    A block without extra data has no atomic transactions.
    """
    extra = block.get(BLOCK_EXTRA_DATA_FIELD)
    if not extra:
        return []
    extra = HexBytes(extra)
    if len(extra) == 0:
        return []

    atomic_txs = extract_atomic_txs(
        extra, batch=_to_int(block["timestamp"]) >= config.ap5_activation_time
    )

    decomposer = AtomicCrossChainDecomposer(
        network_identifier=config.network_identifier,
        native_asset_id=config.native_asset_id,
        chain_id_to_alias=config.chain_id_to_alias,
    )

    transactions = []
    for atomic_tx in atomic_txs:
        operations, metadata = decomposer.decompose(atomic_tx, OperationIndex())
        transactions.append(
            Transaction(id=tx_id(atomic_tx), operations=operations, metadata=metadata)
        )

    return transactions


def mempool_transaction_ids(account_map: dict[str, dict[str, str]]) -> list[str]:
    """Transaction hashes from a txpool listing of `account -> nonce -> "hash: ..."`."""
    result = []
    for nonce_map in account_map.values():
        for entry in nonce_map.values():
            result.append(entry.split(":")[0])
    return result
