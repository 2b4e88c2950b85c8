"""Token transfer operations decoded from ERC20 and ERC721 Transfer logs."""

from __future__ import annotations

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3.types import LogReceipt

from cchain_rosetta.amounts import (
    CONTRACT_ADDRESS_METADATA,
    account,
    erc20_amount,
    to_currency,
)
from cchain_rosetta.checksum_cache import get_checksum_address
from cchain_rosetta.client import (
    UNKNOWN_ERC20_SYMBOL,
    UNKNOWN_ERC721_SYMBOL,
    ContractInfoClient,
)
from cchain_rosetta.config import MapperConfig
from cchain_rosetta.events import (
    TOPICS_IN_ERC20_TRANSFER,
    TOPICS_IN_ERC721_TRANSFER,
    TokenEvent,
)
from cchain_rosetta.types import (
    Currency,
    Operation,
    OperationIndex,
    OperationStatus,
    OperationType,
)

ZERO_ADDRESS = get_checksum_address("0x0000000000000000000000000000000000000000")

INDEX_TRANSFERRED_METADATA = "indexTransferred"


def _decode_address(topic: HexBytes) -> ChecksumAddress:
    return get_checksum_address("0x" + HexBytes(topic).hex()[-40:])


def is_transfer_log(log: LogReceipt) -> bool:
    topics = log["topics"]
    return len(topics) > 0 and HexBytes(topics[0]) == TokenEvent.TRANSFER.value


def erc20_operations(
    log: LogReceipt, currency: Currency, index: OperationIndex
) -> list[Operation]:
    """Mint, burn, or a linked send/receive pair for an ERC20 Transfer log."""
    from_address = _decode_address(log["topics"][1])
    to_address = _decode_address(log["topics"][2])
    data = HexBytes(log["data"])

    if from_address == ZERO_ADDRESS:
        return [
            Operation(
                index=index.take(),
                type=OperationType.ERC20_MINT,
                status=OperationStatus.SUCCESS,
                account=account(to_address),
                amount=erc20_amount(data, currency, is_sender=False),
            )
        ]

    if to_address == ZERO_ADDRESS:
        return [
            Operation(
                index=index.take(),
                type=OperationType.ERC20_BURN,
                status=OperationStatus.SUCCESS,
                account=account(from_address),
                amount=erc20_amount(data, currency, is_sender=True),
            )
        ]

    send_index = index.take()
    return [
        Operation(
            index=send_index,
            type=OperationType.ERC20_TRANSFER,
            status=OperationStatus.SUCCESS,
            account=account(from_address),
            amount=erc20_amount(data, currency, is_sender=True),
        ),
        Operation(
            index=index.take(),
            type=OperationType.ERC20_TRANSFER,
            status=OperationStatus.SUCCESS,
            account=account(to_address),
            amount=erc20_amount(data, currency, is_sender=False),
            related_operations=[send_index],
        ),
    ]


def erc721_operations(log: LogReceipt, index: OperationIndex) -> list[Operation]:
    """Mint, burn, or a linked sender/receiver pair for an ERC721 Transfer log.

    NFT transfers carry no amount, the contract and token id go into metadata.
    """
    from_address = _decode_address(log["topics"][1])
    to_address = _decode_address(log["topics"][2])
    metadata = {
        CONTRACT_ADDRESS_METADATA: get_checksum_address(log["address"]),
        INDEX_TRANSFERRED_METADATA: HexBytes(log["topics"][3]).to_0x_hex(),
    }

    if from_address == ZERO_ADDRESS:
        return [
            Operation(
                index=index.take(),
                type=OperationType.ERC721_MINT,
                status=OperationStatus.SUCCESS,
                account=account(to_address),
                metadata=metadata,
            )
        ]

    if to_address == ZERO_ADDRESS:
        return [
            Operation(
                index=index.take(),
                type=OperationType.ERC721_BURN,
                status=OperationStatus.SUCCESS,
                account=account(from_address),
                metadata=metadata,
            )
        ]

    send_index = index.take()
    return [
        Operation(
            index=send_index,
            type=OperationType.ERC721_SENDER,
            status=OperationStatus.SUCCESS,
            account=account(from_address),
            metadata=metadata,
        ),
        Operation(
            index=index.take(),
            type=OperationType.ERC721_RECEIVE,
            status=OperationStatus.SUCCESS,
            account=account(to_address),
            metadata=dict(metadata),
            related_operations=[send_index],
        ),
    ]


def token_operations(
    logs: list[LogReceipt],
    client: ContractInfoClient,
    config: MapperConfig,
    index: OperationIndex,
) -> list[Operation]:
    """Operations for every qualifying Transfer log, in receipt order.

    In standard mode only allow-listed token contracts are considered, and
    tokens without usable metadata are skipped unless configured otherwise.
    Lookup failures propagate.
    """
    operations: list[Operation] = []

    for log in logs:
        if not is_transfer_log(log):
            continue

        if not config.analytics_mode and not config.is_token_allowed(log["address"]):
            continue

        token_address = get_checksum_address(log["address"])

        topic_count = len(log["topics"])
        if topic_count == TOPICS_IN_ERC721_TRANSFER:
            symbol, _ = client.get_contract_info(token_address, False)
            if symbol == UNKNOWN_ERC721_SYMBOL and not config.include_unknown_tokens:
                continue
            operations.extend(erc721_operations(log, index))
        elif topic_count == TOPICS_IN_ERC20_TRANSFER:
            symbol, decimals = client.get_contract_info(token_address, True)
            if symbol == UNKNOWN_ERC20_SYMBOL and not config.include_unknown_tokens:
                continue
            currency = to_currency(symbol, decimals, token_address)
            operations.extend(erc20_operations(log, currency, index))

    return operations
