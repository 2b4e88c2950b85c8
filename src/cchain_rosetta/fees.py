"""Transaction fee operations."""

from eth_typing import ChecksumAddress

from cchain_rosetta.amounts import account, avax_amount
from cchain_rosetta.types import Operation, OperationIndex, OperationStatus, OperationType


def fee_operations(
    sender: ChecksumAddress,
    fee_receiver: ChecksumAddress,
    gas_used: int,
    gas_price: int,
    index: OperationIndex,
) -> list[Operation]:
    """Debit the fee from the sender and credit it to the block's fee receiver.

    Always the first two operations of a transaction, so called with a fresh
    counter they land on indices 0 and 1.
    """
    fee = gas_used * gas_price

    debit_index = index.take()
    credit_index = index.take()

    return [
        Operation(
            index=debit_index,
            type=OperationType.FEE,
            status=OperationStatus.SUCCESS,
            account=account(sender),
            amount=avax_amount(-fee),
        ),
        Operation(
            index=credit_index,
            type=OperationType.FEE,
            status=OperationStatus.SUCCESS,
            account=account(fee_receiver),
            amount=avax_amount(fee),
            related_operations=[debit_index],
        ),
    ]
