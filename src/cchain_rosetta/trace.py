"""Operations reconstructed from the internal calls of an execution trace.

Native value moved by internal calls never shows up in receipts, so it is
rebuilt here from the call tracer output. Self-destructed accounts are tracked
for the duration of one trace so their remaining balance can be liquidated
with a final DESTRUCT operation.
"""

from __future__ import annotations

from typing import Any

from cchain_rosetta.amounts import account, avax_amount
from cchain_rosetta.checksum_cache import get_checksum_address
from cchain_rosetta.debug_logger import mapper_debug_logger
from cchain_rosetta.exceptions import DestroyedAccountBalanceError
from cchain_rosetta.types import (
    FlatCall,
    Operation,
    OperationIndex,
    OperationStatus,
    OperationType,
)

ERROR_METADATA = "error"


def _parse_value(value: int | str | None) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith("0x") else int(value)


def flatten_trace(call: dict[str, Any]) -> list[FlatCall]:
    """Flatten a nested call tracer result into pre-order execution order.

    Every descendant of a reverted call is reverted as well, and inherits the
    parent's error message when it has none of its own.
    """
    results: list[FlatCall] = []
    _flatten(call, results, parent_error=None)
    return results


def _flatten(call: dict[str, Any], results: list[FlatCall], parent_error: str | None) -> None:
    error = call.get("error") or None
    revert = error is not None or parent_error is not None
    if error is None:
        error = parent_error

    to_address = call.get("to")
    results.append(
        FlatCall(
            type=OperationType(call["type"].upper()),
            from_address=get_checksum_address(call["from"]),
            to_address=get_checksum_address(to_address) if to_address else None,
            value=_parse_value(call.get("value")),
            revert=revert,
            error=error,
        )
    )

    for child in call.get("calls") or []:
        _flatten(child, results, parent_error=error if revert else None)


class TraceOperationSynthesizer:
    """Folds flattened calls into debit/credit operations.

    One instance maps one trace. The destroyed-account ledger lives on the
    instance and is discarded with it.
    """

    def __init__(self, index: OperationIndex):
        self.index = index
        self.destroyed_accounts: dict[str, int] = {}
        self.operations: list[Operation] = []

    def synthesize(self, calls: list[FlatCall]) -> list[Operation]:
        for call in calls:
            self._process_call(call)
        self._liquidate_destroyed_accounts()
        return self.operations

    def _process_call(self, call: FlatCall) -> None:
        # Reverted calls still produce operations, flagged as failed
        metadata: dict[str, Any] = {}
        status = OperationStatus.SUCCESS
        if call.revert:
            status = OperationStatus.FAILURE
            metadata[ERROR_METADATA] = call.error

        zero_value = call.value == 0

        # Zero value calls produce no operations but still go through the
        # ledger updates below, a CALL can resurrect a destroyed account.
        should_add = not (zero_value and call.type.is_value_transfer_call)

        from_address = call.from_address
        to_address = call.to_address

        debit_index: int | None = None
        if should_add:
            debit_index = self.index.take()
            self.operations.append(
                Operation(
                    index=debit_index,
                    type=call.type,
                    status=status,
                    account=account(from_address),
                    amount=None if zero_value else avax_amount(-call.value),
                    metadata=dict(metadata),
                )
            )
            if (
                not zero_value
                and from_address in self.destroyed_accounts
                and status is OperationStatus.SUCCESS
            ):
                self.destroyed_accounts[from_address] -= call.value

        if call.type is OperationType.SELFDESTRUCT:
            # Overwrites any existing balance
            self.destroyed_accounts[from_address] = 0

            # The EVM zeroes the balance after crediting the beneficiary, so a
            # self-destruct to itself is a no-op.
            if from_address == to_address:
                return

        if not to_address:
            return

        if call.type.is_create:
            self.destroyed_accounts.pop(to_address, None)

        if debit_index is not None:
            self.operations.append(
                Operation(
                    index=self.index.take(),
                    type=call.type,
                    status=status,
                    account=account(to_address),
                    amount=None if zero_value else avax_amount(call.value),
                    related_operations=[debit_index],
                    metadata=dict(metadata),
                )
            )
            if (
                not zero_value
                and to_address in self.destroyed_accounts
                and status is OperationStatus.SUCCESS
            ):
                self.destroyed_accounts[to_address] += call.value

    def _liquidate_destroyed_accounts(self) -> None:
        mapper_debug_logger.log_destroyed_accounts(ledger=self.destroyed_accounts)

        for address, balance in self.destroyed_accounts.items():
            if balance == 0:
                continue

            if balance < 0:
                raise DestroyedAccountBalanceError(
                    address=get_checksum_address(address), balance=balance
                )

            self.operations.append(
                Operation(
                    index=self.index.take(),
                    type=OperationType.DESTRUCT,
                    status=OperationStatus.SUCCESS,
                    account=account(address),
                    amount=avax_amount(-balance),
                )
            )


def trace_operations(calls: list[FlatCall], index: OperationIndex) -> list[Operation]:
    """Map a flattened trace to operations, continuing from `index`."""
    if not calls:
        return []
    return TraceOperationSynthesizer(index).synthesize(calls)
