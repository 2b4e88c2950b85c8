"""Structured JSON logging for operation mapping.

Provides machine-parseable debug output, one JSON object per line.
"""

from __future__ import annotations

import json
import os
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, ClassVar

from hexbytes import HexBytes

DEBUG_OUTPUT_ENV_VAR = "CCHAIN_ROSETTA_DEBUG_OUTPUT"


def _format_hash(tx_hash: HexBytes | bytes | str | None) -> str | None:
    if isinstance(tx_hash, (bytes, bytearray)):
        return HexBytes(tx_hash).to_0x_hex()
    return tx_hash


class CChainDebugLogger:
    """Structured debug logger for transaction mapping.

    Outputs JSON Lines format. Each entry includes type, timestamp, the
    network being mapped, and structured data.
    """

    _instance: ClassVar[CChainDebugLogger | None] = None
    _initialized: bool = False

    def __new__(cls) -> CChainDebugLogger:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._output_path: Path | None = None
        self._file_handle: Any = None
        self._network: str | None = None
        self._enabled: bool = False

    def configure(
        self,
        output_path: Path | str | None = None,
        network: str | None = None,
    ) -> bool:
        """Configure the debug logger.

        Args:
            output_path: Path to write JSONL debug output. If None, uses env var
                or existing path if already configured.
            network: Network name added to every entry

        Returns:
            True if logging is enabled, False otherwise
        """
        if output_path is None:
            output_path = os.environ.get(DEBUG_OUTPUT_ENV_VAR)

        if self._output_path is not None and output_path is None:
            if network is not None:
                self._network = network
            return self._enabled

        if not output_path:
            self._enabled = False
            return False

        if self._file_handle is not None:
            self.close()

        self._output_path = Path(output_path)
        self._network = network
        self._enabled = True

        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_handle = self._output_path.open("a", buffering=1, encoding="utf-8")

        self._write_entry({
            "type": "session_start",
            "timestamp": datetime.now(tz=UTC).isoformat(),
        })

        return True

    def is_enabled(self) -> bool:
        return self._enabled

    def _write_entry(self, entry: dict[str, Any]) -> None:
        if not self._enabled or self._file_handle is None:
            return

        entry["_network"] = self._network

        try:
            self._file_handle.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            sys.stderr.write(f"Failed to write debug log: {e}\n")

    def log_transaction_start(
        self,
        *,
        tx_hash: HexBytes | str,
        block_number: int | None,
        log_count: int,
        call_count: int,
    ) -> None:
        """Log the start of transaction mapping.

        Args:
            tx_hash: Transaction hash
            block_number: Block number, if known
            log_count: Number of receipt logs
            call_count: Number of flattened trace calls
        """
        if not self._enabled:
            return

        self._write_entry({
            "type": "transaction_start",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "tx_hash": _format_hash(tx_hash),
            "block_number": block_number,
            "log_count": log_count,
            "call_count": call_count,
        })

    def log_transaction_end(
        self,
        *,
        tx_hash: HexBytes | str,
        success: bool,
        operation_count: int = 0,
        duration_ms: float | None = None,
    ) -> None:
        if not self._enabled:
            return

        self._write_entry({
            "type": "transaction_end",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "tx_hash": _format_hash(tx_hash),
            "success": success,
            "operation_count": operation_count,
            "duration_ms": duration_ms,
        })

    def log_destroyed_accounts(self, *, ledger: dict[str, int]) -> None:
        """Log the destroyed-account balances left at the end of a trace."""
        if not self._enabled or not ledger:
            return

        self._write_entry({
            "type": "destroyed_accounts",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "balances": {address: str(balance) for address, balance in ledger.items()},
        })

    def log_atomic_transaction(
        self,
        *,
        tx_id: str,
        kind: str,
        operation_count: int,
        exported_output_count: int,
        tx_fee: int,
    ) -> None:
        if not self._enabled:
            return

        self._write_entry({
            "type": "atomic_transaction",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "tx_id": tx_id,
            "kind": kind,
            "operation_count": operation_count,
            "exported_output_count": exported_output_count,
            "tx_fee": str(tx_fee),
        })

    def log_exception(
        self,
        *,
        exc: Exception,
        tx_hash: HexBytes | str | None = None,
        extra_context: dict[str, Any] | None = None,
    ) -> None:
        """Log an exception with enough context to replay the failing mapping.

        Args:
            exc: The exception that was raised
            tx_hash: Transaction being mapped when the exception occurred
            extra_context: Additional context data
        """
        if not self._enabled:
            return

        entry: dict[str, Any] = {
            "type": "exception",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": traceback.format_exc(),
            "tx_hash": _format_hash(tx_hash),
        }

        if extra_context is not None:
            entry["extra_context"] = extra_context

        self._write_entry(entry)

    def close(self) -> None:
        """Close the debug log file and write session end marker."""
        if not self._enabled or self._file_handle is None:
            return

        self._write_entry({
            "type": "session_end",
            "timestamp": datetime.now(tz=UTC).isoformat(),
        })

        self._file_handle.close()
        self._file_handle = None
        self._output_path = None
        self._enabled = False


# Global instance
mapper_debug_logger = CChainDebugLogger()
