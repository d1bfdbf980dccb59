"""
Lifecycle exceptions raised after (or instead of) a broadcast.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from evmtx.errors.base import EvmTxError


class InsufficientFundsError(EvmTxError):
    """
    Raised by the pre-flight balance check, before anything is broadcast.

    Attributes:
        required: value + gas_limit * price, in wei.
        available: Current account balance, in wei.
    """

    def __init__(self, required: int, available: int, *, address: Optional[str] = None) -> None:
        super().__init__(
            f"Insufficient funds: need {required} wei, have {available} wei",
            code="INSUFFICIENT_FUNDS",
            details={"required": required, "available": available, "address": address},
        )
        self.required = required
        self.available = available
        self.address = address

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class TransactionTimeoutError(EvmTxError):
    """
    No receipt appeared before the deadline.

    The outcome is unknown: the transaction may still be mined later.
    Never treat this as a failed transaction.
    """

    retryable = True

    def __init__(self, tx_hash: str, timeout: float, *, cancelled: bool = False) -> None:
        reason = "cancelled while waiting" if cancelled else f"not confirmed within {timeout}s"
        super().__init__(
            f"Transaction {reason}; outcome unknown",
            code="CONFIRMATION_TIMEOUT",
            tx_hash=tx_hash,
            details={"timeout": timeout, "cancelled": cancelled},
        )
        self.timeout = timeout
        self.cancelled = cancelled


class ExecutionFailedError(EvmTxError):
    """
    The transaction was mined but its execution reverted (receipt status 0).

    Gas was consumed. Retrying the same call will normally revert again.
    """

    def __init__(
        self,
        tx_hash: str,
        *,
        block_number: Optional[int] = None,
        gas_used: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"Transaction reverted in block {block_number}",
            code="EXECUTION_FAILED",
            tx_hash=tx_hash,
            details={"block_number": block_number, "gas_used": gas_used},
        )
        self.block_number = block_number
        self.gas_used = gas_used


class BatchSendError(EvmTxError):
    """
    One or more transactions in a batch failed.

    Attributes:
        hashes: Confirmed hash per position, None where that item failed.
        failures: Mapping of batch index to the error raised for it.
    """

    def __init__(self, hashes: List[Optional[str]], failures: Dict[int, EvmTxError]) -> None:
        super().__init__(
            f"{len(failures)} of {len(hashes)} batch transactions failed",
            code="BATCH_SEND_FAILED",
            details={"failed_indexes": sorted(failures)},
        )
        self.hashes = hashes
        self.failures = failures

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["failures"] = {index: err.to_dict() for index, err in self.failures.items()}
        return data
