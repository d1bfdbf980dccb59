"""
Broadcast and confirmation tracking.

Lifecycle per transaction hash::

    SUBMITTED -> PENDING -> CONFIRMED | REVERTED
    SUBMITTED -> TIMED_OUT
    SUBMISSION_FAILED

A missing receipt is the normal PENDING state. Once a receipt is seen its
status is final: it is memoized on the tracker so later calls for the same
hash return (or raise) the same result without touching the node.

Polling sleeps between lookups and stops at the deadline. Cancellation is
cooperative: a ``threading.Event`` is checked once per iteration and an
in-flight receipt lookup is never interrupted. Cancelling or timing out
never retracts the broadcast transaction.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Sequence

from .constants import CONFIRMATION_TIMEOUT_SECONDS, POLL_INTERVAL_SECONDS
from .errors import (
    ExecutionFailedError,
    NetworkError,
    SubmissionError,
    TransactionTimeoutError,
    ValidationError,
)
from .node import NodeClient
from .types import Receipt, SignedTransaction, TxHash, TxState
from .utils.logging import get_logger
from .utils.validation import validate_tx_hash

__all__ = ["ConfirmationTracker"]

_logger = get_logger(__name__)


class ConfirmationTracker:
    """Submits signed transactions and waits for their receipts.

    Args:
        node: Node used for broadcast, receipt and block number lookups
        poll_interval: Seconds between receipt lookups
        timeout: Default deadline, in seconds, for ``await_confirmation``
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)
    """

    def __init__(
        self,
        node: NodeClient,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = CONFIRMATION_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval <= 0:
            raise ValidationError("poll_interval must be positive", field="poll_interval")
        if timeout <= 0:
            raise ValidationError("timeout must be positive", field="timeout")
        self.node = node
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._receipts: Dict[TxHash, Receipt] = {}
        self._states: Dict[TxHash, TxState] = {}

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------
    def submit(self, signed: SignedTransaction) -> TxHash:
        """
        Broadcast a signed transaction.

        A node answering "already known" has these exact bytes in its pool,
        so that counts as a successful submission.

        Returns:
            Transaction hash

        Raises:
            SubmissionError: Node rejected the transaction
            NetworkError: Node unreachable
        """
        try:
            tx_hash = self.node.broadcast(signed)
        except SubmissionError as e:
            if e.already_known:
                _logger.info(
                    "Transaction already known to node",
                    extra={"tx_hash": signed.hash, "nonce": signed.nonce},
                )
                self._set_state(signed.hash, TxState.SUBMITTED)
                return signed.hash
            self._set_state(signed.hash, TxState.SUBMISSION_FAILED)
            _logger.error(
                "Broadcast rejected",
                extra={"tx_hash": signed.hash, "nonce": signed.nonce, "node_message": e.node_message},
            )
            raise

        tx_hash = validate_tx_hash(tx_hash)
        self._set_state(tx_hash, TxState.SUBMITTED)
        _logger.info(
            "Transaction broadcast",
            extra={"tx_hash": tx_hash, "nonce": signed.nonce, "fee_model": signed.fee.kind},
        )
        return tx_hash

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------
    def await_confirmation(
        self,
        tx_hash: TxHash,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """
        Poll for the receipt of ``tx_hash`` until it appears or the deadline passes.

        Args:
            tx_hash: Transaction hash
            timeout: Deadline in seconds (tracker default if None)
            cancel: Event that stops the wait when set

        Returns:
            The successful receipt

        Raises:
            ExecutionFailedError: Receipt status is FAILED (mined, reverted)
            TransactionTimeoutError: No receipt before the deadline, or cancelled
        """
        return self.await_first([tx_hash], timeout=timeout, cancel=cancel)

    def await_first(
        self,
        tx_hashes: Sequence[TxHash],
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """
        Wait for whichever of ``tx_hashes`` is mined first.

        Meant for transactions competing for one nonce (a stalled
        transaction and its replacement): at most one of them can be mined.
        Every hash is looked up once per poll. Timeout and cancellation
        errors carry the first hash.

        Raises:
            ExecutionFailedError: The mined transaction reverted
            TransactionTimeoutError: None mined before the deadline, or cancelled
        """
        hashes = list(dict.fromkeys(validate_tx_hash(h) for h in tx_hashes))
        if not hashes:
            raise ValidationError("at least one transaction hash is required", field="tx_hashes")
        primary = hashes[0]

        for tx_hash in hashes:
            settled = self._memoized(tx_hash)
            if settled is not None:
                return self._settle(tx_hash, settled)

        timeout = self.timeout if timeout is None else timeout
        deadline = self._clock() + timeout
        polls = 0

        while True:
            if cancel is not None and cancel.is_set():
                _logger.info("Stopped waiting for transaction", extra={"tx_hash": primary})
                raise TransactionTimeoutError(primary, timeout, cancelled=True)

            polls += 1
            for tx_hash in hashes:
                receipt = self._poll(tx_hash, polls)
                if receipt is not None:
                    with self._lock:
                        receipt = self._receipts.setdefault(tx_hash, receipt)
                    return self._settle(tx_hash, receipt)

            for tx_hash in hashes:
                self._set_state(tx_hash, TxState.PENDING)
            remaining = deadline - self._clock()
            if remaining <= 0:
                for tx_hash in hashes:
                    self._set_state(tx_hash, TxState.TIMED_OUT)
                _logger.warning(
                    "Transaction not confirmed before deadline",
                    extra={"tx_hash": primary, "timeout": timeout, "polls": polls},
                )
                raise TransactionTimeoutError(primary, timeout)

            delay = min(self.poll_interval, remaining)
            if cancel is not None:
                cancel.wait(delay)
            else:
                self._sleep(delay)

    def await_confirmations(
        self,
        tx_hash: TxHash,
        confirmations: int = 1,
        timeout: Optional[float] = None,
    ) -> Receipt:
        """Wait until the successful receipt is ``confirmations`` blocks deep.

        The inclusion block counts as the first confirmation.
        """
        if confirmations < 1:
            raise ValidationError("confirmations must be >= 1", field="confirmations")
        timeout = self.timeout if timeout is None else timeout
        deadline = self._clock() + timeout

        receipt = self.await_confirmation(tx_hash, timeout=timeout)
        if confirmations == 1:
            return receipt

        target = receipt.block_number + confirmations - 1
        while True:
            try:
                head = self.node.block_number()
            except NetworkError as e:
                _logger.warning(
                    "Block number lookup failed",
                    extra={"tx_hash": receipt.tx_hash, "error": str(e)},
                )
                head = None
            if head is not None and head >= target:
                return receipt
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise TransactionTimeoutError(receipt.tx_hash, timeout)
            self._sleep(min(self.poll_interval, remaining))

    def is_transaction_successful(self, tx_hash: TxHash) -> Optional[bool]:
        """Single lookup: True/False once mined, None while no receipt exists."""
        tx_hash = validate_tx_hash(tx_hash)
        receipt = self._memoized(tx_hash)
        if receipt is None:
            receipt = self.node.receipt(tx_hash)
            if receipt is None:
                return None
            with self._lock:
                receipt = self._receipts.setdefault(tx_hash, receipt)
        return receipt.succeeded

    def state(self, tx_hash: TxHash) -> Optional[TxState]:
        """Last lifecycle state observed by this tracker, or None if never seen."""
        with self._lock:
            return self._states.get(validate_tx_hash(tx_hash))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _poll(self, tx_hash: TxHash, polls: int) -> Optional[Receipt]:
        try:
            receipt = self.node.receipt(tx_hash)
        except NetworkError as e:
            # Transient; the deadline still bounds the loop.
            _logger.warning(
                "Receipt lookup failed",
                extra={"tx_hash": tx_hash, "poll": polls, "error": str(e)},
            )
            return None
        _logger.debug(
            "Polled receipt",
            extra={"tx_hash": tx_hash, "poll": polls, "found": receipt is not None},
        )
        return receipt

    def _memoized(self, tx_hash: TxHash) -> Optional[Receipt]:
        with self._lock:
            return self._receipts.get(tx_hash)

    def _settle(self, tx_hash: TxHash, receipt: Receipt) -> Receipt:
        if receipt.succeeded:
            self._set_state(tx_hash, TxState.CONFIRMED)
            _logger.info(
                "Transaction confirmed",
                extra={"tx_hash": tx_hash, "block_number": receipt.block_number, "gas_used": receipt.gas_used},
            )
            return receipt

        self._set_state(tx_hash, TxState.REVERTED)
        _logger.error(
            "Transaction reverted",
            extra={"tx_hash": tx_hash, "block_number": receipt.block_number, "gas_used": receipt.gas_used},
        )
        raise ExecutionFailedError(
            tx_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
        )

    def _set_state(self, tx_hash: TxHash, state: TxState) -> None:
        with self._lock:
            current = self._states.get(tx_hash)
            # Confirmed/reverted never regress.
            if current in (TxState.CONFIRMED, TxState.REVERTED):
                return
            self._states[tx_hash] = state
