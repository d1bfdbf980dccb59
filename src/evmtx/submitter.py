"""
Retry strategies around broadcast and confirmation.

Blind retry re-broadcasts the same signed bytes after a transient
``SubmissionError``. Fee bump replaces a stalled transaction: same nonce,
same fee model, fees raised by a fixed percentage. Only one escalation
step is taken per call; repeated escalation is up to the caller.

Both strategies assume a single writer per account. If another component
sends from the same account concurrently, the nonce of a stalled
transaction may already be taken by something else, and this module
cannot detect that.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .builder import TransactionBuilder
from .constants import FEE_BUMP_PERCENT, SUBMIT_BACKOFF_SECONDS, SUBMIT_MAX_ATTEMPTS
from .errors import (
    NetworkError,
    QuoteError,
    SubmissionError,
    ValidationError,
    is_nonce_too_low_error,
)
from .tracker import ConfirmationTracker
from .types import DynamicFee, FeeModel, LegacyFee, SignedTransaction, TxHash
from .utils.logging import get_logger
from .utils.retry import RetryConfig, retry_call

__all__ = ["RetrySubmitter"]

_logger = get_logger(__name__)


class RetrySubmitter:
    """Blind re-submission and fee-bump replacement on top of a tracker."""

    def __init__(
        self,
        tracker: ConfirmationTracker,
        builder: TransactionBuilder,
        *,
        max_attempts: int = SUBMIT_MAX_ATTEMPTS,
        backoff_seconds: float = SUBMIT_BACKOFF_SECONDS,
        fee_bump_percent: int = FEE_BUMP_PERCENT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.tracker = tracker
        self.builder = builder
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.fee_bump_percent = fee_bump_percent
        self._sleep = sleep

    def send_with_retry(
        self,
        signed_tx_factory: Callable[[], SignedTransaction],
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TxHash:
        """
        Broadcast with blind retry, then wait for confirmation.

        The factory is called once; every attempt re-broadcasts the same
        signed bytes. Transport failures during broadcast (``NetworkError``)
        and transient node rejections are retried; before attempt ``n + 1``
        the submitter waits ``n * backoff_seconds``. Permanent rejections
        (nonce too low, underpriced, insufficient funds) are raised immediately.

        Returns:
            Hash of the confirmed transaction

        Raises:
            SubmissionError / NetworkError: Last failure once attempts are exhausted
            TransactionTimeoutError / ExecutionFailedError: From confirmation
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValidationError("max_attempts must be >= 1", field="max_attempts")

        signed = signed_tx_factory()
        config = RetryConfig(
            max_attempts=attempts,
            base_delay_ms=int(self.backoff_seconds * 1000),
            max_delay_ms=int(self.backoff_seconds * 1000) * attempts,
            backoff="linear",
            retryable_errors=(SubmissionError, NetworkError),
            should_retry=lambda e: bool(getattr(e, "retryable", False)),
        )
        tx_hash = retry_call(lambda: self.tracker.submit(signed), config, sleep=self._sleep)
        receipt = self.tracker.await_confirmation(tx_hash, timeout=timeout, cancel=cancel)
        return receipt.tx_hash

    def bump(self, tx: SignedTransaction) -> SignedTransaction:
        """Re-sign ``tx`` at the same nonce with raised fees.

        Legacy: ``max(old * (1 + pct), node suggestion)``. Dynamic: both the
        tip and the cap rise by the percentage. Fees never decrease.
        """
        fee = self._bumped_fee(tx.fee)
        replacement = self.builder.rebuild_with_fee(tx, fee)
        _logger.info(
            "Bumping fee",
            extra={
                "tx_hash": tx.hash,
                "replacement": replacement.hash,
                "nonce": tx.nonce,
                "old_price": tx.gas.price_per_gas,
                "new_price": replacement.gas.price_per_gas,
            },
        )
        return replacement

    def send_with_fee_bump(
        self,
        tx: SignedTransaction,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TxHash:
        """
        Replace a stalled transaction with a higher-fee one and wait for it.

        The original and the replacement share a nonce, so both hashes are
        polled and whichever is mined first settles the call. If the node
        refuses the replacement because the nonce is already used, the
        original is awaited instead.

        Returns:
            Hash of the confirmed transaction (the original if it won)

        Raises:
            SubmissionError: Node rejected the replacement (e.g. still underpriced)
            TransactionTimeoutError / ExecutionFailedError: From confirmation
        """
        replacement = self.bump(tx)
        try:
            tx_hash = self.tracker.submit(replacement)
        except SubmissionError as e:
            if not is_nonce_too_low_error(e):
                raise
            _logger.info(
                "Nonce already used, awaiting original transaction",
                extra={"tx_hash": tx.hash, "replacement": replacement.hash, "nonce": tx.nonce},
            )
            return self.tracker.await_confirmation(tx.hash, timeout=timeout, cancel=cancel).tx_hash
        receipt = self.tracker.await_first([tx_hash, tx.hash], timeout=timeout, cancel=cancel)
        return receipt.tx_hash

    def _bumped_fee(self, fee: FeeModel) -> FeeModel:
        match fee:
            case LegacyFee():
                bumped = fee.bumped(self.fee_bump_percent)
                try:
                    suggested = self.builder.resolver.resolve_gas_price()
                except QuoteError as e:
                    _logger.debug("No gas price suggestion for bump", extra={"error": str(e)})
                    return bumped
                return LegacyFee(gas_price=max(bumped.gas_price, suggested))
            case DynamicFee():
                return fee.bumped(self.fee_bump_percent)
            case other:
                raise TypeError(f"Unsupported fee model: {other!r}")
